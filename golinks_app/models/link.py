from enum import Enum

from sqlalchemy import Boolean, Column, Integer, String
from golinks_app.database.connection import Base


class RedirectType(str, Enum):
    """How a resolved link is delivered to the visitor."""
    REDIRECT = "redirect"  # plain HTTP 302
    META = "meta"  # HTML page with meta refresh and OpenGraph tags
    JS = "js"  # HTML page redirecting via script, optionally password gated

    @classmethod
    def parse(cls, value) -> "RedirectType":
        """
        Map any input to a redirect type.

        Unknown, empty or missing values intentionally become REDIRECT,
        so old rows and sloppy clients always get a working link.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.REDIRECT


class Link(Base):
    """
    A short code and everything needed to resolve it.

    Booleans are stored as 0/1 integers and timestamps as text, matching
    the columns created by the migrations.
    """
    __tablename__ = "urls"

    code = Column(String, primary_key=True)
    long_url = Column(String, nullable=False)
    public_enabled = Column(Boolean, nullable=False, default=True)
    internal_enabled = Column(Boolean, nullable=False, default=True)
    redirect_type = Column(String, nullable=False, default=RedirectType.REDIRECT.value)
    og_title = Column(String, nullable=False, default="")
    og_description = Column(String, nullable=False, default="")
    og_image = Column(String, nullable=False, default="")
    password_hash = Column(String, nullable=False, default="")  # empty = no password
    description = Column(String, nullable=False, default="")
    expires_at = Column(String, nullable=False, default="")  # RFC 3339, empty = never
    max_uses = Column(Integer, nullable=False, default=0)  # 0 = unlimited
    use_count = Column(Integer, nullable=False, default=0)
    created_at = Column(String, nullable=False)  # "YYYY-MM-DD HH:MM:SS" UTC
