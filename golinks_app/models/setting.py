from sqlalchemy import Column, String
from golinks_app.database.connection import Base


class Setting(Base):
    """Persisted hostname setting; overrides the environment default at startup."""
    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=False)
