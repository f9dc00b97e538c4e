import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from golinks_app.models.link import RedirectType

CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,32}$")
CREATED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"

# First path segments of the fixed routes served next to /{code} on the internal host
RESERVED_CODES = frozenset({"shorten", "urls", "settings", "health", "qr", "pass", "static"})


def is_valid_code(code: str) -> bool:
    return bool(CODE_PATTERN.match(code))


def is_reserved_code(code: str) -> bool:
    return code in RESERVED_CODES


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO-8601/RFC 3339 timestamp; naive values are taken as UTC."""
    value = value.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_expiry(value: str) -> str:
    """
    Normalize a user-supplied expiry to RFC 3339 UTC ("" stays "").

    Raises:
        ValueError: If a non-empty value is not a timestamp
    """
    value = (value or "").strip()
    if not value:
        return ""
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValueError(f"expires_at '{value}' is not a valid timestamp")
    return parsed.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def expiry_passed(expires_at: str, now: Optional[datetime] = None) -> bool:
    """True when expires_at is set, parseable and in the past."""
    if not expires_at:
        return False
    parsed = parse_timestamp(expires_at)
    if parsed is None:
        return False
    return (now or datetime.now(timezone.utc)) > parsed


def _none_to_empty(value: Any) -> Any:
    return "" if value is None else value


class LinkRecord(BaseModel):
    """
    Detached snapshot of a stored link.

    Built from the ORM row (from_attributes) so it can outlive the session
    and be cached as JSON.
    """
    code: str
    long_url: str
    public_enabled: bool = True
    internal_enabled: bool = True
    redirect_type: RedirectType = RedirectType.REDIRECT
    og_title: str = ""
    og_description: str = ""
    og_image: str = ""
    password_hash: str = ""
    description: str = ""
    expires_at: str = ""
    max_uses: int = 0
    use_count: int = 0
    created_at: str = ""

    model_config = ConfigDict(from_attributes=True)

    @field_validator("redirect_type", mode="before")
    @classmethod
    def _parse_redirect_type(cls, value):
        return RedirectType.parse(value)

    @property
    def has_password(self) -> bool:
        return self.password_hash != ""

    @property
    def expired(self) -> bool:
        return expiry_passed(self.expires_at)

    @property
    def uses_exhausted(self) -> bool:
        return self.max_uses > 0 and self.use_count >= self.max_uses

    def reachable_from(self, internal: bool) -> bool:
        return self.internal_enabled if internal else self.public_enabled


class LinkRow(BaseModel):
    """One entry of the link list (index page and GET /urls)."""
    code: str
    long_url: str
    public_enabled: bool
    internal_enabled: bool
    redirect_type: RedirectType
    og_title: str
    og_description: str
    og_image: str
    has_password: bool
    description: str
    created_at: str
    expires_at: str
    expired: bool
    max_uses: int
    use_count: int
    uses_exhausted: bool

    model_config = ConfigDict(from_attributes=True)


class ShortenRequest(BaseModel):
    url: Optional[str] = None
    custom_code: str = ""
    public_enabled: Optional[bool] = None  # absent = enabled
    internal_enabled: Optional[bool] = None  # absent = enabled
    redirect_type: str = ""
    og_title: str = ""
    og_description: str = ""
    og_image: str = ""
    password: str = ""
    description: str = ""
    expires_at: str = ""
    max_uses: int = Field(0, ge=0)

    @field_validator(
        "custom_code", "redirect_type", "og_title", "og_description", "og_image",
        "password", "description", "expires_at", mode="before",
    )
    @classmethod
    def _null_is_empty(cls, value):
        return _none_to_empty(value)

    @field_validator("max_uses", mode="before")
    @classmethod
    def _null_is_zero(cls, value):
        return 0 if value is None else value


class ShortenResponse(BaseModel):
    code: str
    long_url: str
    public_enabled: bool
    internal_enabled: bool
    redirect_type: RedirectType
    og_title: str
    og_description: str
    og_image: str
    has_password: bool
    description: str
    expires_at: str
    max_uses: int
    short_url: Optional[str] = None
    alias_url: Optional[str] = None
    internal_url: Optional[str] = None


class LinkUpdate(BaseModel):
    """
    Partial update of a link.

    A field that is absent (or null) leaves the stored value alone; a field
    that is present, even as "", replaces it. A non-null `code` renames.
    """
    code: Optional[str] = None
    long_url: Optional[str] = None
    public_enabled: Optional[bool] = None
    internal_enabled: Optional[bool] = None
    redirect_type: Optional[str] = None
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    og_image: Optional[str] = None
    password: Optional[str] = None
    description: Optional[str] = None
    expires_at: Optional[str] = None
    max_uses: Optional[int] = Field(None, ge=0)

    def provided(self) -> Dict[str, Any]:
        """Fields the client actually sent with a non-null value."""
        return {
            name: value
            for name, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }


class PasswordCheck(BaseModel):
    password: str = ""

    @field_validator("password", mode="before")
    @classmethod
    def _null_is_empty(cls, value):
        return _none_to_empty(value)


class PasswordResult(BaseModel):
    url: str
