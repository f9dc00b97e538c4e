import logging
from typing import List, Mapping, Optional

from sqlalchemy.orm import Session

from golinks_app.cache.strategies import CacheStrategy
from golinks_app.config import Settings
from golinks_app.models.link import RedirectType
from golinks_app.schemas.link import (
    LinkRecord,
    LinkUpdate,
    ShortenRequest,
    ShortenResponse,
    is_reserved_code,
    is_valid_code,
    normalize_expiry,
)
from golinks_app.services.errors import InvalidInputError
from golinks_app.services.host_config import HostConfig, HostRegistry, SettingsStore
from golinks_app.services.link_store import LinkStore
from golinks_app.services.passwords import hash_password
from golinks_app.services.short_code_strategies import RandomShortCodeStrategy, ShortCodeStrategy

logger = logging.getLogger(__name__)


def cache_key(code: str) -> str:
    return f"link:{code}"


def _expiry(value: str) -> str:
    try:
        return normalize_expiry(value)
    except ValueError as e:
        raise InvalidInputError(str(e)) from e


class URLService:
    """
    Management operations behind the UI and internal hosts.

    Validation that spans fields (at least one enabled context, rename
    rules) lives here; the store only persists.
    """

    def __init__(
        self,
        db: Session,
        registry: HostRegistry,
        settings: Settings,
        cache: Optional[CacheStrategy] = None,
        short_code_strategy: Optional[ShortCodeStrategy] = None,
    ):
        self.db = db
        self.store = LinkStore(db)
        self.registry = registry
        self.settings = settings
        self.cache = cache
        self.short_code_strategy = short_code_strategy or RandomShortCodeStrategy(
            length=settings.short_code_length
        )

    async def _invalidate(self, *codes: str) -> None:
        if self.cache:
            for code in codes:
                await self.cache.delete(cache_key(code))

    async def create_short_url(self, request: ShortenRequest) -> ShortenResponse:
        """
        Create a link under a custom or generated code.

        Raises:
            InvalidInputError: Missing url, no enabled context, bad code or expiry
            CodeConflictError: Custom code already taken
        """
        long_url = (request.url or "").strip()
        if not long_url:
            raise InvalidInputError("invalid JSON or missing url field")

        public_enabled = request.public_enabled is None or request.public_enabled
        internal_enabled = request.internal_enabled is None or request.internal_enabled
        if not public_enabled and not internal_enabled:
            raise InvalidInputError(
                "at least one link type (public_enabled or internal_enabled) must be true"
            )

        custom_code = request.custom_code.strip()
        if custom_code and not is_valid_code(custom_code):
            raise InvalidInputError(
                "custom alias must be 1-32 chars: letters, numbers, hyphens, underscores"
            )
        if custom_code and is_reserved_code(custom_code):
            raise InvalidInputError(f"custom alias \"{custom_code}\" is reserved")

        fields = {
            "long_url": long_url,
            "public_enabled": public_enabled,
            "internal_enabled": internal_enabled,
            "redirect_type": RedirectType.parse(request.redirect_type),
            "og_title": request.og_title,
            "og_description": request.og_description,
            "og_image": request.og_image,
            "password_hash": hash_password(request.password) if request.password else "",
            "description": request.description,
            "expires_at": _expiry(request.expires_at),
            "max_uses": request.max_uses,
        }

        if custom_code:
            record = self.store.create(custom_code, fields)
        else:
            record = self.store.create_unique(
                self.short_code_strategy, fields, max_retries=self.settings.max_retries
            )

        logger.info("created link %s -> %s", record.code, record.long_url)
        return self.describe(record, self.registry.snapshot())

    @staticmethod
    def describe(record: LinkRecord, config: HostConfig) -> ShortenResponse:
        """Creation response, with the short links that are switched on."""
        response = ShortenResponse(
            code=record.code,
            long_url=record.long_url,
            public_enabled=record.public_enabled,
            internal_enabled=record.internal_enabled,
            redirect_type=record.redirect_type,
            og_title=record.og_title,
            og_description=record.og_description,
            og_image=record.og_image,
            has_password=record.has_password,
            description=record.description,
            expires_at=record.expires_at,
            max_uses=record.max_uses,
        )
        if record.public_enabled:
            response.short_url = f"{config.public_base}/{record.code}"
            if config.alias_base:
                response.alias_url = f"{config.alias_base}/{record.code}"
        if record.internal_enabled:
            response.internal_url = f"{config.internal_host}/{record.code}"
        return response

    async def list_urls(self) -> List[LinkRecord]:
        return self.store.list_all()

    async def update_url(self, code: str, update: LinkUpdate) -> None:
        """
        Apply a partial update, renaming when a new code is given.

        Raises:
            LinkNotFoundError: Unknown code
            InvalidInputError: Empty long_url, bad new code, both contexts off
            CodeConflictError: New code already taken
        """
        changes = update.provided()
        new_code = changes.pop("code", None)

        current = self.store.get(code)

        if "long_url" in changes:
            changes["long_url"] = changes["long_url"].strip()
            if not changes["long_url"]:
                raise InvalidInputError("long_url cannot be empty")
        if "redirect_type" in changes:
            changes["redirect_type"] = RedirectType.parse(changes["redirect_type"])
        if "password" in changes:
            password = changes.pop("password")
            # An explicit empty password removes the protection
            changes["password_hash"] = hash_password(password) if password else ""
        if "expires_at" in changes:
            changes["expires_at"] = _expiry(changes["expires_at"])

        next_public = changes.get("public_enabled", current.public_enabled)
        next_internal = changes.get("internal_enabled", current.internal_enabled)
        if not next_public and not next_internal:
            raise InvalidInputError(
                "at least one link type (public_enabled or internal_enabled) must be true"
            )

        if new_code is not None:
            new_code = new_code.strip()
            if not is_valid_code(new_code):
                raise InvalidInputError(
                    "code must be 1-32 chars: letters, numbers, hyphens, underscores"
                )
            if new_code != code:
                if is_reserved_code(new_code):
                    raise InvalidInputError(f"code \"{new_code}\" is reserved")
                self.store.rename(code, new_code, changes)
                await self._invalidate(code, new_code)
                logger.info("renamed link %s -> %s", code, new_code)
                return

        self.store.update(code, changes)
        await self._invalidate(code)

    async def delete_url(self, code: str) -> None:
        self.store.delete(code)
        await self._invalidate(code)
        logger.info("deleted link %s", code)

    async def get_host_settings(self) -> HostConfig:
        return self.registry.snapshot()

    async def update_host_settings(self, changes: Mapping[str, str]) -> HostConfig:
        """
        Persist the merged hostname settings, then swap them in.

        Storing first means a failed write leaves the live routing as it was.
        """
        values = self.registry.snapshot().as_settings()
        values.update(changes)
        SettingsStore(self.db).save(values)
        config = self.registry.update(changes)
        logger.info(
            "hosts updated: public=%s ui=%s internal=%s alias=%s public_api=%s",
            config.public_base, config.ui_host, config.internal_host,
            config.alias_host, config.public_api_host,
        )
        return config
