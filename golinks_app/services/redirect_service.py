"""
Link resolution for the redirect hosts.

A short code is only served when it exists, is enabled for the context the
request arrived on, has not expired and is still within its use limit. All
of those failures look the same to the client.
"""

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from golinks_app.cache.strategies import CacheStrategy
from golinks_app.models.link import RedirectType
from golinks_app.schemas.link import LinkRecord
from golinks_app.services.errors import InvalidInputError, LinkNotFoundError, PasswordMismatchError
from golinks_app.services.host_config import HostConfig, HostRegistry, host_of
from golinks_app.services.link_store import LinkStore
from golinks_app.services.passwords import verify_password
from golinks_app.services.qr import generate_qr_png
from golinks_app.services.url_service import cache_key

logger = logging.getLogger(__name__)


def is_allowed_origin(origin: Optional[str], config: HostConfig) -> bool:
    """
    Only the public base and the alias host may call /pass cross-origin.
    """
    if not origin:
        return False
    origin_host = host_of(origin)
    if not origin_host:
        return False
    allowed = {host_of(config.public_base), host_of(config.alias_base)}
    allowed.discard("")
    return origin_host in allowed


class RedirectService:
    def __init__(
        self,
        db: Session,
        registry: HostRegistry,
        cache: Optional[CacheStrategy] = None,
        cache_ttl: int = 300,
    ):
        self.store = LinkStore(db)
        self.registry = registry
        self.cache = cache
        self.cache_ttl = cache_ttl

    async def lookup(self, code: str) -> LinkRecord:
        """
        Cache-aside read of a link. The cached copy is never used for the
        use limit; that check always hits the store.

        Raises:
            LinkNotFoundError: Unknown code
        """
        key = cache_key(code)
        if self.cache:
            cached = await self.cache.get(key)
            if cached:
                try:
                    return LinkRecord.model_validate_json(cached)
                except ValidationError:
                    logger.warning("discarding unreadable cache entry for %s", code)
                    await self.cache.delete(key)

        record = self.store.get(code)
        if self.cache:
            await self.cache.set(key, record.model_dump_json(), ttl=self.cache_ttl)
        return record

    async def resolve(self, code: str, internal: bool) -> LinkRecord:
        """
        Run the decision sequence for one redirect request and count the use.

        Raises:
            LinkNotFoundError: Unknown, disabled for this context, expired
                or out of uses
        """
        record = await self.lookup(code)

        context = "internal" if internal else "public"
        if not record.reachable_from(internal):
            logger.info("link %s: %s access disabled", code, context)
            raise LinkNotFoundError(code)
        if record.expired:
            logger.info("link %s: expired at %s", code, record.expires_at)
            raise LinkNotFoundError(code)
        if not self.store.increment_use(code, record.max_uses):
            logger.info("link %s: use limit %d reached", code, record.max_uses)
            raise LinkNotFoundError(code)

        logger.debug("link %s: %s redirect to %s", code, context, record.long_url)
        return record

    def pass_url(self, code: str, internal: bool, scheme: str, request_host: str) -> str:
        """Where the js page posts its password."""
        if internal:
            return f"/pass/{code}"
        config = self.registry.snapshot()
        if config.public_api_base:
            return f"{config.public_api_base}/pass/{code}"
        return f"{scheme}://{config.ui_host or request_host}/pass/{code}"

    def page_context(
        self,
        record: LinkRecord,
        internal: bool,
        scheme: str,
        request_host: str,
    ) -> Dict[str, Any]:
        """Template variables for the meta and js redirect pages."""
        config = self.registry.snapshot()
        return {
            "long_url": record.long_url,
            "short_url": f"{config.canonical_base}/{record.code}",
            "og_title": record.og_title,
            "og_description": record.og_description,
            "og_image": record.og_image,
            "code": record.code,
            # Meta pages are never password-gated
            "has_password": record.redirect_type == RedirectType.JS and record.has_password,
            "pass_url": self.pass_url(record.code, internal, scheme, request_host),
        }

    async def check_password(self, code: str, password: str) -> str:
        """
        Verify a link password and return the destination.

        Raises:
            LinkNotFoundError: Unknown code
            InvalidInputError: Link has no password
            PasswordMismatchError: Wrong password
        """
        record = self.store.get(code)
        if not record.has_password:
            raise InvalidInputError("no password set")
        if not verify_password(password, record.password_hash):
            logger.info("link %s: incorrect password", code)
            raise PasswordMismatchError("incorrect password")
        return record.long_url

    async def qr_png(self, code: str) -> bytes:
        """
        QR image of the link's public short URL.

        Raises:
            LinkNotFoundError: Unknown code
        """
        record = await self.lookup(code)
        config = self.registry.snapshot()
        return generate_qr_png(f"{config.canonical_base}/{record.code}")
