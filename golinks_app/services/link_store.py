"""
Durable storage for links.

Every public method is one unit of work: it opens its own transaction on
the session and commits or rolls back before returning, and it hands out
detached LinkRecord snapshots rather than live ORM rows.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from golinks_app.models.link import Link, RedirectType
from golinks_app.schemas.link import CREATED_AT_FORMAT, LinkRecord, is_reserved_code
from golinks_app.services.errors import CodeConflictError, InvalidInputError, LinkNotFoundError
from golinks_app.services.short_code_strategies import ShortCodeStrategy

logger = logging.getLogger(__name__)

# Columns callers may set; code and created_at are managed by the store.
LINK_FIELDS = (
    "long_url",
    "public_enabled",
    "internal_enabled",
    "redirect_type",
    "og_title",
    "og_description",
    "og_image",
    "password_hash",
    "description",
    "expires_at",
    "max_uses",
    "use_count",
)


def utc_now_text() -> str:
    return datetime.now(timezone.utc).strftime(CREATED_AT_FORMAT)


def _column_values(fields: Mapping[str, Any]) -> Dict[str, Any]:
    unknown = set(fields) - set(LINK_FIELDS)
    if unknown:
        raise InvalidInputError(f"unknown link fields: {', '.join(sorted(unknown))}")
    values = dict(fields)
    if "redirect_type" in values:
        values["redirect_type"] = RedirectType.parse(values["redirect_type"]).value
    return values


class LinkStore:
    """CRUD, atomic rename and conditional use counting for links."""

    def __init__(self, db: Session):
        self.db = db

    def _fetch(self, code: str) -> Optional[Link]:
        stmt = (
            select(Link)
            .where(Link.code == code)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def create(self, code: str, fields: Mapping[str, Any]) -> LinkRecord:
        """
        Insert a new link under `code`.

        Raises:
            CodeConflictError: If the code already exists
        """
        values = _column_values(fields)
        values["code"] = code
        values["created_at"] = utc_now_text()
        try:
            with self.db.begin():
                self.db.execute(insert(Link).values(**values))
                return LinkRecord.model_validate(self._fetch(code))
        except IntegrityError as e:
            raise CodeConflictError(code) from e

    def create_unique(
        self,
        strategy: ShortCodeStrategy,
        fields: Mapping[str, Any],
        max_retries: int = 16,
    ) -> LinkRecord:
        """
        Insert under a freshly generated code, drawing again on collision
        or when a reserved route name comes up.

        Raises:
            RuntimeError: If every attempt collided
        """
        for attempt in range(max_retries):
            code = strategy.generate()
            if is_reserved_code(code):
                logger.debug("generated code %s is reserved (attempt %d)", code, attempt + 1)
                continue
            try:
                return self.create(code, fields)
            except CodeConflictError:
                logger.debug("generated code %s collided (attempt %d)", code, attempt + 1)
        raise RuntimeError(
            f"Could not generate unique short code after {max_retries} attempts"
        )

    def get(self, code: str) -> LinkRecord:
        with self.db.begin():
            link = self._fetch(code)
            if link is None:
                raise LinkNotFoundError(code)
            return LinkRecord.model_validate(link)

    def list_all(self) -> List[LinkRecord]:
        """All links, newest first."""
        with self.db.begin():
            links = self.db.execute(
                select(Link).order_by(Link.created_at.desc())
            ).scalars().all()
            return [LinkRecord.model_validate(link) for link in links]

    def update(self, code: str, changes: Mapping[str, Any]) -> None:
        """
        Set only the given columns. No changes is a no-op, not an error.

        Raises:
            LinkNotFoundError: If changes were given and no row matched
        """
        if not changes:
            return
        values = _column_values(changes)
        with self.db.begin():
            result = self.db.execute(
                update(Link)
                .where(Link.code == code)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise LinkNotFoundError(code)

    def rename(self, old_code: str, new_code: str, changes: Mapping[str, Any]) -> None:
        """
        Move a link to a new code, applying `changes` on the way.

        Insert-new and delete-old share one transaction; created_at and
        every unchanged column are copied from the old row.

        Raises:
            LinkNotFoundError: If old_code does not exist
            CodeConflictError: If new_code is taken (nothing is changed)
        """
        values = _column_values(changes)
        try:
            with self.db.begin():
                link = self._fetch(old_code)
                if link is None:
                    raise LinkNotFoundError(old_code)
                row = {name: getattr(link, name) for name in LINK_FIELDS}
                row.update(values)
                row["code"] = new_code
                row["created_at"] = link.created_at
                self.db.execute(insert(Link).values(**row))
                self.db.execute(
                    delete(Link)
                    .where(Link.code == old_code)
                    .execution_options(synchronize_session=False)
                )
        except IntegrityError as e:
            raise CodeConflictError(new_code) from e

    def delete(self, code: str) -> None:
        with self.db.begin():
            result = self.db.execute(
                delete(Link)
                .where(Link.code == code)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise LinkNotFoundError(code)

    def increment_use(self, code: str, max_uses: int) -> bool:
        """
        Count one use, unless the limit is already reached.

        A single conditional UPDATE, so concurrent redirects can never push
        use_count past max_uses.

        Returns:
            True if the use was counted (caller is within the limit)
        """
        stmt = update(Link).where(Link.code == code)
        if max_uses > 0:
            stmt = stmt.where(Link.use_count < max_uses)
        stmt = stmt.values(use_count=Link.use_count + 1).execution_options(
            synchronize_session=False
        )
        with self.db.begin():
            result = self.db.execute(stmt)
            return result.rowcount > 0
