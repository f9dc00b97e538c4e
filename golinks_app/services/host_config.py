"""
Live hostname configuration.

HostRegistry holds the routing configuration that every request reads and
the settings API occasionally rewrites. Readers get an immutable HostConfig
snapshot, so no request ever sees half of an update.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Mapping
from urllib.parse import urlsplit

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from golinks_app.config import Settings
from golinks_app.models.setting import Setting

logger = logging.getLogger(__name__)

SETTING_KEYS = ("public_base", "ui_host", "internal_host", "alias_host", "public_api_host")


class ReadWriteLock:
    """Many concurrent readers or one writer."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self):
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self):
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


def host_of(value: str) -> str:
    """Bare hostname of a URL or host[:port] string, lower-cased."""
    value = (value or "").strip()
    if not value:
        return ""
    if "://" not in value:
        value = "//" + value
    return (urlsplit(value).hostname or "").lower()


def _base_url(stored: str, public_base: str) -> str:
    # Legacy values are bare hostnames; newer ones may be full URLs.
    stored = stored.strip().rstrip("/")
    if not stored:
        return ""
    if "://" in stored:
        return stored
    scheme = urlsplit(public_base).scheme or "https"
    return f"{scheme}://{stored}"


@dataclass(frozen=True)
class HostConfig:
    public_base: str = ""  # full URL prefix, e.g. https://pmh.codes
    public_host: str = ""  # derived hostname, e.g. pmh.codes
    ui_host: str = ""
    internal_host: str = ""
    alias_host: str = ""
    public_api_host: str = ""

    @property
    def alias_base(self) -> str:
        return _base_url(self.alias_host, self.public_base)

    @property
    def public_api_base(self) -> str:
        return _base_url(self.public_api_host, self.public_base)

    @property
    def canonical_base(self) -> str:
        """Base used for printed and encoded short links: alias if set."""
        return self.alias_base or self.public_base

    def as_settings(self) -> Dict[str, str]:
        return {key: getattr(self, key) for key in SETTING_KEYS}


def _build_config(
    public_base: str,
    ui_host: str,
    internal_host: str,
    alias_host: str = "",
    public_api_host: str = "",
) -> HostConfig:
    public_base = public_base.strip().rstrip("/")
    return HostConfig(
        public_base=public_base,
        public_host=host_of(public_base),
        ui_host=ui_host.strip(),
        internal_host=internal_host.strip(),
        alias_host=alias_host.strip(),
        public_api_host=public_api_host.strip(),
    )


class HostRegistry:
    """Thread-safe owner of the current HostConfig."""

    def __init__(self, config: HostConfig = HostConfig()):
        self._lock = ReadWriteLock()
        self._config = config

    def snapshot(self) -> HostConfig:
        with self._lock.read():
            return self._config

    def apply(
        self,
        public_base: str,
        ui_host: str,
        internal_host: str,
        alias_host: str = "",
        public_api_host: str = "",
    ) -> HostConfig:
        """Replace every field at once and return the new snapshot."""
        config = _build_config(
            public_base, ui_host, internal_host, alias_host, public_api_host
        )
        with self._lock.write():
            self._config = config
        return config

    def update(self, changes: Mapping[str, str]) -> HostConfig:
        """Apply a partial change on top of the current values."""
        with self._lock.write():
            values = self._config.as_settings()
            values.update({k: v for k, v in changes.items() if k in SETTING_KEYS})
            self._config = _build_config(**values)
            return self._config

    def alias_base(self) -> str:
        return self.snapshot().alias_base

    def public_api_base(self) -> str:
        return self.snapshot().public_api_base


class SettingsStore:
    """Key/value persistence for hostname settings."""

    def __init__(self, db: Session):
        self.db = db

    def load(self) -> Dict[str, str]:
        with self.db.begin():
            rows = self.db.execute(select(Setting.key, Setting.value)).all()
            return {key: value for key, value in rows}

    def save(self, values: Mapping[str, str]) -> None:
        """Upsert all given keys in one transaction."""
        with self.db.begin():
            for key, value in values.items():
                stmt = sqlite_insert(Setting).values(key=key, value=value)
                stmt = stmt.on_conflict_do_update(
                    index_elements=[Setting.key], set_={"value": value}
                )
                self.db.execute(stmt)


def load_host_config(db: Session, registry: HostRegistry, settings: Settings) -> HostConfig:
    """
    Environment defaults, overridden by persisted settings (the DB wins).
    """
    values = {
        "public_base": settings.base_url,
        "ui_host": settings.ui_host,
        "internal_host": settings.internal_host,
        "alias_host": settings.alias_host,
        "public_api_host": settings.public_api_host,
    }
    stored = SettingsStore(db).load()
    values.update({k: v for k, v in stored.items() if k in SETTING_KEYS})
    config = registry.apply(**values)
    logger.info(
        "hosts: public=%s (%s) ui=%s internal=%s alias=%s public_api=%s",
        config.public_base, config.public_host, config.ui_host,
        config.internal_host, config.alias_host, config.public_api_host,
    )
    return config
