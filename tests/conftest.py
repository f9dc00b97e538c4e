"""
Test configuration and fixtures for golinks.

Every test gets its own SQLite file under tmp_path and, when it needs HTTP,
its own application instance, so nothing leaks between tests.
"""

import pytest
from fastapi.testclient import TestClient

from golinks_app.config import Settings
from golinks_app.database.connection import create_db_engine, create_session_factory
from golinks_app.database.migrations import migrate
from golinks_app.services.host_config import HostRegistry
from golinks_app.services.link_store import LinkStore
from main import create_app

# Base URLs for each configured host
UI = "http://links.test"
PUBLIC = "https://pmh.codes"
ALIAS = "https://pmh.so"
INTERNAL = "http://go"
PUBLIC_API = "https://api.pmh.codes"


@pytest.fixture(scope="function")
def settings(tmp_path):
    """Settings pointing at a throwaway database and test hostnames."""
    return Settings(
        _env_file=None,
        db_file=str(tmp_path / "test.db"),
        base_url=PUBLIC,
        ui_host="links.test",
        internal_host="go",
        alias_host="pmh.so",
        public_api_host="",
        cache_backend="memory",
    )


@pytest.fixture(scope="function")
def engine(settings):
    """Migrated engine for the test database."""
    engine = create_db_engine(settings.db_file, settings.db_busy_timeout)
    migrate(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """
    Fresh database session for each test.
    """
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def store(db_session):
    return LinkStore(db_session)


@pytest.fixture(scope="function")
def registry(settings):
    registry = HostRegistry()
    registry.apply(
        public_base=settings.base_url,
        ui_host=settings.ui_host,
        internal_host=settings.internal_host,
        alias_host=settings.alias_host,
        public_api_host=settings.public_api_host,
    )
    return registry


@pytest.fixture(scope="function")
def client(settings):
    """
    Test client for a fresh app. Entering the context runs the lifespan
    (migrations, host config, cache). Requests default to the UI host.
    """
    app = create_app(settings)
    with TestClient(app, base_url=UI) as test_client:
        yield test_client


def shorten(client: TestClient, **payload):
    """POST /shorten on the UI host and return the response."""
    payload.setdefault("url", "https://example.com/")
    return client.post("/shorten", json=payload)
