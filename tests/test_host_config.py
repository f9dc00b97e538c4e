"""
Tests for the host registry and persisted host settings.
"""
from concurrent.futures import ThreadPoolExecutor

from golinks_app.config import Settings
from golinks_app.services.host_config import (
    HostRegistry,
    SettingsStore,
    host_of,
    load_host_config,
)


class TestHostOf:
    """Hostname extraction"""

    def test_full_url(self):
        assert host_of("https://PMH.codes/") == "pmh.codes"

    def test_host_and_port(self):
        assert host_of("links.test:8080") == "links.test"

    def test_empty(self):
        assert host_of("") == ""
        assert host_of("   ") == ""


class TestHostRegistry:
    """Snapshot, apply and derived base URLs"""

    def test_apply_trims_and_derives_public_host(self):
        registry = HostRegistry()

        config = registry.apply("https://pmh.codes/", "links.test", "go")

        assert config.public_base == "https://pmh.codes"
        assert config.public_host == "pmh.codes"
        assert registry.snapshot() == config

    def test_bare_alias_inherits_public_scheme(self):
        registry = HostRegistry()
        registry.apply("http://pmh.codes", "ui", "go", alias_host="pmh.so")

        assert registry.alias_base() == "http://pmh.so"

    def test_bare_host_without_public_scheme_defaults_to_https(self):
        registry = HostRegistry()
        registry.apply("", "ui", "go", public_api_host="api.pmh.codes")

        assert registry.public_api_base() == "https://api.pmh.codes"

    def test_full_url_alias_kept(self):
        registry = HostRegistry()
        registry.apply("https://pmh.codes", "ui", "go", alias_host="http://pmh.so/")

        assert registry.alias_base() == "http://pmh.so"

    def test_unset_alias_is_empty(self):
        registry = HostRegistry()
        registry.apply("https://pmh.codes", "ui", "go")

        assert registry.alias_base() == ""
        assert registry.snapshot().canonical_base == "https://pmh.codes"

    def test_canonical_base_prefers_alias(self):
        registry = HostRegistry()
        registry.apply("https://pmh.codes", "ui", "go", alias_host="pmh.so")

        assert registry.snapshot().canonical_base == "https://pmh.so"

    def test_partial_update_keeps_other_fields(self):
        registry = HostRegistry()
        registry.apply("https://pmh.codes", "ui", "go", alias_host="pmh.so")

        config = registry.update({"internal_host": "golinks"})

        assert config.internal_host == "golinks"
        assert config.alias_host == "pmh.so"
        assert config.public_base == "https://pmh.codes"

    def test_readers_never_see_half_an_update(self):
        """Every snapshot is one of the two applied configurations"""
        registry = HostRegistry()
        registry.apply("https://a.example", "ui-a", "go-a")

        def flip(i):
            if i % 2:
                registry.apply("https://a.example", "ui-a", "go-a")
            else:
                registry.apply("https://b.example", "ui-b", "go-b")

        def read(_):
            config = registry.snapshot()
            return (config.public_host, config.ui_host, config.internal_host)

        with ThreadPoolExecutor(max_workers=8) as pool:
            writers = [pool.submit(flip, i) for i in range(50)]
            seen = set(pool.map(read, range(200)))
            for writer in writers:
                writer.result()

        assert seen <= {("a.example", "ui-a", "go-a"), ("b.example", "ui-b", "go-b")}


class TestPersistedSettings:
    """Settings table and startup loading"""

    def test_save_and_load(self, db_session):
        store = SettingsStore(db_session)

        store.save({"ui_host": "one", "alias_host": "pmh.so"})
        store.save({"ui_host": "two"})

        assert store.load() == {"ui_host": "two", "alias_host": "pmh.so"}

    def test_database_overrides_environment(self, db_session, settings: Settings):
        """Persisted values win over env defaults"""
        SettingsStore(db_session).save({"ui_host": "stored.ui", "public_base": "https://stored.example/"})
        registry = HostRegistry()

        config = load_host_config(db_session, registry, settings)

        assert config.ui_host == "stored.ui"
        assert config.public_base == "https://stored.example"
        assert config.internal_host == settings.internal_host
        assert registry.snapshot() == config

    def test_environment_defaults_without_stored_values(self, db_session, settings: Settings):
        config = load_host_config(db_session, HostRegistry(), settings)

        assert config.public_base == settings.base_url
        assert config.ui_host == settings.ui_host
        assert config.alias_host == settings.alias_host
