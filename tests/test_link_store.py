"""
Tests for the link store.
"""
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import text

from golinks_app.models.link import RedirectType
from golinks_app.services.errors import CodeConflictError, InvalidInputError, LinkNotFoundError
from golinks_app.services.link_store import LinkStore
from golinks_app.services.short_code_strategies import ShortCodeStrategy


class FixedCodes(ShortCodeStrategy):
    """Hands out a fixed sequence of codes"""

    def __init__(self, *codes):
        self.codes = list(codes)

    def generate(self):
        return self.codes.pop(0)


def new_fields(**overrides):
    fields = {"long_url": "https://example.com/"}
    fields.update(overrides)
    return fields


class TestCreateAndGet:
    """Creating and reading links"""

    def test_round_trip(self, store: LinkStore):
        """Every field written comes back"""
        store.create("docs", new_fields(
            long_url="https://docs.example.com/",
            public_enabled=False,
            redirect_type=RedirectType.META,
            og_title="Docs",
            description="team docs",
            expires_at="2099-01-01T00:00:00Z",
            max_uses=3,
        ))

        record = store.get("docs")

        assert record.code == "docs"
        assert record.long_url == "https://docs.example.com/"
        assert record.public_enabled is False
        assert record.internal_enabled is True
        assert record.redirect_type == RedirectType.META
        assert record.og_title == "Docs"
        assert record.description == "team docs"
        assert record.expires_at == "2099-01-01T00:00:00Z"
        assert record.max_uses == 3
        assert record.use_count == 0
        assert len(record.created_at) == len("2006-01-02 15:04:05")

    def test_duplicate_code_conflicts(self, store: LinkStore):
        """A taken code is rejected and the existing link survives"""
        store.create("dup", new_fields(long_url="https://first.example/"))

        with pytest.raises(CodeConflictError) as exc_info:
            store.create("dup", new_fields(long_url="https://second.example/"))

        assert "dup" in str(exc_info.value)
        assert store.get("dup").long_url == "https://first.example/"

    def test_get_missing(self, store: LinkStore):
        with pytest.raises(LinkNotFoundError):
            store.get("nope")

    def test_unknown_field_rejected(self, store: LinkStore):
        with pytest.raises(InvalidInputError):
            store.create("bad", new_fields(colour="red"))

    def test_create_unique_retries_on_collision(self, store: LinkStore):
        """A generated code that is taken is drawn again"""
        store.create("taken", new_fields())

        record = store.create_unique(FixedCodes("taken", "fresh"), new_fields())

        assert record.code == "fresh"

    def test_create_unique_skips_route_names(self, store: LinkStore):
        """A generated code equal to a fixed route is drawn again"""
        record = store.create_unique(FixedCodes("pass", "fresh"), new_fields())

        assert record.code == "fresh"
        with pytest.raises(LinkNotFoundError):
            store.get("pass")

    def test_create_unique_gives_up(self, store: LinkStore):
        store.create("taken", new_fields())

        with pytest.raises(RuntimeError):
            store.create_unique(FixedCodes("taken", "taken"), new_fields(), max_retries=2)

    def test_list_newest_first(self, store: LinkStore, db_session):
        """Links are listed by creation time, newest first"""
        store.create("older", new_fields())
        store.create("newer", new_fields())
        # Both inserts can land in the same second
        with db_session.begin():
            db_session.execute(
                text("UPDATE urls SET created_at = '2020-01-01 00:00:00' WHERE code = 'older'")
            )

        codes = [record.code for record in store.list_all()]

        assert codes == ["newer", "older"]


class TestUpdateAndDelete:
    """Partial updates, renames and deletes"""

    def test_empty_update_is_noop(self, store: LinkStore):
        """No changes means no error and nothing touched"""
        store.create("same", new_fields())
        before = store.get("same")

        store.update("same", {})

        assert store.get("same") == before

    def test_update_only_given_fields(self, store: LinkStore):
        store.create("part", new_fields(description="keep me"))

        store.update("part", {"long_url": "https://changed.example/"})

        record = store.get("part")
        assert record.long_url == "https://changed.example/"
        assert record.description == "keep me"

    def test_update_missing(self, store: LinkStore):
        with pytest.raises(LinkNotFoundError):
            store.update("nope", {"long_url": "https://x.example/"})

    def test_delete(self, store: LinkStore):
        store.create("gone", new_fields())

        store.delete("gone")

        with pytest.raises(LinkNotFoundError):
            store.get("gone")

    def test_delete_missing(self, store: LinkStore):
        """Deleting an absent code fails"""
        with pytest.raises(LinkNotFoundError):
            store.delete("nope")

    def test_rename_preserves_created_at(self, store: LinkStore):
        """Rename moves every field and keeps the original timestamp"""
        original = store.create("before", new_fields(max_uses=5, og_title="T"))
        store.increment_use("before", 5)

        store.rename("before", "after", {"description": "renamed"})

        with pytest.raises(LinkNotFoundError):
            store.get("before")
        record = store.get("after")
        assert record.created_at == original.created_at
        assert record.description == "renamed"
        assert record.og_title == "T"
        assert record.max_uses == 5
        assert record.use_count == 1

    def test_rename_collision_changes_nothing(self, store: LinkStore):
        """A taken target leaves both links exactly as they were"""
        store.create("one", new_fields(long_url="https://one.example/"))
        store.create("two", new_fields(long_url="https://two.example/"))

        with pytest.raises(CodeConflictError):
            store.rename("one", "two", {"description": "lost"})

        assert store.get("one").long_url == "https://one.example/"
        assert store.get("one").description == ""
        assert store.get("two").long_url == "https://two.example/"

    def test_rename_missing(self, store: LinkStore):
        with pytest.raises(LinkNotFoundError):
            store.rename("nope", "other", {})


class TestUseCounting:
    """Conditional use counting"""

    def test_unlimited_always_counts(self, store: LinkStore):
        store.create("free", new_fields())

        for _ in range(5):
            assert store.increment_use("free", 0) is True

        assert store.get("free").use_count == 5

    def test_limit_stops_counting(self, store: LinkStore):
        store.create("two", new_fields(max_uses=2))

        assert store.increment_use("two", 2) is True
        assert store.increment_use("two", 2) is True
        assert store.increment_use("two", 2) is False
        assert store.get("two").use_count == 2

    def test_missing_code_never_counts(self, store: LinkStore):
        assert store.increment_use("nope", 0) is False

    def test_concurrent_uses_never_exceed_limit(self, store: LinkStore, session_factory):
        """N racing requests against a limit of k succeed exactly min(N, k) times"""
        store.create("race", new_fields(max_uses=5))

        def use_once(_):
            db = session_factory()
            try:
                return LinkStore(db).increment_use("race", 5)
            finally:
                db.close()

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(use_once, range(20)))

        assert results.count(True) == 5
        assert store.get("race").use_count == 5
