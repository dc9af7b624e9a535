"""
Integration tests for the SQLite-backed remote cache tier.

Tests cover:
- SqlAlchemyDocumentStore CRUD and owner partitioning
- RemoteCacheStrategy over a real database
- Schema version purge
"""

from datetime import timedelta

import pytest

from fincache.domain.models import CACHE_VERSION
from fincache.strategies import RemoteCacheStrategy

from tests.conftest import make_financials, run


@pytest.fixture
def sql_remote_strategy(sql_document_store, policy, clock) -> RemoteCacheStrategy:
    return RemoteCacheStrategy(sql_document_store, policy=policy, clock=clock)


# =============================================================================
# DOCUMENT STORE TESTS
# =============================================================================


class TestSqlAlchemyDocumentStore:
    """Tests for SqlAlchemyDocumentStore."""

    def test_set_get_and_overwrite(self, sql_document_store):
        run(sql_document_store.set_document("u1", "ACME", {"v": 1}))
        run(sql_document_store.set_document("u1", "ACME", {"v": 2}))

        assert run(sql_document_store.get_document("u1", "ACME")) == {"v": 2}
        assert run(sql_document_store.get_document("u1", "NOPE")) is None

    def test_documents_are_partitioned_by_owner(self, sql_document_store):
        """
        GIVEN documents for two owners
        WHEN I list and clear one owner's documents
        THEN the other owner's documents are untouched
        """
        run(sql_document_store.set_document("u1", "BETA", {"v": 1}))
        run(sql_document_store.set_document("u1", "ACME", {"v": 2}))
        run(sql_document_store.set_document("u2", "ACME", {"v": 3}))

        assert list(run(sql_document_store.list_documents("u1"))) == ["ACME", "BETA"]

        assert run(sql_document_store.delete_documents("u1")) == 2
        assert run(sql_document_store.list_documents("u1")) == {}
        assert run(sql_document_store.get_document("u2", "ACME")) == {"v": 3}

    def test_delete_missing_document_is_noop(self, sql_document_store):
        run(sql_document_store.delete_document("u1", "NOPE"))

        assert run(sql_document_store.list_documents("u1")) == {}


# =============================================================================
# REMOTE STRATEGY TESTS
# =============================================================================


class TestRemoteStrategySqlite:
    """Tests for RemoteCacheStrategy over SQLite."""

    def test_round_trip(self, sql_remote_strategy, clock):
        """
        GIVEN an empty database
        WHEN I cache financials remotely
        THEN a later read returns the same data and metadata
        """
        data = make_financials()
        expires_at = clock.now + timedelta(days=30)

        result = run(sql_remote_strategy.set("u1", "ACME", data, {"expires_at": expires_at}))
        entry = run(sql_remote_strategy.get("u1", "ACME"))

        assert result.success
        assert entry.id == result.entry_id
        assert entry.data == data
        assert entry.metadata.expires_at == expires_at
        assert run(sql_remote_strategy.is_fresh("u1", "ACME")) is True

    def test_clear_list_and_statistics(self, sql_remote_strategy):
        run(sql_remote_strategy.set("u1", "ACME", make_financials("ACME")))
        run(sql_remote_strategy.set("u1", "BETA", make_financials("BETA")))
        run(sql_remote_strategy.set("u2", "ACME", make_financials("ACME")))

        stats = run(sql_remote_strategy.get_statistics("u1"))

        assert run(sql_remote_strategy.list_keys("u1")) == ["ACME", "BETA"]
        assert stats.total_entries == 2
        assert stats.total_size > 0
        assert run(sql_remote_strategy.clear("u1")) == 2
        assert run(sql_remote_strategy.list_keys("u2")) == ["ACME"]

    def test_outdated_schema_is_purged(self, sql_remote_strategy, sql_document_store):
        run(sql_remote_strategy.set("u1", "ACME", make_financials()))
        document = run(sql_document_store.get_document("u1", "ACME"))
        document["metadata"]["schema_version"] = "0.1.0"
        run(sql_document_store.set_document("u1", "ACME", document))

        assert run(sql_remote_strategy.list_keys("u1")) == []
        assert run(sql_remote_strategy.get("u1", "ACME")) is None
        assert run(sql_document_store.get_document("u1", "ACME")) is None

    def test_current_schema_written(self, sql_remote_strategy, sql_document_store):
        run(sql_remote_strategy.set("u1", "ACME", make_financials()))

        document = run(sql_document_store.get_document("u1", "ACME"))

        assert document["metadata"]["schema_version"] == CACHE_VERSION
        assert document["owner"] == "u1"
