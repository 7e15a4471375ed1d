"""Unit tests for store interface abstract classes."""

import pytest

from src.core.interfaces import ILocalStore, IRemoteStore


class TestILocalStoreInterface:
    def test_is_abstract_class(self):
        with pytest.raises(TypeError, match="Can't instantiate abstract class"):
            ILocalStore()

    def test_queue_methods_declared(self):
        for name in (
            "append_queue_entry",
            "get_unsynced_entries",
            "mark_synced",
            "record_sync_failure",
            "clear_synced_entries",
        ):
            assert name in ILocalStore.__abstractmethods__


class TestIRemoteStoreInterface:
    def test_is_abstract_class(self):
        with pytest.raises(TypeError, match="Can't instantiate abstract class"):
            IRemoteStore()

    def test_partial_implementation_rejected(self):
        class UpsertOnly(IRemoteStore):
            async def upsert(self, table, record):
                return record

        with pytest.raises(TypeError):
            UpsertOnly()
