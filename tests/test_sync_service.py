"""Tests for replace-on-write sync."""

from __future__ import annotations

import json

import pytest

from sheetsync.errors import InvalidItem
from sheetsync.models import DATA_HEADER
from sheetsync.record_store import RecordStore
from sheetsync.services import QueryService, SyncService


class TestSyncTable:
    def test_creates_table_and_writes_rows(self, sync_service: SyncService, store: RecordStore) -> None:
        written = sync_service.sync_table("Inventory", "amy", [{"id": "x1", "qty": 5}])

        rows = store.read_all("Inventory")
        assert written == 1
        assert rows[0] == DATA_HEADER
        username, item_id, body, updated_at = rows[1]
        assert (username, item_id) == ("amy", "x1")
        assert json.loads(body) == {"id": "x1", "qty": 5}
        assert updated_at

    def test_replace_law(self, sync_service: SyncService, query_service: QueryService) -> None:
        sync_service.sync_table("Inventory", "amy", [{"id": "a"}, {"id": "b"}, {"id": "c"}])
        sync_service.sync_table("Inventory", "amy", [{"id": "b", "qty": 2}, {"id": "d"}])

        items = query_service.get_user_data("Inventory", "amy")
        assert sorted(items, key=lambda i: i["id"]) == [{"id": "b", "qty": 2}, {"id": "d"}]

    def test_other_users_untouched(self, sync_service: SyncService, query_service: QueryService) -> None:
        sync_service.sync_table("Inventory", "bob", [{"id": "b1"}, {"id": "b2"}])
        sync_service.sync_table("Inventory", "amy", [{"id": "a1"}])
        sync_service.sync_table("Inventory", "amy", [{"id": "a2"}])

        assert query_service.get_user_data("Inventory", "bob") == [{"id": "b1"}, {"id": "b2"}]
        assert query_service.get_user_data("Inventory", "amy") == [{"id": "a2"}]

    def test_interleaved_rows_are_all_removed(self, sync_service: SyncService, store: RecordStore) -> None:
        store.get_or_create("Orders", DATA_HEADER)
        for owner, item_id in [("amy", "1"), ("bob", "2"), ("amy", "3"), ("amy", "4"), ("bob", "5")]:
            store.append_row("Orders", [owner, item_id, json.dumps({"id": item_id}), "t"])

        sync_service.sync_table("Orders", "amy", [{"id": "9"}])

        rows = store.read_all("Orders")[1:]
        assert [(row[0], row[1]) for row in rows] == [("bob", "2"), ("bob", "5"), ("amy", "9")]

    def test_empty_list_clears(self, sync_service: SyncService, query_service: QueryService) -> None:
        sync_service.sync_table("Menu", "amy", [{"id": "m1"}])
        written = sync_service.sync_table("Menu", "amy", [])

        assert written == 0
        assert query_service.get_user_data("Menu", "amy") == []

    def test_item_order_is_kept(self, sync_service: SyncService, query_service: QueryService) -> None:
        items = [{"id": str(n)} for n in range(10)]
        sync_service.sync_table("Menu", "amy", items)

        assert query_service.get_user_data("Menu", "amy") == items

    def test_numeric_id_stored_as_string(self, sync_service: SyncService, store: RecordStore) -> None:
        sync_service.sync_table("Menu", "amy", [{"id": 7, "nested": {"tags": ["a", "b"]}}])

        assert store.read_all("Menu")[1][1] == "7"


class TestSyncTables:
    def test_only_configured_tables_are_synced(self, sync_service: SyncService, store: RecordStore) -> None:
        synced = sync_service.sync_tables("amy", {
            "Inventory": [{"id": "x1"}],
            "Secrets": [{"id": "s1"}],
            "Users": [{"id": "u1"}],
        })

        assert synced == ["Inventory"]
        assert store.read_all("Secrets") == []
        assert store.read_all("Users") == []

    def test_null_payload_is_skipped(self, sync_service: SyncService, query_service: QueryService) -> None:
        sync_service.sync_table("Menu", "amy", [{"id": "m1"}])

        synced = sync_service.sync_tables("amy", {"Menu": None, "Orders": []})

        assert synced == ["Orders"]
        assert query_service.get_user_data("Menu", "amy") == [{"id": "m1"}]

    def test_missing_id_rejects_whole_request(self, sync_service: SyncService, query_service: QueryService) -> None:
        sync_service.sync_table("Inventory", "amy", [{"id": "keep"}])

        with pytest.raises(InvalidItem) as excinfo:
            sync_service.sync_tables("amy", {
                "Inventory": [{"id": "new"}],
                "Orders": [{"id": "o1"}, {"total": 3}],
            })

        assert excinfo.value.table == "Orders"
        assert excinfo.value.index == 1
        assert query_service.get_user_data("Inventory", "amy") == [{"id": "keep"}]

    @pytest.mark.parametrize("payload", [{"id": "x"}, "x", 5])
    def test_non_list_payload(self, sync_service: SyncService, payload: object) -> None:
        with pytest.raises(InvalidItem):
            sync_service.sync_tables("amy", {"Inventory": payload})

    def test_non_object_item(self, sync_service: SyncService) -> None:
        with pytest.raises(InvalidItem):
            sync_service.sync_tables("amy", {"Inventory": ["x1"]})

    def test_keepalive_runs_before_each_table(self, sync_service: SyncService, store: RecordStore) -> None:
        seen = []

        def keepalive() -> None:
            seen.append(store.row_count("Inventory"))

        synced = sync_service.sync_tables(
            "amy", {"Inventory": [{"id": "i1"}], "Menu": [{"id": "m1"}]}, keepalive=keepalive,
        )

        assert synced == ["Inventory", "Menu"]
        # Second call comes after Inventory was written.
        assert seen == [0, 2]

    def test_keepalive_failure_stops_remaining_tables(self, sync_service: SyncService, store: RecordStore) -> None:
        calls = []

        def keepalive() -> None:
            calls.append(1)
            if len(calls) == 2:
                raise RuntimeError("lock gone")

        with pytest.raises(RuntimeError):
            sync_service.sync_tables(
                "amy", {"Inventory": [{"id": "i1"}], "Menu": [{"id": "m1"}]}, keepalive=keepalive,
            )

        assert store.row_count("Inventory") == 2
        assert store.read_all("Menu") == []


class TestBatchedDeletes:
    def test_owned_rows_removed_in_one_call(self, sync_service: SyncService, store: RecordStore, monkeypatch) -> None:
        store.get_or_create("Orders", DATA_HEADER)
        for owner, item_id in [("amy", "1"), ("bob", "2"), ("amy", "3")]:
            store.append_row("Orders", [owner, item_id, json.dumps({"id": item_id}), "t"])

        calls = []
        original = store.delete_rows

        def recording(table, row_indices):
            calls.append((table, list(row_indices)))
            original(table, row_indices)

        monkeypatch.setattr(store, "delete_rows", recording)

        sync_service.sync_table("Orders", "amy", [])

        assert calls == [("Orders", [1, 3])]
        assert [row[0] for row in store.read_all("Orders")[1:]] == ["bob"]
