"""
Replace-on-write sync of per-user rows.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Mapping, Optional, Sequence

from sheetsync.models import DATA_HEADER, TableRecord
from sheetsync.record_store import RecordStore
from sheetsync.utils.validators import validate_items

logger = logging.getLogger(__name__)


class SyncService:
    """
    Replaces all rows a user owns in a data table with a new item list.

    A sync runs in two phases, delete-by-username then bulk insert. They are
    not atomic: a reader without the write lock can see the table between
    the two phases.
    """

    def __init__(self, store: RecordStore, data_tables: Sequence[str], users_table: str = 'Users'):
        self.store = store
        self.data_tables = [t for t in data_tables if t != users_table]

    def sync_table(self, table: str, username: str, items: Iterable[dict]) -> int:
        """
        Replace ``username``'s rows in ``table`` with ``items``.

        Returns the number of rows written.
        """
        self.store.get_or_create(table, DATA_HEADER)
        rows = self.store.read_all(table)

        owned = [index for index in range(1, len(rows))
                 if rows[index] and str(rows[index][0]) == username]
        if owned:
            self.store.delete_rows(table, owned)
        removed = len(owned)

        new_rows = [TableRecord.from_item(table, username, item).to_row() for item in items]
        if new_rows:
            start = len(rows) - removed
            self.store.write_range(table, start, new_rows)

        logger.info(f"Synced {table} for '{username}': removed {removed}, wrote {len(new_rows)}")
        return len(new_rows)

    def sync_tables(
        self,
        username: str,
        data: Mapping[str, Optional[List[dict]]],
        keepalive: Optional[Callable[[], None]] = None,
    ) -> List[str]:
        """
        Sync every configured data table present in ``data``.

        All payloads are validated before any table is touched. Unknown table
        names are ignored, as is a table whose payload is null. ``keepalive`` runs
        before each table; the coordinator passes the write lock's ``refresh``
        so an expiring lock is extended for as long as the sync makes progress.
        """
        selected = [(table, data[table]) for table in self.data_tables
                    if data.get(table) is not None]
        for table, items in selected:
            validate_items(table, items)

        ignored = [name for name in data if name not in self.data_tables]
        if ignored:
            logger.debug(f"Ignoring unknown tables in sync for '{username}': {ignored}")

        synced = []
        for table, items in selected:
            if keepalive is not None:
                keepalive()
            self.sync_table(table, username, items)
            synced.append(table)
        return synced
