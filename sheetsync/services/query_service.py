"""
Read-side access to synced data.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from sheetsync.errors import MalformedRecord
from sheetsync.models import TableRecord
from sheetsync.record_store import RecordStore

logger = logging.getLogger(__name__)


class QueryService:
    """Takes no lock; may observe a table mid-sync."""

    def __init__(self, store: RecordStore, data_tables: Sequence[str], users_table: str = 'Users'):
        self.store = store
        self.data_tables = [t for t in data_tables if t != users_table]

    def get_user_data(self, table: str, username: str) -> List[Any]:
        items = []
        rows = self.store.read_all(table)
        for index, row in enumerate(rows[1:], start=1):
            if not row or str(row[0]) != username:
                continue
            try:
                items.append(TableRecord.from_row(table, row).body)
            except MalformedRecord as e:
                logger.warning(f"Skipping malformed row {index} in {table} for '{username}': {e.reason}")
        return items

    def get_all_user_data(self, username: str) -> Dict[str, List[Any]]:
        return {table: self.get_user_data(table, username) for table in self.data_tables}
