"""
Tabular record storage.

A table is an ordered list of rows; row 0 is the header. Row indices used by
``delete_row``, ``delete_rows`` and ``write_range`` are positions in
``read_all`` output.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Sequence

from sqlalchemy import delete, func, select

from sheetsync.database import db_session
from sheetsync.models import Sheet, SheetRow

logger = logging.getLogger(__name__)

Row = List[Any]


class RecordStore(ABC):
    """Storage contract used by the credential, sync and query services."""

    @abstractmethod
    def read_all(self, table: str) -> List[Row]:
        """Return every row of ``table``, header first. Unknown tables are empty."""

    @abstractmethod
    def get_or_create(self, table: str, header: Sequence[Any]) -> None:
        """Create ``table`` with ``header`` as row 0 unless it already exists."""

    @abstractmethod
    def append_row(self, table: str, row: Sequence[Any]) -> None:
        """Add ``row`` after the current last row."""

    @abstractmethod
    def delete_row(self, table: str, row_index: int) -> None:
        """Remove the row at ``row_index``. Later rows shift up by one."""

    def delete_rows(self, table: str, row_indices: Iterable[int]) -> None:
        """
        Remove several rows at once. Indices refer to positions before any of
        them is removed. Backends that can should override this with a single
        transaction.
        """
        indices = sorted(set(row_indices), reverse=True)
        count = self.row_count(table)
        for row_index in indices:
            _check_delete_index(table, row_index, count)
        for row_index in indices:
            self.delete_row(table, row_index)

    @abstractmethod
    def write_range(self, table: str, start_row: int, rows: Sequence[Sequence[Any]]) -> None:
        """Write ``rows`` as one contiguous block starting at ``start_row``.

        ``start_row`` must be the current row count: blocks are only ever
        written immediately after the last existing row.
        """

    def row_count(self, table: str) -> int:
        return len(self.read_all(table))


def _check_delete_index(table: str, row_index: int, count: int) -> None:
    if row_index < 1 or row_index >= count:
        raise IndexError(f"{table}: cannot delete row {row_index} (rows: {count})")


def _check_write_start(table: str, start_row: int, count: int) -> None:
    if start_row != count:
        raise ValueError(
            f"{table}: range must start right after the last row "
            f"(expected {count}, got {start_row})"
        )


class MemoryRecordStore(RecordStore):
    """
    Process-local store. Contents are lost on restart.
    """

    def __init__(self):
        self._tables: Dict[str, List[Row]] = {}
        self._lock = threading.Lock()

    def read_all(self, table: str) -> List[Row]:
        with self._lock:
            return [list(row) for row in self._tables.get(table, [])]

    def get_or_create(self, table: str, header: Sequence[Any]) -> None:
        with self._lock:
            if table not in self._tables:
                self._tables[table] = [list(header)]
                logger.info(f"Created table '{table}'")

    def append_row(self, table: str, row: Sequence[Any]) -> None:
        with self._lock:
            self._tables.setdefault(table, []).append(list(row))

    def delete_row(self, table: str, row_index: int) -> None:
        with self._lock:
            rows = self._tables.get(table, [])
            _check_delete_index(table, row_index, len(rows))
            del rows[row_index]

    def write_range(self, table: str, start_row: int, rows: Sequence[Sequence[Any]]) -> None:
        with self._lock:
            existing = self._tables.setdefault(table, [])
            _check_write_start(table, start_row, len(existing))
            existing.extend(list(row) for row in rows)


class SqlRecordStore(RecordStore):
    """
    SQLAlchemy-backed store. Each call runs in its own session.
    """

    def read_all(self, table: str) -> List[Row]:
        with db_session() as session:
            cells = session.execute(
                select(SheetRow.cells)
                .where(SheetRow.sheet_name == table)
                .order_by(SheetRow.id)
            ).scalars().all()
        return [list(row) for row in cells]

    def row_count(self, table: str) -> int:
        with db_session() as session:
            return session.execute(
                select(func.count(SheetRow.id)).where(SheetRow.sheet_name == table)
            ).scalar_one()

    def get_or_create(self, table: str, header: Sequence[Any]) -> None:
        with db_session() as session:
            if session.get(Sheet, table) is not None:
                return
            session.add(Sheet(name=table))
            # Flush the sheet first so the header row's foreign key resolves.
            session.flush()
            session.add(SheetRow(sheet_name=table, cells=list(header)))
        logger.info(f"Created table '{table}'")

    def append_row(self, table: str, row: Sequence[Any]) -> None:
        with db_session() as session:
            session.add(SheetRow(sheet_name=table, cells=list(row)))

    def delete_row(self, table: str, row_index: int) -> None:
        with db_session() as session:
            ids = session.execute(
                select(SheetRow.id)
                .where(SheetRow.sheet_name == table)
                .order_by(SheetRow.id)
            ).scalars().all()
            _check_delete_index(table, row_index, len(ids))
            row = session.get(SheetRow, ids[row_index])
            session.delete(row)

    def delete_rows(self, table: str, row_indices: Iterable[int]) -> None:
        # All indices resolve against one id snapshot taken before deleting.
        indices = sorted(set(row_indices))
        if not indices:
            return
        with db_session() as session:
            ids = session.execute(
                select(SheetRow.id)
                .where(SheetRow.sheet_name == table)
                .order_by(SheetRow.id)
            ).scalars().all()
            for row_index in indices:
                _check_delete_index(table, row_index, len(ids))
            session.execute(delete(SheetRow).where(SheetRow.id.in_([ids[i] for i in indices])))

    def write_range(self, table: str, start_row: int, rows: Sequence[Sequence[Any]]) -> None:
        with db_session() as session:
            count = session.execute(
                select(func.count(SheetRow.id)).where(SheetRow.sheet_name == table)
            ).scalar_one()
            _check_write_start(table, start_row, count)
            # add_all preserves order, so ids (and row order) follow ``rows``.
            session.add_all([SheetRow(sheet_name=table, cells=list(row)) for row in rows])


def create_record_store(config) -> RecordStore:
    """Build the store named by ``config.RECORD_STORE``."""
    kind = getattr(config, 'RECORD_STORE', 'sql')
    if kind == 'memory':
        logger.warning("Using in-memory record store; data is lost on restart")
        return MemoryRecordStore()
    if kind == 'sql':
        return SqlRecordStore()
    raise ValueError(f"Unknown RECORD_STORE '{kind}' (expected 'sql' or 'memory')")
