"""
Database models and the row-level records stored in them.

Every table is kept as a "sheet": a header row followed by data rows, in
insertion order. Cells are stored as a JSON array so strings such as
"0042" are never coerced into numbers.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Sequence

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String

from sheetsync.database import Base
from sheetsync.errors import MalformedRecord

USERS_HEADER = ['username', 'password', 'created_at']
DATA_HEADER = ['username', 'item_id', 'json_body', 'updated_at']


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Sheet(Base):
    """A named table. Created lazily, with its header as the first row."""

    __tablename__ = "sheets"

    name = Column(String(128), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False,
                        default=lambda: datetime.now(timezone.utc))


class SheetRow(Base):
    """
    One row of a sheet. Row order is the autoincrement id.
    """

    __tablename__ = "sheet_rows"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sheet_name = Column(String(128), ForeignKey("sheets.name"), nullable=False, index=True)
    cells = Column(JSON, nullable=False)


@dataclass
class Credential:
    username: str
    password: str
    created_at: str

    def to_row(self) -> List[Any]:
        return [self.username, self.password, self.created_at]

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "Credential":
        # Compare as strings: a numeric-looking username may come back as a number.
        return cls(
            username=str(row[0]),
            password=str(row[1]) if len(row) > 1 else '',
            created_at=str(row[2]) if len(row) > 2 else '',
        )


@dataclass
class TableRecord:
    """
    One application item owned by one user in one data table.

    ``body`` is opaque: only ``id`` is ever read out of it.
    """

    table_name: str
    username: str
    item_id: str
    body: Any
    updated_at: str

    @classmethod
    def from_item(cls, table_name: str, username: str, item: dict) -> "TableRecord":
        return cls(
            table_name=table_name,
            username=username,
            item_id=str(item['id']),
            body=item,
            updated_at=utc_now(),
        )

    def to_row(self) -> List[Any]:
        return [self.username, self.item_id, serialize_body(self.body), self.updated_at]

    @classmethod
    def from_row(cls, table_name: str, row: Sequence[Any]) -> "TableRecord":
        if len(row) < 3:
            raise MalformedRecord(table_name, "row has fewer than 3 cells")
        return cls(
            table_name=table_name,
            username=str(row[0]),
            item_id=str(row[1]),
            body=deserialize_body(table_name, row[2]),
            updated_at=str(row[3]) if len(row) > 3 else '',
        )


def serialize_body(body: Any) -> str:
    return json.dumps(body, separators=(',', ':'), ensure_ascii=False)


def deserialize_body(table_name: str, blob: Any) -> Any:
    try:
        return json.loads(blob)
    except (TypeError, ValueError) as exc:
        raise MalformedRecord(table_name, str(exc)) from exc
