"""Pytest fixtures for sheet-sync tests.

Provides record stores (in-memory and SQLite-backed), services wired to
them, and a Flask test client.
"""

from __future__ import annotations

from pathlib import Path
from typing import Generator, Type

import pytest
from flask import Flask
from flask.testing import FlaskClient

from sheetsync import create_app
from sheetsync.config import Config
from sheetsync.database import init_db
from sheetsync.locking import LocalWriteLock
from sheetsync.record_store import MemoryRecordStore, RecordStore, SqlRecordStore
from sheetsync.services import (
    CredentialService,
    QueryService,
    RequestCoordinator,
    SyncService,
)

DATA_TABLES = ["Inventory", "Menu", "Orders"]


@pytest.fixture
def memory_store() -> MemoryRecordStore:
    """Empty in-memory record store."""
    return MemoryRecordStore()


@pytest.fixture
def sql_store(tmp_path: Path) -> SqlRecordStore:
    """Empty SQLite-backed record store in a temporary directory."""
    init_db(f"sqlite:///{tmp_path / 'sheets.db'}")
    return SqlRecordStore()


@pytest.fixture(params=["memory", "sql"])
def store(request: pytest.FixtureRequest) -> RecordStore:
    """Each test using this fixture runs once per backend."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def credentials(store: RecordStore) -> CredentialService:
    return CredentialService(store, "Users", hash_passwords=True)


@pytest.fixture
def sync_service(store: RecordStore) -> SyncService:
    return SyncService(store, DATA_TABLES)


@pytest.fixture
def query_service(store: RecordStore) -> QueryService:
    return QueryService(store, DATA_TABLES)


@pytest.fixture
def write_lock() -> LocalWriteLock:
    return LocalWriteLock(timeout=0.2)


@pytest.fixture
def coordinator(store: RecordStore, write_lock: LocalWriteLock) -> RequestCoordinator:
    return RequestCoordinator(store, write_lock, DATA_TABLES)


@pytest.fixture
def test_config(tmp_path: Path) -> Type[Config]:
    """Config subclass pointing at a temporary SQLite database."""

    class TestConfig(Config):
        TESTING = True
        DATABASE_URL = f"sqlite:///{tmp_path / 'app.db'}"
        RECORD_STORE = "sql"
        REDIS_URL = ""
        DATA_TABLES = list(DATA_TABLES)
        WRITE_LOCK_TIMEOUT = 0.5
        ALLOWED_ORIGINS = ["*"]

    return TestConfig


@pytest.fixture
def app(test_config: Type[Config]) -> Flask:
    return create_app(test_config)


@pytest.fixture
def client(app: Flask) -> Generator[FlaskClient, None, None]:
    with app.test_client() as test_client:
        yield test_client
