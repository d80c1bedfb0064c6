"""
Request dispatch: action parsing, write locking and response envelopes.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from sheetsync.config import Config
from sheetsync.errors import MissingAction, SyncError, UnknownAction
from sheetsync.locking import WriteLock, create_write_lock
from sheetsync.record_store import RecordStore, create_record_store
from sheetsync.services.credential_service import CredentialService
from sheetsync.services.query_service import QueryService
from sheetsync.services.sync_service import SyncService
from sheetsync.utils.validators import (
    require_password,
    require_sync_data,
    require_username,
)

logger = logging.getLogger(__name__)

WRITE_ACTIONS = ('REGISTER', 'LOGIN', 'SYNC_DATA')
READ_ACTIONS = ('GET_DATA',)


def success(message: Optional[str] = None, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    envelope: Dict[str, Any] = {'status': 'success'}
    if message is not None:
        envelope['message'] = message
    if data is not None:
        envelope['data'] = data
    return envelope


def error(message: str, code: str) -> Dict[str, Any]:
    return {'status': 'error', 'code': code, 'message': message}


class RequestCoordinator:
    """
    Entry point for both endpoints. Always returns an envelope, never raises.
    """

    def __init__(
        self,
        store: RecordStore,
        write_lock: WriteLock,
        data_tables,
        users_table: str = 'Users',
        hash_passwords: bool = True,
    ):
        self.store = store
        self.write_lock = write_lock
        self.credentials = CredentialService(store, users_table, hash_passwords=hash_passwords)
        self.sync = SyncService(store, data_tables, users_table)
        self.query = QueryService(store, data_tables, users_table)

    def handle_write(self, payload: Any) -> Dict[str, Any]:
        """Handle REGISTER, LOGIN or SYNC_DATA."""
        if not isinstance(payload, Mapping):
            payload = {}
        return self._run(payload, WRITE_ACTIONS, self._dispatch_write, read=False)

    def handle_read(self, params: Any) -> Dict[str, Any]:
        """Handle GET_DATA."""
        if not isinstance(params, Mapping):
            params = {}
        return self._run(params, READ_ACTIONS, self._dispatch_read, read=True)

    def _run(self, payload, allowed, dispatch, read):
        action = payload.get('action')
        try:
            if not action:
                raise MissingAction()
            if action not in allowed:
                raise UnknownAction(action, read=read)
            return dispatch(action, payload)
        except SyncError as e:
            logger.info(f"{action or '<none>'} failed: {e.code}: {e.message}")
            return error(e.message, e.code)
        except Exception as e:
            logger.error(f"Unexpected error handling {action}: {e}", exc_info=True)
            return error("Internal server error", 'InternalError')

    def _dispatch_write(self, action: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        # Validate before taking the lock: nothing here touches storage.
        username = require_username(payload)

        if action == 'REGISTER':
            password = require_password(payload)
            with self.write_lock.hold():
                self.credentials.register(username, password)
            return success('User registered')

        if action == 'LOGIN':
            password = require_password(payload)
            with self.write_lock.hold():
                self.credentials.authenticate(username, password)
            return success('Login successful')

        data = require_sync_data(payload)
        with self.write_lock.hold():
            self.sync.sync_tables(username, data, keepalive=self.write_lock.refresh)
        return success('Data synced')

    def _dispatch_read(self, action: str, params: Mapping[str, Any]) -> Dict[str, Any]:
        username = require_username(params)
        return success(data=self.query.get_all_user_data(username))


def build_request_coordinator(
    config=Config,
    store: Optional[RecordStore] = None,
    write_lock: Optional[WriteLock] = None,
) -> RequestCoordinator:
    """Build the coordinator described by ``config``."""
    return RequestCoordinator(
        store=store if store is not None else create_record_store(config),
        write_lock=write_lock if write_lock is not None else create_write_lock(config),
        data_tables=config.DATA_TABLES,
        users_table=config.USERS_TABLE,
        hash_passwords=config.HASH_PASSWORDS,
    )
