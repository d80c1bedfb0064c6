"""
Registration and login against the Users table.
"""
from __future__ import annotations

import logging

from werkzeug.security import check_password_hash, generate_password_hash

from sheetsync.errors import DuplicateUser, InvalidCredentials
from sheetsync.models import USERS_HEADER, Credential, utc_now
from sheetsync.record_store import RecordStore

logger = logging.getLogger(__name__)


class CredentialService:
    """
    Owns the Users table. Rows are only ever appended.
    """

    def __init__(self, store: RecordStore, table: str = 'Users', hash_passwords: bool = True):
        self.store = store
        self.table = table
        self.hash_passwords = hash_passwords

    def register(self, username: str, password: str) -> Credential:
        username = str(username)
        self.store.get_or_create(self.table, USERS_HEADER)

        for credential in self._credentials():
            if credential.username == username:
                raise DuplicateUser(username)

        stored = generate_password_hash(str(password)) if self.hash_passwords else str(password)
        credential = Credential(username=username, password=stored, created_at=utc_now())
        self.store.append_row(self.table, credential.to_row())
        logger.info(f"Registered user '{username}'")
        return credential

    def authenticate(self, username: str, password: str) -> Credential:
        username = str(username)
        password = str(password)

        for credential in self._credentials():
            if credential.username == username and self._password_matches(credential.password, password):
                return credential

        logger.info(f"Failed login for '{username}'")
        raise InvalidCredentials()

    def _credentials(self):
        rows = self.store.read_all(self.table)
        for row in rows[1:]:
            if row:
                yield Credential.from_row(row)

    def _password_matches(self, stored: str, candidate: str) -> bool:
        if not self.hash_passwords:
            return stored == candidate
        try:
            return check_password_hash(stored, candidate)
        except ValueError:
            # Not a hash: a row written while hashing was disabled.
            return False
