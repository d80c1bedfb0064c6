"""
Errors raised while handling a request.

Every ``SyncError`` is caught by the request coordinator and turned into an
error envelope; none of them reach the HTTP layer.
"""
from __future__ import annotations

from typing import Optional


class SyncError(Exception):
    """Base class with a human-readable message and a stable code."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    @property
    def code(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.code}(message='{self.message}')"


class MissingAction(SyncError):
    def __init__(self) -> None:
        super().__init__("Missing action")


class UnknownAction(SyncError):
    def __init__(self, action: Optional[str] = None, read: bool = False) -> None:
        self.action = action
        super().__init__("Unknown GET action" if read else "Unknown action")


class MissingField(SyncError):
    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Missing {field}")


class DuplicateUser(SyncError):
    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__("Username already taken")


class InvalidCredentials(SyncError):
    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class InvalidItem(SyncError):
    """A sync payload that cannot be stored (not a list, item without id)."""

    def __init__(self, table: str, reason: str, index: Optional[int] = None) -> None:
        self.table = table
        self.index = index
        self.reason = reason
        where = table if index is None else f"{table}[{index}]"
        super().__init__(f"Invalid item in {where}: {reason}")


class LockTimeout(SyncError):
    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Could not acquire write lock within {timeout:g}s, try again")


class LockLost(SyncError):
    """The write lock expired while a write was still running."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("Write lock expired before the write finished, try again")


class MalformedRecord(ValueError):
    """
    A stored row whose body does not deserialize. Readers skip these rows.
    """

    def __init__(self, table: str, reason: str) -> None:
        self.table = table
        self.reason = reason
        super().__init__(f"{table}: {reason}")
