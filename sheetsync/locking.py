"""
Exclusive write lock shared by all write actions.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, Optional

import redis
from redis.exceptions import LockError, RedisError, ConnectionError as RedisConnectionError

from sheetsync.errors import LockLost, LockTimeout

logger = logging.getLogger(__name__)


class WriteLock(ABC):
    """
    Serializes writers. ``hold()`` raises LockTimeout instead of letting a
    write proceed unprotected.
    """

    def __init__(self, timeout: float):
        self.timeout = timeout

    @abstractmethod
    def acquire(self) -> bool:
        """Block up to ``timeout`` seconds; return whether the lock was taken."""

    @abstractmethod
    def release(self) -> None:
        """Give the lock back."""

    def refresh(self) -> None:
        """Extend a held lock that expires on its own. No-op for local locks."""

    @contextmanager
    def hold(self) -> Iterator[None]:
        if not self.acquire():
            logger.warning(f"Write lock not acquired within {self.timeout:g}s")
            raise LockTimeout(self.timeout)
        try:
            yield
        finally:
            self.release()


class LocalWriteLock(WriteLock):
    """Process-wide lock. Does not coordinate separate worker processes."""

    def __init__(self, timeout: float):
        super().__init__(timeout)
        self._lock = threading.Lock()

    def acquire(self) -> bool:
        return self._lock.acquire(timeout=self.timeout)

    def release(self) -> None:
        self._lock.release()

    def locked(self) -> bool:
        return self._lock.locked()


class RedisWriteLock(WriteLock):
    """
    Lock held in redis, so writes are serialized across every worker sharing
    the same REDIS_URL. ``ttl`` bounds how long a crashed holder blocks others.

    The lock expires ``ttl`` seconds after it was taken or last refreshed, so
    long writes must call ``refresh()`` between steps; otherwise ``ttl`` is
    the longest a single write may take.
    """

    def __init__(self, client: redis.Redis, name: str, timeout: float, ttl: float):
        super().__init__(timeout)
        self.name = name
        self.ttl = ttl
        self._lock = client.lock(name, timeout=ttl, blocking_timeout=timeout)

    def acquire(self) -> bool:
        return bool(self._lock.acquire(blocking=True, blocking_timeout=self.timeout))

    def release(self) -> None:
        try:
            self._lock.release()
        except LockError:
            # Expired (ttl elapsed) or taken over; nothing left to release.
            logger.warning(f"Write lock '{self.name}' was no longer owned at release")

    def refresh(self) -> None:
        try:
            # Resets the expiry to the full ttl.
            self._lock.reacquire()
        except LockError as e:
            logger.error(f"Write lock '{self.name}' lost before the write finished: {e}")
            raise LockLost(self.name) from e


def _connect_redis(config) -> Optional[redis.Redis]:
    redis_url = getattr(config, 'REDIS_URL', '')
    if not redis_url:
        return None

    connection_params = {
        'socket_connect_timeout': config.REDIS_SOCKET_CONNECT_TIMEOUT,
        'socket_timeout': config.REDIS_SOCKET_TIMEOUT,
        'retry_on_timeout': True,
        'health_check_interval': 30
    }

    if redis_url.startswith('rediss://'):
        import ssl
        connection_params['ssl_cert_reqs'] = ssl.CERT_NONE
        connection_params['ssl_check_hostname'] = False

    try:
        client = redis.from_url(redis_url, **connection_params)
        client.ping()
        return client
    except (RedisConnectionError, RedisError) as e:
        logger.warning(f"Redis unavailable ({e}); falling back to process-local write lock")
        return None


def create_write_lock(config) -> WriteLock:
    """Redis-backed lock when REDIS_URL is reachable, otherwise process-local."""
    client = _connect_redis(config)
    if client is not None:
        logger.info(f"Using redis write lock '{config.WRITE_LOCK_NAME}'")
        return RedisWriteLock(
            client,
            name=config.WRITE_LOCK_NAME,
            timeout=config.WRITE_LOCK_TIMEOUT,
            ttl=config.WRITE_LOCK_TTL,
        )
    return LocalWriteLock(config.WRITE_LOCK_TIMEOUT)
