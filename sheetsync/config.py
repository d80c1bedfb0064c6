"""
Application configuration.
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _env_list(name, default):
    raw = os.environ.get(name)
    if not raw:
        return list(default)
    return [part.strip() for part in raw.split(',') if part.strip()]


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    DEBUG = os.environ.get('FLASK_DEBUG', 'False').lower() == 'true'

    # Persistence
    DATABASE_URL = os.environ.get('DATABASE_URL') or 'sqlite:///sheet_sync.db'
    # "sql" (SQLAlchemy, default) or "memory" (process-local, lost on restart)
    RECORD_STORE = os.environ.get('RECORD_STORE', 'sql').lower()

    # Table layout. Adding a data table means adding its name here.
    USERS_TABLE = 'Users'
    DATA_TABLES = _env_list('DATA_TABLES', [
        'Inventory',
        'Menu',
        'Orders',
        'PurchaseOrders',
        'Transactions',
        'Notifications',
    ])

    # Write lock
    WRITE_LOCK_TIMEOUT = float(os.environ.get('WRITE_LOCK_TIMEOUT', '10'))
    # Redis lock auto-expiry, so a crashed worker cannot hold it forever
    WRITE_LOCK_TTL = float(os.environ.get('WRITE_LOCK_TTL', '60'))
    WRITE_LOCK_NAME = os.environ.get('WRITE_LOCK_NAME', 'sheet-sync:write-lock')

    # Redis (optional). When unset the write lock is process-local.
    REDIS_URL = os.environ.get('REDIS_URL', '')
    REDIS_SOCKET_CONNECT_TIMEOUT = float(os.environ.get('REDIS_SOCKET_CONNECT_TIMEOUT', '5'))
    REDIS_SOCKET_TIMEOUT = float(os.environ.get('REDIS_SOCKET_TIMEOUT', '5'))

    # Store password hashes instead of the raw string
    HASH_PASSWORDS = os.environ.get('HASH_PASSWORDS', 'True').lower() == 'true'

    ALLOWED_ORIGINS = _env_list('ALLOWED_ORIGINS', ['*'])

    # Add Render host if available
    RENDER_HOST = os.environ.get('RENDER_EXTERNAL_URL', '')
    if RENDER_HOST and '*' not in ALLOWED_ORIGINS:
        ALLOWED_ORIGINS.append(RENDER_HOST)
