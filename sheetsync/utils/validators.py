"""
Validation utilities for incoming request payloads.
"""
from sheetsync.errors import InvalidItem, MissingField


def normalize_username(raw_username):
    """
    Coerce a username to a string. Usernames are free-form and compared
    exactly: no trimming, no case folding, no length limit.
    """
    if raw_username is None or isinstance(raw_username, (dict, list, bool)):
        return None
    username = str(raw_username)
    if not username:
        return None
    return username


def require_username(payload):
    username = normalize_username(payload.get('username'))
    if not username:
        raise MissingField('username')
    return username


def require_password(payload):
    """
    Passwords are kept as strings; numbers are coerced so 1234 and "1234" agree.
    """
    password = payload.get('password')
    if password is None or isinstance(password, (dict, list, bool)):
        raise MissingField('password')
    password = str(password)
    if not password:
        raise MissingField('password')
    return password


def require_sync_data(payload):
    data = payload.get('data')
    if not isinstance(data, dict):
        raise MissingField('data')
    return data


def validate_items(table, items):
    """
    Check one table's payload: a list of objects, each carrying a non-null id.
    """
    if not isinstance(items, list):
        raise InvalidItem(table, f"expected a list, got {type(items).__name__}")
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise InvalidItem(table, f"expected an object, got {type(item).__name__}", index)
        if item.get('id') is None:
            raise InvalidItem(table, "missing id", index)
    return items
