"""
Ownership checks for per-user book records.
"""

from typing import Any, Dict, Mapping, Optional

from library.models import ErrorKind

OWNER_FIELDS = ("user_id", "userId")


def check_ownership(document: Optional[Mapping[str, Any]], user_id: str) -> Optional[ErrorKind]:
    """
    Decide whether ``user_id`` may access a stored book.

    Existence is checked before ownership, so a missing book is always
    reported as NOT_FOUND.

    Args:
        document: Stored book document, or None if no such book
        user_id: Authenticated caller's identifier

    Returns:
        None when access is allowed, otherwise the error kind
    """
    if document is None:
        return ErrorKind.NOT_FOUND
    if document.get("user_id") != user_id:
        return ErrorKind.FORBIDDEN
    return None


def strip_owner(updates: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of an update payload without any owner field."""
    return {key: value for key, value in updates.items() if key not in OWNER_FIELDS}
