"""
Controlled-vocabulary mapping for legacy role and source-status columns.
"""

from __future__ import annotations

from discfinder.models.enums import UserRole

from .text import clean_string, parse_int

_ROLE_LOOKUP = {
    "admin": UserRole.ADMIN,
    "user": UserRole.USER,
    "rakerdiver": UserRole.RAKERDIVER,
    "guest": UserRole.GUEST,
}

ACTIVE_SOURCE_STATUSES = frozenset({"active", "enabled"})


def map_role(value: object | None) -> UserRole:
    """
    Map a free-text role to :class:`UserRole`.

    Blank, missing and unrecognised values fall back to ``guest`` so a typo in
    a legacy export can never grant elevated access.
    """

    text = clean_string(value)
    if text is None:
        return UserRole.GUEST
    return _ROLE_LOOKUP.get(text.lower(), UserRole.GUEST)


def map_optional_role(value: object | None) -> UserRole | None:
    """Like :func:`map_role` but keeps a blank column distinguishable as ``None``."""

    if clean_string(value) is None:
        return None
    return map_role(value)


def map_source_status(value: object | None) -> bool:
    text = clean_string(value)
    return text is not None and text.lower() in ACTIVE_SOURCE_STATUSES


def parse_sort_order(value: object | None, index: int) -> int:
    """Legacy ``Sort`` column, falling back to spacing rows out by ten."""

    parsed = parse_int(value)
    return parsed if parsed is not None else index * 10
