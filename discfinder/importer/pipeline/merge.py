"""
Coalesce-merge: incoming non-null values win, incoming nulls never clobber.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping


def merge(existing: Any, incoming: Any) -> Any:
    return incoming if incoming is not None else existing


def coalesce_merge(target: object, incoming: Mapping[str, Any], fields: Iterable[str] | None = None) -> list[str]:
    """
    Apply ``incoming`` onto ``target`` attribute by attribute.

    Returns the names of attributes whose value actually changed.
    """

    changed: list[str] = []
    for name in fields if fields is not None else incoming.keys():
        if name not in incoming:
            continue
        current = getattr(target, name)
        value = merge(current, incoming[name])
        if value != current:
            setattr(target, name, value)
            changed.append(name)
    return changed
