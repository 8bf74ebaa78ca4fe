"""Shallow before/after diff between two record snapshots.

Only top-level keys are compared. Nested values are compared as a
whole by structural equality, never diffed recursively.
"""

import json
from collections.abc import Iterable, Mapping
from typing import Any

from activity_logger.core.constants import INTERNAL_FIELD_PREFIX


_MISSING = object()


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def _values_differ(old: Any, new: Any) -> bool:
    """Compare two values structurally, falling back to identity.

    Equality alone treats ``True`` as ``1`` and ``False`` as ``0``, even
    inside containers, so values that compare equal are also checked by
    their JSON form.
    """
    if old is _MISSING or new is _MISSING:
        return old is not new
    try:
        if old != new:
            return True
    except Exception:
        # Values that cannot be compared (cycles, ambiguous truth values)
        return old is not new
    try:
        return _canonical(old) != _canonical(new)
    except (TypeError, ValueError):
        return False


def _is_ignored(key: str, value: Any, exclude: frozenset[str]) -> bool:
    return (
        key in exclude
        or str(key).startswith(INTERNAL_FIELD_PREFIX)
        or callable(value)
    )


def calculate_changes(
    original: Mapping[str, Any] | None,
    updated: Mapping[str, Any] | None,
    exclude_fields: Iterable[str] = (),
    *,
    include_removed: bool = False,
) -> dict[str, Any]:
    """Calculate the changes between an original and an updated record.

    Keys are taken from ``updated``. A key missing from ``original`` counts
    as changed and is reported with ``None`` as its before value. Keys that
    exist only in ``original`` are ignored unless ``include_removed`` is set,
    in which case they are reported with ``None`` as their after value.

    Args:
        original: Record snapshot before the mutation
        updated: Record snapshot after the mutation
        exclude_fields: Field names never reported
        include_removed: Also report keys dropped from ``updated``

    Returns:
        ``{"before": {...}, "after": {...}}`` holding only differing keys,
        or ``{}`` when either snapshot is missing
    """
    if original is None or updated is None:
        return {}

    exclude = frozenset(exclude_fields)
    before: dict[str, Any] = {}
    after: dict[str, Any] = {}

    for key, new in updated.items():
        old = original.get(key, _MISSING)
        if _is_ignored(key, new, exclude) or callable(old):
            continue
        if _values_differ(old, new):
            before[key] = None if old is _MISSING else old
            after[key] = new

    if include_removed:
        for key, old in original.items():
            if key in updated or _is_ignored(key, old, exclude):
                continue
            before[key] = old
            after[key] = None

    return {"before": before, "after": after}


def has_changes(changes: Mapping[str, Any]) -> bool:
    """Return True if a change payload reports at least one field."""
    return bool(changes.get("before")) or bool(changes.get("after"))
