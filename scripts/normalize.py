"""
Record normalization.

Turns heterogeneous raw values (strings, numbers, identity objects, lists)
into the display strings the table and the filters work on.
"""

from __future__ import annotations

from typing import Any, Mapping

from fields import FieldDescriptor, FieldRegistry, strip_branch
from formatting import PLACEHOLDER

# Identity sub-properties, most readable first
PERSON_KEYS = ("displayName", "uniqueName", "mailAddress")

APPROVED_VOTE = 5


def person_name(value: Any) -> str:
    """Display name of an identity object."""
    if isinstance(value, Mapping):
        for key in PERSON_KEYS:
            name = value.get(key)
            if name:
                return str(name)
        return PLACEHOLDER
    if value in (None, ""):
        return PLACEHOLDER
    return str(value)


def approval_status(reviewers: Any) -> str:
    """Summarize reviewer votes: any rejection wins, then any approval."""
    if not isinstance(reviewers, list):
        return "Pending"
    votes = [
        r.get("vote") for r in reviewers
        if isinstance(r, Mapping) and isinstance(r.get("vote"), (int, float))
        and not isinstance(r.get("vote"), bool)
    ]
    if any(v < 0 for v in votes):
        return "Rejected"
    if any(v >= APPROVED_VOTE for v in votes):
        return "Approved"
    return "Pending"


def _stringify(value: Any) -> str:
    text = str(value)
    return text if text else PLACEHOLDER


def normalize_value(descriptor: FieldDescriptor, raw: Any) -> str:
    """Normalize one raw value according to its field's kind."""
    if descriptor.kind == "votes":
        return approval_status(raw)

    if raw is None or raw == "":
        return PLACEHOLDER

    kind = descriptor.kind
    if kind == "person" and isinstance(raw, Mapping):
        return person_name(raw)

    if kind == "people" and isinstance(raw, list):
        names = [person_name(item) for item in raw]
        names = [n for n in names if n != PLACEHOLDER]
        return ", ".join(names) if names else PLACEHOLDER

    if kind == "path" and isinstance(raw, str):
        leaf = raw.split(descriptor.delimiter or "\\")[-1].strip()
        return leaf or PLACEHOLDER

    if kind == "tags" and isinstance(raw, str):
        tags = [t.strip() for t in raw.split(descriptor.delimiter or ";")]
        tags = [t for t in tags if t]
        return ", ".join(tags) if tags else PLACEHOLDER

    if kind == "branch" and isinstance(raw, str):
        return strip_branch(raw) or PLACEHOLDER

    if isinstance(raw, (list, tuple)):
        items = [_stringify(item) for item in raw if item is not None]
        return ", ".join(items) if items else PLACEHOLDER

    return _stringify(raw)


def normalize(field_id: str, raw: Any, registry: FieldRegistry) -> str:
    """Normalize a raw value for the field registered under field_id."""
    return normalize_value(registry.describe(field_id), raw)


def cell_value(record: Mapping[str, Any], descriptor: FieldDescriptor) -> str:
    """Normalized display string of one field of one record."""
    return normalize_value(descriptor, descriptor.raw_value(record))


def normalize_record(record: Mapping[str, Any], fields: list[FieldDescriptor]) -> dict[str, str]:
    """Map field id -> display string for the given fields."""
    return {d.id: cell_value(record, d) for d in fields}
