"""
Filter engine.

A filter is a single (field, pattern) pair matched case-insensitively
against the normalized value of that field, so it sees exactly what the
table shows.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from fields import FieldDescriptor, FieldRegistry
from normalize import cell_value

Record = Mapping[str, Any]


class InvalidPatternError(ValueError):
    """A filter pattern that does not compile."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


@dataclass(frozen=True)
class ActiveFilter:
    """Field and compiled pattern; both set or both None."""

    field: str | None = None
    pattern: re.Pattern | None = None

    def __post_init__(self) -> None:
        if (self.field is None) != (self.pattern is None):
            raise ValueError("filter needs both a field and a pattern, or neither")

    @property
    def active(self) -> bool:
        return self.field is not None

    def describe(self, registry: FieldRegistry) -> str:
        if not self.active:
            return "none"
        label = registry.describe(self.field).label
        return f"{label} ~ /{self.pattern.pattern}/i"


NO_FILTER = ActiveFilter()


def compile_pattern(text: str | re.Pattern) -> re.Pattern:
    """Compile a case-insensitive pattern or raise InvalidPatternError."""
    if isinstance(text, re.Pattern):
        if text.flags & re.IGNORECASE:
            return text
        text = text.pattern
    try:
        return re.compile(text, re.IGNORECASE)
    except re.error as exc:
        raise InvalidPatternError(text, str(exc)) from exc


def make_filter(field_id: str | None, pattern: str | re.Pattern | None) -> ActiveFilter:
    """Build an ActiveFilter; a missing field or pattern means no filter."""
    if not field_id or pattern is None:
        return NO_FILTER
    return ActiveFilter(field_id, compile_pattern(pattern))


def matches(record: Record, descriptor: FieldDescriptor, pattern: re.Pattern) -> bool:
    return pattern.search(cell_value(record, descriptor)) is not None


def apply_filter(
    records: Sequence[Record],
    field_id: str | None,
    pattern: str | re.Pattern | None,
    registry: FieldRegistry,
) -> list[Record]:
    """Records whose normalized field value matches pattern, in order.

    An empty field or pattern returns the records unchanged.
    """
    if not field_id or pattern is None:
        return list(records)
    compiled = compile_pattern(pattern)
    descriptor = registry.describe(field_id)
    return [r for r in records if matches(r, descriptor, compiled)]


def apply_active(records: Sequence[Record], active: ActiveFilter, registry: FieldRegistry) -> list[Record]:
    return apply_filter(records, active.field, active.pattern, registry)
