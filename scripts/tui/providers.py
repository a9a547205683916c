"""
Data providers for the browsers.

Protocols define the interface; implementations can be swapped
for testing or alternative data sources.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol, Sequence

from fields import FieldRegistry

Record = Mapping[str, Any]


class SourceUnavailableError(RuntimeError):
    """The backing tool is missing, unauthenticated or returned unusable output."""


class RecordSource(Protocol):
    """Protocol for fetching records from the work-tracking service."""

    def fetch(self) -> list[Record]:
        """Fetch the current record set.

        Raises SourceUnavailableError when the backing tool fails.
        """
        ...


class LinkOpener(Protocol):
    """Protocol for opening an external reference."""

    def open(self, url: str) -> None:
        """Open url; the result is not reported back."""
        ...


@dataclass(frozen=True)
class StaticSource:
    """RecordSource over an in-memory record list."""

    records: tuple[Record, ...] = ()

    def fetch(self) -> list[Record]:
        return list(self.records)


@dataclass(frozen=True)
class Dataset:
    """One browsable record set and how to show it."""

    name: str
    title: str
    registry: FieldRegistry
    fields: tuple[str, ...]
    source: RecordSource
    link_for: Callable[[Record], str] = lambda record: ""
    description_field: str | None = None
    item_name: str = "record"
    empty_message: str = "No records found."

    def descriptors(self):
        return self.registry.resolve(self.fields)

    def detail_descriptors(self, extra: Sequence[str] = ()):
        """Every registered field plus any display-only ones."""
        seen = [d.id for d in self.registry if d.id != self.description_field]
        for field_id in (*self.fields, *extra):
            if field_id not in seen and self.registry.find(field_id) is None:
                seen.append(field_id)
        return self.registry.resolve(seen)
