"""
Field registry.

Maps a field id to its label, display weight, color tag and the rule used
to normalize its raw value. Lookups never fail: unknown ids degrade to the
id itself as label with the default weight.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, Mapping

DEFAULT_WEIGHT = 0.5

# Normalization kinds understood by normalize.py
KINDS = ("text", "person", "people", "path", "tags", "branch", "votes")
WRAP_MODES = ("words", "chunk")

BRANCH_PREFIX = "refs/heads/"


class UnknownFieldWarning(UserWarning):
    """A display field has no registry entry."""


@dataclass(frozen=True)
class FieldDescriptor:
    """How to label, weight and normalize one field."""

    id: str
    label: str
    weight: float = DEFAULT_WEIGHT
    color: str | None = None
    kind: str = "text"
    delimiter: str | None = None
    wrap: str = "words"
    value_colors: Mapping[str, str] = field(default_factory=dict)
    aliases: tuple[str, ...] = ()
    source: Callable[[Mapping[str, Any]], Any] | None = None

    def __post_init__(self) -> None:
        if not 0 < self.weight <= 1:
            raise ValueError(f"weight for {self.id!r} must be in (0, 1], got {self.weight}")
        if self.kind not in KINDS:
            raise ValueError(f"unknown kind {self.kind!r} for field {self.id!r}")
        if self.wrap not in WRAP_MODES:
            raise ValueError(f"unknown wrap mode {self.wrap!r} for field {self.id!r}")

    def raw_value(self, record: Mapping[str, Any]) -> Any:
        """Pull this field's raw value out of a record."""
        if self.source is not None:
            return self.source(record)
        return lookup(record, self.id)


def lookup(record: Mapping[str, Any], field_id: str) -> Any:
    """Get a value by exact key, falling back to dotted traversal."""
    if field_id in record:
        return record[field_id]
    if "." not in field_id:
        return None
    current: Any = record
    for part in field_id.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


class FieldRegistry:
    """Read-only lookup of field descriptors with soft fallback."""

    def __init__(self, descriptors: Iterable[FieldDescriptor] = ()) -> None:
        self._by_id: dict[str, FieldDescriptor] = {}
        self._by_name: dict[str, FieldDescriptor] = {}
        self._warned: set[str] = set()
        for descriptor in descriptors:
            self.register(descriptor)

    def register(self, descriptor: FieldDescriptor) -> None:
        self._by_id[descriptor.id] = descriptor
        for name in (descriptor.id, descriptor.label, *descriptor.aliases):
            self._by_name.setdefault(name.lower(), descriptor)

    def _forget_names(self, descriptor: FieldDescriptor) -> None:
        for name, found in list(self._by_name.items()):
            if found is descriptor:
                del self._by_name[name]

    def __contains__(self, field_id: str) -> bool:
        return self.find(field_id) is not None

    def __iter__(self):
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def find(self, field_id: str) -> FieldDescriptor | None:
        """Exact id first, then case-insensitive id, alias or label."""
        if not field_id:
            return None
        found = self._by_id.get(field_id)
        if found is None:
            found = self._by_name.get(field_id.strip().lower())
        return found

    def describe(self, field_id: str) -> FieldDescriptor:
        """Descriptor for field_id; unknown ids get an identity descriptor."""
        found = self.find(field_id)
        if found is not None:
            return found
        if field_id not in self._warned:
            self._warned.add(field_id)
            warnings.warn(
                f"No registry entry for field {field_id!r}; showing it as-is",
                UnknownFieldWarning,
                stacklevel=2,
            )
        return FieldDescriptor(id=field_id, label=field_id)

    def resolve(self, field_ids: Iterable[str]) -> list[FieldDescriptor]:
        return [self.describe(fid) for fid in field_ids]

    def with_overrides(self, overrides: Mapping[str, Mapping[str, Any]]) -> "FieldRegistry":
        """Copy of this registry with operator-supplied entries applied.

        Each override may set label, weight, color, kind and delimiter;
        ids not yet registered are added.
        """
        allowed = {"label", "weight", "color", "kind", "delimiter", "wrap"}
        merged = FieldRegistry(self._by_id.values())
        for field_id, values in overrides.items():
            changes = {k: v for k, v in values.items() if k in allowed}
            base = merged.find(field_id)
            if base is None:
                changes.setdefault("label", field_id)
                descriptor = FieldDescriptor(id=field_id, **changes)
            else:
                descriptor = replace(base, **changes)
                merged._forget_names(base)
            merged.register(descriptor)
            # Re-registering must win over the old name mappings
            for name in (descriptor.id, descriptor.label, *descriptor.aliases):
                merged._by_name[name.lower()] = descriptor
        return merged


def strip_branch(ref: str | None) -> str:
    if not ref:
        return ""
    return ref[len(BRANCH_PREFIX):] if ref.startswith(BRANCH_PREFIX) else ref


def _branches(record: Mapping[str, Any]) -> str | None:
    source = strip_branch(record.get("sourceRefName"))
    target = strip_branch(record.get("targetRefName"))
    if not source and not target:
        return None
    return f"{source or '-'} → {target or '-'}"


APPROVAL_COLORS = {"Approved": "green", "Rejected": "red", "Pending": "yellow"}

PULL_REQUEST_FIELDS = FieldRegistry([
    FieldDescriptor("pullRequestId", "ID", weight=0.1, color="green", aliases=("id", "pr")),
    FieldDescriptor("title", "Title", weight=1.0, color="yellow"),
    FieldDescriptor(
        "status", "Status", weight=0.2, color="white",
        value_colors={"active": "green", "completed": "blue", "abandoned": "gray"},
    ),
    FieldDescriptor("createdBy", "Created By", weight=0.4, color="white", kind="person",
                    aliases=("author", "creator")),
    FieldDescriptor("sourceRefName", "Source", weight=0.4, color="magenta", kind="branch",
                    wrap="chunk", aliases=("source",)),
    FieldDescriptor("targetRefName", "Target", weight=0.4, color="magenta", kind="branch",
                    wrap="chunk", aliases=("target",)),
    FieldDescriptor("branches", "Branches", weight=0.7, color="magenta", source=_branches),
    FieldDescriptor("reviewers", "Reviewers", weight=0.5, color="cyan", kind="people",
                    aliases=("reviewer",)),
    FieldDescriptor(
        "approval", "Approval", weight=0.2, color="cyan", kind="votes",
        value_colors=APPROVAL_COLORS,
        source=lambda record: record.get("reviewers"),
    ),
    FieldDescriptor("repository.name", "Repository", weight=0.3, color="blue",
                    aliases=("repository", "repo")),
    FieldDescriptor("creationDate", "Created", weight=0.3, color="gray", aliases=("created",)),
    FieldDescriptor("isDraft", "Draft", weight=0.1, color="gray", aliases=("draft",)),
    FieldDescriptor("description", "Description", weight=1.0, color="cyan"),
])

WORK_ITEM_FIELDS = FieldRegistry([
    FieldDescriptor("System.Id", "ID", weight=0.1, color="blue", aliases=("id",)),
    FieldDescriptor("System.Title", "Title", weight=1.0, color="green", aliases=("title",)),
    FieldDescriptor(
        "System.State", "State", weight=0.25, color="yellow", aliases=("state",),
        value_colors={"Active": "green", "New": "blue", "Blocked": "red"},
    ),
    FieldDescriptor("System.AssignedTo", "Assigned To", weight=0.4, color="cyan",
                    kind="person", aliases=("assignedTo", "assignee")),
    FieldDescriptor("System.IterationPath", "Iteration", weight=0.3, color="magenta",
                    kind="path", delimiter="\\", aliases=("iteration", "sprint")),
    FieldDescriptor("System.AreaPath", "Area", weight=0.3, color="magenta",
                    kind="path", delimiter="\\", aliases=("area",)),
    FieldDescriptor("System.Tags", "Tags", weight=0.4, color="gray",
                    kind="tags", delimiter=";", aliases=("tags",)),
    FieldDescriptor("System.WorkItemType", "Type", weight=0.2, color="white",
                    aliases=("type", "workItemType")),
    FieldDescriptor("System.Description", "Description", weight=1.0, color="cyan",
                    aliases=("description",)),
])

PULL_REQUEST_DEFAULT_FIELDS = ("pullRequestId", "title", "createdBy", "branches", "approval")
PULL_REQUEST_CONDENSED_FIELDS = ("pullRequestId", "title", "createdBy", "approval")
WORK_ITEM_DEFAULT_FIELDS = (
    "System.Id",
    "System.Title",
    "System.State",
    "System.AssignedTo",
    "System.IterationPath",
)


def parse_field_list(text: str | None) -> list[str]:
    """Split a comma-separated field list, dropping blanks."""
    if not text:
        return []
    return [part.strip() for part in text.split(",") if part.strip()]
