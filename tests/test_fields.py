"""Tests for fields.py - the field registry."""

import sys
import warnings
from pathlib import Path

import pytest

# Add scripts to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))

from fields import (
    DEFAULT_WEIGHT,
    PULL_REQUEST_FIELDS,
    WORK_ITEM_FIELDS,
    FieldDescriptor,
    FieldRegistry,
    UnknownFieldWarning,
    lookup,
    parse_field_list,
    strip_branch,
)


@pytest.fixture
def registry() -> FieldRegistry:
    """Small registry, fresh per test so warning state does not leak."""
    return FieldRegistry([
        FieldDescriptor("title", "Title", weight=1.0, color="yellow"),
        FieldDescriptor("createdBy", "Created By", weight=0.4, kind="person", aliases=("author",)),
    ])


class TestDescribe:
    """Tests for FieldRegistry.describe."""

    def test_known_field(self, registry: FieldRegistry) -> None:
        descriptor = registry.describe("title")
        assert descriptor.label == "Title"
        assert descriptor.weight == 1.0
        assert descriptor.color == "yellow"

    def test_lookup_by_alias_and_label(self, registry: FieldRegistry) -> None:
        assert registry.describe("author").id == "createdBy"
        assert registry.describe("created by").id == "createdBy"
        assert registry.describe("TITLE").id == "title"

    def test_unknown_field_falls_back(self, registry: FieldRegistry) -> None:
        with pytest.warns(UnknownFieldWarning):
            descriptor = registry.describe("Custom.Severity")

        assert descriptor.id == "Custom.Severity"
        assert descriptor.label == "Custom.Severity"
        assert descriptor.weight == DEFAULT_WEIGHT
        assert descriptor.color is None

    def test_unknown_field_warns_once(self, registry: FieldRegistry) -> None:
        with pytest.warns(UnknownFieldWarning):
            registry.describe("Custom.Severity")

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            registry.describe("Custom.Severity")
        assert caught == []

    def test_contains(self, registry: FieldRegistry) -> None:
        assert "author" in registry
        assert "nope" not in registry

    def test_resolve_keeps_order(self, registry: FieldRegistry) -> None:
        ids = [d.id for d in registry.resolve(["createdBy", "title"])]
        assert ids == ["createdBy", "title"]


class TestFieldDescriptor:
    """Tests for FieldDescriptor validation and value access."""

    @pytest.mark.parametrize("weight", [0, -0.1, 1.5])
    def test_weight_out_of_range(self, weight: float) -> None:
        with pytest.raises(ValueError):
            FieldDescriptor("x", "X", weight=weight)

    def test_unknown_kind(self) -> None:
        with pytest.raises(ValueError):
            FieldDescriptor("x", "X", kind="banana")

    def test_raw_value_uses_source(self) -> None:
        descriptor = FieldDescriptor("n", "N", source=lambda r: r["a"] + r["b"])
        assert descriptor.raw_value({"a": 1, "b": 2}) == 3


class TestLookup:
    """Tests for lookup function."""

    def test_flat_key_with_dot(self) -> None:
        assert lookup({"System.Title": "x"}, "System.Title") == "x"

    def test_dotted_traversal(self) -> None:
        assert lookup({"repository": {"name": "api"}}, "repository.name") == "api"

    def test_missing(self) -> None:
        assert lookup({}, "title") is None
        assert lookup({"repository": "flat"}, "repository.name") is None


class TestOverrides:
    """Tests for FieldRegistry.with_overrides."""

    def test_override_existing(self, registry: FieldRegistry) -> None:
        merged = registry.with_overrides({"title": {"label": "Summary", "weight": 0.8}})

        assert merged.describe("title").label == "Summary"
        assert merged.describe("summary").id == "title"
        assert merged.describe("title").weight == 0.8
        assert registry.describe("title").label == "Title"

    def test_add_custom_field(self, registry: FieldRegistry) -> None:
        merged = registry.with_overrides({"Custom.Severity": {"label": "Severity", "color": "red"}})

        descriptor = merged.describe("severity")
        assert descriptor.id == "Custom.Severity"
        assert descriptor.color == "red"

    def test_ignores_unknown_keys(self, registry: FieldRegistry) -> None:
        merged = registry.with_overrides({"title": {"source": "boom", "label": "T"}})
        assert merged.describe("title").source is None

    def test_invalid_override_rejected(self, registry: FieldRegistry) -> None:
        with pytest.raises(ValueError):
            registry.with_overrides({"title": {"weight": 5}})


class TestBuiltinRegistries:
    """Tests for the pull request and work item registries."""

    def test_pull_request_aliases(self) -> None:
        assert PULL_REQUEST_FIELDS.describe("id").id == "pullRequestId"
        assert PULL_REQUEST_FIELDS.describe("repo").id == "repository.name"

    def test_work_item_aliases(self) -> None:
        assert WORK_ITEM_FIELDS.describe("iteration").kind == "path"
        assert WORK_ITEM_FIELDS.describe("tags").delimiter == ";"
        assert WORK_ITEM_FIELDS.describe("Assigned To").id == "System.AssignedTo"

    def test_branches_source(self) -> None:
        branches = PULL_REQUEST_FIELDS.describe("branches")
        pr = {"sourceRefName": "refs/heads/feature/x", "targetRefName": "refs/heads/main"}
        assert branches.raw_value(pr) == "feature/x → main"
        assert branches.raw_value({}) is None


class TestHelpers:
    """Tests for parse_field_list and strip_branch."""

    def test_parse_field_list(self) -> None:
        assert parse_field_list(" a, b ,,c ") == ["a", "b", "c"]
        assert parse_field_list("") == []
        assert parse_field_list(None) == []

    def test_strip_branch(self) -> None:
        assert strip_branch("refs/heads/main") == "main"
        assert strip_branch("refs/tags/v1") == "refs/tags/v1"
        assert strip_branch(None) == ""

    def test_relabel_forgets_old_label(self, registry: FieldRegistry) -> None:
        merged = registry.with_overrides({"createdBy": {"label": "Author Name"}})

        assert merged.find("Created By") is None
        assert merged.find("author name").label == "Author Name"
        assert merged.find("author").label == "Author Name"
        assert registry.find("Created By").label == "Created By"

    def test_overrides_keep_field_order(self, registry: FieldRegistry) -> None:
        merged = registry.with_overrides({"title": {"label": "Summary"}})
        assert [d.id for d in merged] == ["title", "createdBy"]

    def test_unknown_wrap_mode_rejected(self) -> None:
        with pytest.raises(ValueError):
            FieldDescriptor("title", "Title", wrap="columns")
