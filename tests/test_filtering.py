"""Tests for filtering.py - the single-filter engine."""

import copy
import re
import sys
from pathlib import Path

import pytest

# Add scripts to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))

from fields import PULL_REQUEST_FIELDS
from filtering import (
    NO_FILTER,
    ActiveFilter,
    InvalidPatternError,
    apply_active,
    apply_filter,
    compile_pattern,
    make_filter,
)


@pytest.fixture
def pull_requests() -> list[dict]:
    """Five pull requests with mixed-case titles."""
    return [
        {"pullRequestId": 1, "title": "Fix login bug", "createdBy": {"displayName": "Jane Doe"}},
        {"pullRequestId": 2, "title": "Add search feature", "createdBy": {"displayName": "John Smith"}},
        {"pullRequestId": 3, "title": "fix typo in docs", "createdBy": {"displayName": "Jane Roe"}},
        {"pullRequestId": 4, "title": "Refactor FIXTURES", "createdBy": {"uniqueName": "bob@corp"}},
        {"pullRequestId": 5, "title": "Update readme", "createdBy": None},
    ]


def ids(records: list[dict]) -> list[int]:
    return [r["pullRequestId"] for r in records]


class TestApplyFilter:
    """Tests for apply_filter function."""

    def test_case_insensitive_substring(self, pull_requests: list[dict]) -> None:
        result = apply_filter(pull_requests, "title", "fix", PULL_REQUEST_FIELDS)
        assert ids(result) == [1, 3, 4]

    def test_identity_without_field(self, pull_requests: list[dict]) -> None:
        assert apply_filter(pull_requests, None, None, PULL_REQUEST_FIELDS) == pull_requests
        assert apply_filter(pull_requests, "", "fix", PULL_REQUEST_FIELDS) == pull_requests

    def test_identity_without_pattern(self, pull_requests: list[dict]) -> None:
        assert apply_filter(pull_requests, "title", None, PULL_REQUEST_FIELDS) == pull_requests

    def test_idempotent(self, pull_requests: list[dict]) -> None:
        for field, pattern in [("title", "fix"), ("createdBy", "^jane"), ("title", "zzz")]:
            once = apply_filter(pull_requests, field, pattern, PULL_REQUEST_FIELDS)
            twice = apply_filter(once, field, pattern, PULL_REQUEST_FIELDS)
            assert twice == once

    def test_matches_normalized_value(self, pull_requests: list[dict]) -> None:
        result = apply_filter(pull_requests, "createdBy", "^jane", PULL_REQUEST_FIELDS)
        assert ids(result) == [1, 3]

    def test_placeholder_is_matchable(self, pull_requests: list[dict]) -> None:
        result = apply_filter(pull_requests, "createdBy", "^-$", PULL_REQUEST_FIELDS)
        assert ids(result) == [5]

    def test_regex_pattern(self, pull_requests: list[dict]) -> None:
        result = apply_filter(pull_requests, "title", r"^(add|update)\b", PULL_REQUEST_FIELDS)
        assert ids(result) == [2, 5]

    def test_lookup_by_label(self, pull_requests: list[dict]) -> None:
        result = apply_filter(pull_requests, "Created By", "smith", PULL_REQUEST_FIELDS)
        assert ids(result) == [2]

    def test_input_not_modified(self, pull_requests: list[dict]) -> None:
        before = copy.deepcopy(pull_requests)
        result = apply_filter(pull_requests, "title", "fix", PULL_REQUEST_FIELDS)
        result.clear()
        assert pull_requests == before

    def test_invalid_pattern(self, pull_requests: list[dict]) -> None:
        with pytest.raises(InvalidPatternError) as excinfo:
            apply_filter(pull_requests, "title", "(", PULL_REQUEST_FIELDS)

        assert excinfo.value.pattern == "("
        assert excinfo.value.reason
        assert isinstance(excinfo.value, ValueError)


class TestCompilePattern:
    """Tests for compile_pattern function."""

    def test_ignore_case(self) -> None:
        assert compile_pattern("fix").search("FIX")

    def test_recompiles_case_sensitive_pattern(self) -> None:
        compiled = compile_pattern(re.compile("fix"))
        assert compiled.flags & re.IGNORECASE

    def test_invalid(self) -> None:
        with pytest.raises(InvalidPatternError, match="Invalid pattern"):
            compile_pattern("[a-")


class TestActiveFilter:
    """Tests for ActiveFilter and make_filter."""

    def test_field_without_pattern_rejected(self) -> None:
        with pytest.raises(ValueError):
            ActiveFilter(field="title")

    def test_pattern_without_field_rejected(self) -> None:
        with pytest.raises(ValueError):
            ActiveFilter(pattern=re.compile("x"))

    def test_make_filter(self) -> None:
        active = make_filter("title", "fix")
        assert active.active
        assert active.describe(PULL_REQUEST_FIELDS) == "Title ~ /fix/i"

    def test_make_filter_none(self) -> None:
        assert make_filter(None, "fix") is NO_FILTER
        assert make_filter("title", None) is NO_FILTER
        assert NO_FILTER.describe(PULL_REQUEST_FIELDS) == "none"

    def test_apply_active(self, pull_requests: list[dict]) -> None:
        assert ids(apply_active(pull_requests, make_filter("title", "fix"), PULL_REQUEST_FIELDS)) == [1, 3, 4]
        assert apply_active(pull_requests, NO_FILTER, PULL_REQUEST_FIELDS) == pull_requests
