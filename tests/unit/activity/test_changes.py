"""Tests for the change calculator."""

import pytest

from activity_logger.core.activity.changes import calculate_changes, has_changes


RECORDS = [
    {},
    {"id": 1, "name": "Ada"},
    {"id": 2, "tags": ["a", "b"], "meta": {"k": {"nested": True}}},
    {"id": 3, "name": None, "count": 0, "active": False},
]


class TestCalculateChanges:
    """Tests for calculate_changes."""

    def test_reports_changed_fields(self):
        """Test that only differing fields are reported."""
        changes = calculate_changes(
            {"id": 1, "name": "Ada", "email": "a@example.com"},
            {"id": 1, "name": "Grace", "email": "a@example.com"},
        )

        assert changes == {"before": {"name": "Ada"}, "after": {"name": "Grace"}}

    @pytest.mark.parametrize("record", RECORDS)
    def test_identical_records_have_no_changes(self, record):
        """Test that diffing a record with itself is empty."""
        assert calculate_changes(record, dict(record)) == {"before": {}, "after": {}}

    def test_before_and_after_share_keys(self):
        """Test that before and after always report the same fields."""
        changes = calculate_changes(
            {"a": 1, "b": 2, "c": 3},
            {"a": 1, "b": 20, "c": None, "d": "new"},
        )

        assert set(changes["before"]) == set(changes["after"]) == {"b", "c", "d"}

    def test_new_key_reports_none_before(self):
        """Test that a field absent from the original is reported with None."""
        changes = calculate_changes({"id": 1}, {"id": 1, "nickname": "A"})

        assert changes["before"] == {"nickname": None}
        assert changes["after"] == {"nickname": "A"}

    def test_excluded_fields_never_reported(self):
        """Test that excluded fields are skipped even when they differ."""
        changes = calculate_changes(
            {"name": "Ada", "updated_at": "2024-01-01"},
            {"name": "Ada", "updated_at": "2024-02-01"},
            exclude_fields={"updated_at"},
        )

        assert changes == {"before": {}, "after": {}}

    def test_internal_fields_never_reported(self):
        """Test that fields with the internal prefix are skipped."""
        changes = calculate_changes(
            {"_version": 1, "name": "Ada"},
            {"_version": 2, "name": "Ada"},
        )

        assert changes == {"before": {}, "after": {}}

    def test_callables_ignored(self):
        """Test that callable values on either side are skipped."""
        changes = calculate_changes(
            {"save": print, "name": "Ada"},
            {"save": len, "name": "Ada"},
        )

        assert changes == {"before": {}, "after": {}}

    def test_nested_values_compared_whole(self):
        """Test that nested structures are reported as whole values."""
        changes = calculate_changes(
            {"meta": {"a": 1, "b": 2}},
            {"meta": {"a": 1, "b": 3}},
        )

        assert changes["before"] == {"meta": {"a": 1, "b": 2}}
        assert changes["after"] == {"meta": {"a": 1, "b": 3}}

    def test_nested_equal_values_not_reported(self):
        """Test that structurally equal nested values are not reported."""
        changes = calculate_changes(
            {"tags": ["a", "b"], "meta": {"x": [1, 2]}},
            {"tags": ["a", "b"], "meta": {"x": [1, 2]}},
        )

        assert changes == {"before": {}, "after": {}}

    @pytest.mark.parametrize(("old", "new"), [(1, True), (0, False), (True, 1)])
    def test_booleans_differ_from_integers(self, old, new):
        """Test that a bool replacing an equal int is reported."""
        changes = calculate_changes({"active": old}, {"active": new})

        assert changes["before"] == {"active": old}
        assert changes["after"]["active"] is new

    def test_nested_booleans_differ_from_integers(self):
        """Test that bool/int swaps inside nested values are reported."""
        changes = calculate_changes(
            {"active": 1, "meta": {"x": 0}, "flags": [1, 0]},
            {"active": True, "meta": {"x": False}, "flags": [True, False]},
        )

        assert changes["before"] == {"active": 1, "meta": {"x": 0}, "flags": [1, 0]}
        assert changes["after"] == {
            "active": True,
            "meta": {"x": False},
            "flags": [True, False],
        }
        assert changes["after"]["meta"]["x"] is False

    def test_nested_key_order_ignored(self):
        """Test that dicts differing only in key order are not reported."""
        changes = calculate_changes(
            {"meta": {"a": 1, "b": 2}},
            {"meta": {"b": 2, "a": 1}},
        )

        assert changes == {"before": {}, "after": {}}

    @pytest.mark.parametrize(
        ("original", "updated"),
        [(None, {"a": 1}), ({"a": 1}, None), (None, None)],
    )
    def test_missing_snapshot_returns_empty(self, original, updated):
        """Test that a missing snapshot yields an empty payload."""
        assert calculate_changes(original, updated) == {}

    def test_removed_fields_ignored_by_default(self):
        """Test that fields dropped from the update are not reported."""
        changes = calculate_changes({"a": 1, "b": 2}, {"a": 1})

        assert changes == {"before": {}, "after": {}}

    def test_removed_fields_reported_when_requested(self):
        """Test that include_removed reports dropped fields with None after."""
        changes = calculate_changes({"a": 1, "b": 2}, {"a": 1}, include_removed=True)

        assert changes == {"before": {"b": 2}, "after": {"b": None}}

    def test_uncomparable_values_fall_back_to_identity(self):
        """Test that values whose comparison raises are compared by identity."""

        class Uncomparable:
            def __eq__(self, other):
                raise TypeError("cannot compare")

            __hash__ = object.__hash__

        value = Uncomparable()
        other = Uncomparable()

        assert calculate_changes({"v": value}, {"v": value}) == {"before": {}, "after": {}}
        changes = calculate_changes({"v": value}, {"v": other})
        assert changes["after"] == {"v": other}


class TestHasChanges:
    """Tests for has_changes."""

    def test_empty_payloads(self):
        """Test that empty payloads report no changes."""
        assert has_changes({}) is False
        assert has_changes({"before": {}, "after": {}}) is False

    def test_non_empty_payload(self):
        """Test that a payload with fields reports changes."""
        assert has_changes({"before": {"a": 1}, "after": {"a": 2}}) is True
