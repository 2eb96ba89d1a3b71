"""Unit tests for rule/condition operators."""

from __future__ import annotations

import pytest

from flcm_rollout.features.operators import apply_operator, matches


class TestEquals:
    def test_same_value(self) -> None:
        assert matches({"plan_type": "enterprise"}, "plan_type", "equals", "enterprise")

    def test_bool_does_not_match_int(self) -> None:
        assert not matches({"beta_opt_in": 1}, "beta_opt_in", "equals", True)
        assert matches({"beta_opt_in": True}, "beta_opt_in", "equals", True)

    def test_not_equals(self) -> None:
        assert matches({"plan_type": "free"}, "plan_type", "not_equals", "enterprise")
        assert not matches({"plan_type": "enterprise"}, "plan_type", "not_equals", "enterprise")


class TestComparisons:
    def test_greater_than(self) -> None:
        assert matches({"sessions_per_week": 11}, "sessions_per_week", "greater_than", 10)
        assert not matches({"sessions_per_week": 10}, "sessions_per_week", "greater_than", 10)

    def test_less_than(self) -> None:
        assert matches({"account_age_days": 3}, "account_age_days", "less_than", 7)

    def test_incomparable_types_are_false(self) -> None:
        assert not matches({"sessions_per_week": "many"}, "sessions_per_week", "greater_than", 10)
        assert not matches({"account_age_days": None}, "account_age_days", "less_than", 7)


class TestMembership:
    def test_contains_substring(self) -> None:
        assert matches({"email": "dev@flcm.internal"}, "email", "contains", "@flcm.internal")
        assert not matches({"email": "dev@example.com"}, "email", "contains", "@flcm.internal")

    def test_contains_list(self) -> None:
        assert matches({"roles": ["admin", "editor"]}, "roles", "contains", "admin")

    def test_in_requires_list_value(self) -> None:
        assert matches({"region": "eu"}, "region", "in", ["eu", "us"])
        assert not matches({"region": "eu"}, "region", "in", "eu,us")

    def test_regex(self) -> None:
        assert matches({"email": "ana@corp.io"}, "email", "regex", r"@corp\.io$")

    def test_invalid_regex_is_false(self) -> None:
        assert not matches({"email": "ana@corp.io"}, "email", "regex", "(")


class TestMissingAttributes:
    @pytest.mark.parametrize("operator", ["equals", "greater_than", "less_than", "contains", "in", "regex"])
    def test_missing_attribute_never_matches(self, operator: str) -> None:
        assert not matches({}, "plan_type", operator, "enterprise")

    def test_missing_attribute_differs_for_not_equals(self) -> None:
        assert matches({}, "plan_type", "not_equals", "enterprise")

    def test_no_attributes_at_all(self) -> None:
        assert not matches(None, "plan_type", "equals", "enterprise")


def test_unknown_operator_is_false() -> None:
    assert apply_operator("starts_with", "abc", "a") is False
