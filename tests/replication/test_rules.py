"""Tests for the domain@goal rule parser."""

from __future__ import annotations

import pytest

from conductor.errors import InvalidRuleError
from conductor.replication.models import GoalKind, Rule
from conductor.replication.rules import (
    IMPLICIT_RULES,
    count_ghostable,
    parse_rule,
    parse_rule_pair,
    parse_rules,
)


class TestParseRule:
    """Tests for parse_rule."""

    @pytest.mark.parametrize(
        "domain,goal",
        [
            ("posts", "all"),
            ("posts", "newest-100"),
            ("hubs", "set"),
            ("profile", "dict"),
            ("a", "b"),
        ],
    )
    def test_round_trip(self, domain: str, goal: str) -> None:
        """Test that domain + '@' + goal parses back to the same pair."""
        rule = parse_rule(f"{domain}@{goal}")
        assert rule == Rule(domain, goal)
        assert str(rule) == f"{domain}@{goal}"

    @pytest.mark.parametrize("raw", ["", "posts", "@all", "posts@"])
    def test_rejects_malformed(self, raw: str) -> None:
        """Test that empty, separator-less and half-empty rules fail."""
        with pytest.raises(InvalidRuleError):
            parse_rule(raw)

    @pytest.mark.parametrize("raw", [None, 42, ["posts@all"], b"posts@all"])
    def test_rejects_non_strings(self, raw: object) -> None:
        with pytest.raises(InvalidRuleError, match="must be a string"):
            parse_rule(raw)

    def test_splits_on_first_separator(self) -> None:
        rule = parse_rule("posts@newest@5")
        assert rule.domain == "posts"
        assert rule.goal == "newest@5"

    def test_error_carries_reason(self) -> None:
        with pytest.raises(InvalidRuleError) as exc_info:
            parse_rule("posts")

        assert exc_info.value.code == "INVALID_RULE"
        assert "separator" in exc_info.value.reason
        assert exc_info.value.details["rule"] == "'posts'"


class TestRuleKind:
    """Tests for goal kind classification."""

    def test_kinds(self) -> None:
        assert parse_rule("hubs@set").kind is GoalKind.SET
        assert parse_rule("profile@dict").kind is GoalKind.DICT
        assert parse_rule("posts@newest-100").kind is GoalKind.OTHER
        assert parse_rule("posts@all").kind is GoalKind.OTHER

    def test_settings_is_not_a_set(self) -> None:
        assert parse_rule("x@settings").kind is GoalKind.OTHER

    def test_count_ghostable(self) -> None:
        rules = parse_rules(["posts@all", "hubs@set", "profile@dict"])
        assert count_ghostable(rules) == 2
        assert count_ghostable(IMPLICIT_RULES) == 2


class TestParseRules:
    """Tests for parsing lists and pairs of rules."""

    def test_preserves_order(self) -> None:
        rules = parse_rules(["b@all", "a@set"])
        assert rules == (Rule("b", "all"), Rule("a", "set"))

    def test_reports_index_of_bad_rule(self) -> None:
        with pytest.raises(InvalidRuleError) as exc_info:
            parse_rules(["posts@all", "broken"])
        assert exc_info.value.details["index"] == 1

    def test_rejects_single_string(self) -> None:
        with pytest.raises(InvalidRuleError):
            parse_rules("posts@all")

    def test_pair(self) -> None:
        mine, theirs = parse_rule_pair((["posts@all"], []))
        assert mine == (Rule("posts", "all"),)
        assert theirs == ()

    @pytest.mark.parametrize("rules", [None, "posts@all", (["posts@all"],), ([], [], [])])
    def test_pair_shape(self, rules: object) -> None:
        with pytest.raises(InvalidRuleError, match="pair"):
            parse_rule_pair(rules)

    def test_already_parsed_rules_pass_through(self) -> None:
        mine = (Rule("posts", "all"),)
        assert parse_rule_pair((mine, ())) == (mine, ())
