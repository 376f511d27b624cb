"""Parser for the ``domain@goal`` rule grammar."""

from __future__ import annotations

from collections import abc
from typing import Iterable, Sequence, Union

from ..errors import InvalidRuleError
from .models import BLOCKS, FOLLOWS, Rule, Rules, RuleSet

SEPARATOR = "@"

# Every account also replicates its own follows and blocks sets.
IMPLICIT_RULES: RuleSet = (
    Rule(FOLLOWS, "set"),
    Rule(BLOCKS, "set"),
)

RawRules = Union[Sequence[str], RuleSet]


def parse_rule(raw: object) -> Rule:
    """Parse ``"domain@goal"`` into a :class:`Rule`.

    The string is split on the first separator. Neither half may be empty.

    Raises:
        InvalidRuleError: If ``raw`` is not a non-empty string of that shape
    """
    if isinstance(raw, Rule):
        return raw
    if not isinstance(raw, str):
        raise InvalidRuleError(raw, "rule must be a string")
    if not raw:
        raise InvalidRuleError(raw, "rule is empty")

    domain, sep, goal = raw.partition(SEPARATOR)
    if not sep:
        raise InvalidRuleError(raw, f"missing '{SEPARATOR}' separator")
    if not domain:
        raise InvalidRuleError(raw, "domain is empty")
    if not goal:
        raise InvalidRuleError(raw, "goal is empty")

    return Rule(domain, goal)


def parse_rules(raws: Iterable[object]) -> RuleSet:
    """Parse a sequence of rule strings, failing on the first bad one."""
    if isinstance(raws, str):
        raise InvalidRuleError(raws, "expected a list of rules, got a single string")
    if not isinstance(raws, abc.Iterable):
        raise InvalidRuleError(raws, "expected a list of rules")

    parsed = []
    for index, raw in enumerate(raws):
        try:
            parsed.append(parse_rule(raw))
        except InvalidRuleError as exc:
            raise InvalidRuleError(raw, exc.reason, details={"index": index}) from exc
    return tuple(parsed)


def parse_rule_pair(rules: object) -> Rules:
    """Parse the ``(my_rules, their_rules)`` pair given to ``start``."""
    if isinstance(rules, (str, bytes)) or not isinstance(rules, abc.Sequence) or len(rules) != 2:
        raise InvalidRuleError(rules, "expected a pair of rule lists (mine, theirs)")

    mine, theirs = rules
    return parse_rules(mine), parse_rules(theirs)


def count_ghostable(rules: RuleSet) -> int:
    """Number of set/dict rules, the feeds that keep ghost tombstones."""
    return sum(1 for rule in rules if rule.is_ghostable)


__all__ = [
    "SEPARATOR",
    "IMPLICIT_RULES",
    "parse_rule",
    "parse_rules",
    "parse_rule_pair",
    "count_ghostable",
]
