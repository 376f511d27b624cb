"""Domain models for the replication conductor."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple

AccountID = str
FeedID = str
GoalExpression = str

ALL = "all"
NONE = "none"

FOLLOWS = "follows"
BLOCKS = "blocks"


class GoalKind(str, Enum):
    SET = "set"
    DICT = "dict"
    OTHER = "other"


class MembershipEventKind(str, Enum):
    ADD = "add"
    DEL = "del"


@dataclass(frozen=True)
class Rule:
    """One ``domain@goal`` replication rule."""

    domain: str
    goal: GoalExpression

    @property
    def kind(self) -> GoalKind:
        head = self.goal.split("-", 1)[0]
        if head == GoalKind.SET.value:
            return GoalKind.SET
        if head == GoalKind.DICT.value:
            return GoalKind.DICT
        return GoalKind.OTHER

    @property
    def is_ghostable(self) -> bool:
        return self.kind in (GoalKind.SET, GoalKind.DICT)

    def __str__(self) -> str:
        return f"{self.domain}@{self.goal}"


RuleSet = Tuple[Rule, ...]
Rules = Tuple[RuleSet, RuleSet]
Assignment = Tuple[str, GoalExpression]


@dataclass(frozen=True)
class GoalSpec:
    """Goal expression as reported by the goal tracker's ``parse``."""

    kind: str
    count: float


@dataclass(frozen=True)
class MembershipEvent:
    """A change to one of the membership sets (``follows``/``blocks``)."""

    kind: MembershipEventKind
    subdomain: str
    value: AccountID


@dataclass
class AdvisoryWarning:
    """A non-fatal budget diagnostic. Logged, never raised."""

    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BudgetEstimate:
    """Outcome of one budget estimation."""

    num_followed: int
    estimated_messages: int
    estimated_bytes: int
    max_bytes: int
    advisories: List[AdvisoryWarning] = field(default_factory=list)

    @property
    def exceeds_budget(self) -> bool:
        return self.estimated_bytes > self.max_bytes

    @property
    def scale_down_percent(self) -> float:
        """Percentage the rules would need to shrink to, 100.0 if they fit."""
        if not self.exceeds_budget:
            return 100.0
        return self.max_bytes / self.estimated_bytes * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "num_followed": self.num_followed,
            "estimated_messages": self.estimated_messages,
            "estimated_bytes": self.estimated_bytes,
            "max_bytes": self.max_bytes,
            "exceeds_budget": self.exceeds_budget,
            "advisories": [a.code for a in self.advisories],
        }
