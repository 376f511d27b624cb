"""Replication goal orchestration package."""

from .budget import BudgetEstimator
from .conductor import Conductor
from .events import MembershipEventChannel
from .exceptions import InvalidStateTransitionError
from .ghosts import GhostSpanCalculator, compute_ghost_span, count_ghostable_feeds
from .goals import AccountGoalController, GoalMaterializer
from .models import (
    AdvisoryWarning,
    BudgetEstimate,
    GoalKind,
    GoalSpec,
    MembershipEvent,
    MembershipEventKind,
    Rule,
)
from .rules import IMPLICIT_RULES, parse_rule, parse_rule_pair, parse_rules
from .state_machine import ConductorState, LifecycleTracker, VALID_TRANSITIONS
from .telemetry import ReconciliationTelemetry

__all__ = [
    "BudgetEstimator",
    "Conductor",
    "MembershipEventChannel",
    "InvalidStateTransitionError",
    "GhostSpanCalculator",
    "compute_ghost_span",
    "count_ghostable_feeds",
    "AccountGoalController",
    "GoalMaterializer",
    "AdvisoryWarning",
    "BudgetEstimate",
    "GoalKind",
    "GoalSpec",
    "MembershipEvent",
    "MembershipEventKind",
    "Rule",
    "IMPLICIT_RULES",
    "parse_rule",
    "parse_rule_pair",
    "parse_rules",
    "ConductorState",
    "LifecycleTracker",
    "VALID_TRANSITIONS",
    "ReconciliationTelemetry",
]
