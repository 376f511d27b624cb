"""Turning rules into per-feed goals for one account.

Setting up an account writes these goals:

- the account itself → ``all``
- its follows and blocks sets → ``set``
- one feed per rule → the rule's goal

Tearing down writes ``none`` to the very same targets. Entries are never
removed from the goal tracker; ``none`` tells it to stop replicating and lets
the garbage collector reclaim the feed.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import DefaultDict, Iterable, List, Optional

from ..errors import MissingCollaboratorError
from .collaborators import DictionaryEngine, FeedStore, GoalTracker, MembershipSet
from .models import ALL, NONE, AccountID, Assignment, FeedID, GoalKind, Rule
from .rules import IMPLICIT_RULES
from .telemetry import ReconciliationTelemetry

logger = logging.getLogger(__name__)


class GoalMaterializer:
    """Resolves a rule to the feed ID it targets for a given account."""

    def __init__(
        self,
        store: FeedStore,
        membership: MembershipSet,
        dictionary: Optional[DictionaryEngine] = None,
    ) -> None:
        self._store = store
        self._membership = membership
        self._dictionary = dictionary

    def resolve_domain(self, rule: Rule) -> str:
        """Feed domain for ``rule``, namespaced by the engine that owns it.

        Raises:
            MissingCollaboratorError: For a dict rule with no dictionary engine
        """
        kind = rule.kind
        if kind is GoalKind.SET:
            return self._membership.get_domain(rule.domain)
        if kind is GoalKind.DICT:
            if self._dictionary is None:
                raise MissingCollaboratorError(
                    "dictionary",
                    message=f"rule {rule} needs a dictionary engine",
                    details={"rule": str(rule)},
                )
            return self._dictionary.get_domain(rule.domain)
        return rule.domain

    def materialize(self, account_id: AccountID, rule: Rule) -> tuple[FeedID, str]:
        feed_id = self._store.derive_feed_id(account_id, self.resolve_domain(rule))
        return feed_id, rule.goal


class AccountGoalController:
    """Sets up and tears down every goal belonging to one account.

    Calls for the same account are serialized; calls for different accounts
    may run in parallel.
    """

    def __init__(
        self,
        goals: GoalTracker,
        materializer: GoalMaterializer,
        telemetry: Optional[ReconciliationTelemetry] = None,
    ) -> None:
        self._goals = goals
        self._materializer = materializer
        self._telemetry = telemetry
        self._guard = threading.Lock()
        self._account_locks: DefaultDict[AccountID, threading.Lock] = defaultdict(threading.Lock)

    def _lock_for(self, account_id: AccountID) -> threading.Lock:
        with self._guard:
            return self._account_locks[account_id]

    def plan(
        self,
        account_id: AccountID,
        rules: Iterable[Rule],
        *,
        active: bool = True,
    ) -> List[Assignment]:
        """Ordered ``(target, goal)`` writes for the account, without writing.

        All feed IDs are resolved up front, so a rule that cannot be
        materialized leaves the account's goals untouched.
        """
        assignments: List[Assignment] = [(account_id, ALL if active else NONE)]
        for rule in (*IMPLICIT_RULES, *rules):
            feed_id, goal = self._materializer.materialize(account_id, rule)
            assignments.append((feed_id, goal if active else NONE))
        return assignments

    def setup_account_goals(self, account_id: AccountID, rules: Iterable[Rule]) -> List[Assignment]:
        """Replicate the account, its membership sets and every rule feed."""
        return self._apply("setup", account_id, rules, active=True)

    def teardown_account_goals(self, account_id: AccountID, rules: Iterable[Rule]) -> List[Assignment]:
        """Overwrite every goal of the account with ``none``."""
        return self._apply("teardown", account_id, rules, active=False)

    def replace_account_goals(
        self,
        account_id: AccountID,
        old_rules: Iterable[Rule],
        new_rules: Iterable[Rule],
    ) -> List[Assignment]:
        """Set up ``new_rules`` and write ``none`` to targets only ``old_rules`` covered."""
        return self._apply("setup", account_id, new_rules, active=True, previous=old_rules)

    def _apply(
        self,
        operation: str,
        account_id: AccountID,
        rules: Iterable[Rule],
        *,
        active: bool,
        previous: Optional[Iterable[Rule]] = None,
    ) -> List[Assignment]:
        with self._lock_for(account_id):
            assignments = self.plan(account_id, tuple(rules), active=active)
            retired: List[Assignment] = []
            if previous is not None:
                current = {target for target, _ in assignments}
                for target, _ in self.plan(account_id, tuple(previous), active=False):
                    if target not in current:
                        current.add(target)
                        retired.append((target, NONE))

            for target, goal in (*retired, *assignments):
                self._goals.set(target, goal)

        writes = len(retired) + len(assignments)
        logger.info(
            f"{operation} goals for account {account_id}: {len(assignments)} feeds",
            extra={
                "operation": operation,
                "account_id": account_id,
                "goal_writes": writes,
                "retired": len(retired),
            },
        )
        if self._telemetry is not None:
            self._telemetry.record(
                operation,
                account_id,
                goal_writes=writes,
                metadata={"retired": len(retired)} if retired else None,
            )
        return [*retired, *assignments]


__all__ = [
    "GoalMaterializer",
    "AccountGoalController",
]
