"""The conductor: keeps replication goals in line with follows and blocks.

``start`` validates the byte budget and rules, writes goals for self and for
every followed account, subscribes to membership changes, sets the ghost
span and finally hands over to the garbage collector and the sync transport.
After that, each membership event adjusts the goals of one account:

=========  =====  ======================
subdomain  event  action
=========  =====  ======================
follows    add    set up their goals
follows    del    tear down their goals
blocks     add    tear down their goals
=========  =====  ======================

Removing a block does not set goals back up, and the ghost span is only
recomputed by calling ``start`` again.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple, Union

from ..configuration.settings import ConductorConfig
from ..errors import ConfigError
from .budget import BudgetEstimator, log_advisory
from .collaborators import (
    DictionaryEngine,
    FeedStore,
    GarbageCollector,
    GoalTracker,
    MembershipSet,
    SyncTransport,
    Unsubscribe,
)
from .events import MembershipEventChannel
from .ghosts import GhostSpanCalculator
from .goals import AccountGoalController, GoalMaterializer
from .models import (
    BLOCKS,
    FOLLOWS,
    AccountID,
    Assignment,
    BudgetEstimate,
    MembershipEvent,
    MembershipEventKind,
    Rule,
    Rules,
    RuleSet,
)
from .state_machine import ConductorState, LifecycleTracker
from .telemetry import ReconciliationTelemetry

logger = logging.getLogger(__name__)

RuleInput = Union[Rules, Tuple[Sequence[str], Sequence[str]]]


class Conductor:
    """Orchestrates replication goals for one local account.

    Args:
        store: Feed store deriving feed IDs
        goals: Goal tracker receiving every goal write
        membership: Membership set holding follows/blocks
        gc: Garbage collector started with the byte budget
        sync: Sync transport started last
        dictionary: Optional dictionary engine, needed by ``@dict`` rules
        config: Estimates and thresholds (defaults when omitted)
        telemetry: Optional reconciliation telemetry

    Raises:
        ConfigError: If a required collaborator is missing
    """

    def __init__(
        self,
        *,
        store: FeedStore,
        goals: GoalTracker,
        membership: MembershipSet,
        gc: GarbageCollector,
        sync: SyncTransport,
        dictionary: Optional[DictionaryEngine] = None,
        config: Optional[ConductorConfig] = None,
        telemetry: Optional[ReconciliationTelemetry] = None,
    ) -> None:
        required = {
            "store": store,
            "goals": goals,
            "membership": membership,
            "gc": gc,
            "sync": sync,
        }
        missing = [name for name, value in required.items() if value is None]
        if missing:
            raise ConfigError(
                f"conductor needs the {', '.join(missing)} collaborator(s)",
                details={"missing": missing},
            )

        self._store = store
        self._goals = goals
        self._membership = membership
        self._gc = gc
        self._sync = sync
        self._dictionary = dictionary
        self._config = config or ConductorConfig()
        self._telemetry = telemetry

        self._estimator = BudgetEstimator(goals, self._config)
        self._controller = AccountGoalController(
            goals,
            GoalMaterializer(store, membership, dictionary),
            telemetry=telemetry,
        )
        self._ghosts = GhostSpanCalculator(
            membership, dictionary, self._config, store.id_length
        )
        self._lifecycle = LifecycleTracker()

        self._self_id: Optional[AccountID] = None
        self._my_rules: Tuple[Rule, ...] = ()
        self._their_rules: Tuple[Rule, ...] = ()
        self._applied: Optional[Tuple[AccountID, RuleSet, RuleSet]] = None
        self._ghost_span: Optional[int] = None
        self._channel: Optional[MembershipEventChannel] = None
        self._unsubscribe: Optional[Unsubscribe] = None

    @property
    def state(self) -> ConductorState:
        return self._lifecycle.state

    @property
    def self_id(self) -> Optional[AccountID]:
        return self._self_id

    @property
    def rules(self) -> Rules:
        return self._my_rules, self._their_rules

    @property
    def ghost_span(self) -> Optional[int]:
        return self._ghost_span

    @property
    def last_estimate(self) -> Optional[BudgetEstimate]:
        return self._estimator.last_estimate

    @property
    def controller(self) -> AccountGoalController:
        return self._controller

    def setup_account_goals(self, account_id: AccountID, rules: Sequence[Rule]) -> List[Assignment]:
        return self._controller.setup_account_goals(account_id, rules)

    def teardown_account_goals(self, account_id: AccountID, rules: Sequence[Rule]) -> List[Assignment]:
        return self._controller.teardown_account_goals(account_id, rules)

    def start(self, self_id: AccountID, rules: RuleInput, max_bytes: int) -> None:
        """Start automatic goal reconciliation, garbage collection and sync.

        Assumes the membership set is loaded for ``self_id``.

        Args:
            self_id: Local account ID
            rules: ``(my_rules, their_rules)``, each a list of ``domain@goal``
            max_bytes: Disk budget handed to the garbage collector

        Raises:
            ConfigError: If ``max_bytes`` is below the configured floor
            InvalidRuleError: If any rule is malformed
            MissingCollaboratorError: If a dict rule has no dictionary engine
            InvalidStateTransitionError: If called while already starting
        """
        self._lifecycle.transition(ConductorState.STARTING)
        try:
            self._start(self_id, rules, max_bytes)
        except Exception:
            self._release_watch()
            self._lifecycle.transition(ConductorState.FAILED)
            logger.exception(
                "Conductor failed to start",
                extra={"self_id": self_id},
            )
            raise
        self._lifecycle.transition(ConductorState.RUNNING)

    def _start(self, self_id: AccountID, rules: RuleInput, max_bytes: int) -> None:
        for advisory in self._estimator.check_max_bytes(max_bytes):
            log_advisory(advisory)

        followed = list(self._membership.values(FOLLOWS))
        num_followed = len(followed)

        my_rules, their_rules = self._estimator.estimate_and_warn(rules, num_followed, max_bytes)

        self._release_watch()
        self._self_id = self_id
        self._my_rules = my_rules
        self._their_rules = their_rules

        previous = self._applied
        if previous is not None and previous[0] == self_id:
            # Restart: targets only the previous rules covered go to none
            _, old_mine, old_theirs = previous
            self._controller.replace_account_goals(self_id, old_mine, my_rules)
            for account_id in followed:
                self._controller.replace_account_goals(account_id, old_theirs, their_rules)
        else:
            self._controller.setup_account_goals(self_id, my_rules)
            for account_id in followed:
                self._controller.setup_account_goals(account_id, their_rules)
        self._applied = (self_id, my_rules, their_rules)

        self._channel = MembershipEventChannel(self.handle_membership_event)
        self._unsubscribe = self._membership.watch(self._channel.deliver)

        self._ghost_span = self._ghosts.apply(my_rules, their_rules, num_followed)

        self._gc.start(max_bytes)
        self._sync.start()

        logger.info(
            f"Conductor started for {self_id} following {num_followed} accounts",
            extra={
                "self_id": self_id,
                "num_followed": num_followed,
                "my_rules": [str(r) for r in my_rules],
                "their_rules": [str(r) for r in their_rules],
                "max_bytes": max_bytes,
                "ghost_span": self._ghost_span,
            },
        )

    def handle_membership_event(self, event: MembershipEvent) -> None:
        """Apply one follows/blocks change to the goals of ``event.value``."""
        if event.subdomain == FOLLOWS and event.kind is MembershipEventKind.ADD:
            self._controller.setup_account_goals(event.value, self._their_rules)
        elif event.subdomain == FOLLOWS and event.kind is MembershipEventKind.DEL:
            self._controller.teardown_account_goals(event.value, self._their_rules)
        elif event.subdomain == BLOCKS and event.kind is MembershipEventKind.ADD:
            self._controller.teardown_account_goals(event.value, self._their_rules)
        else:
            logger.debug(
                "Ignoring membership event",
                extra={
                    "event": event.kind.value,
                    "subdomain": event.subdomain,
                    "value": event.value,
                },
            )
            if self._telemetry is not None:
                self._telemetry.record(
                    "ignored",
                    event.value,
                    metadata={"event": event.kind.value, "subdomain": event.subdomain},
                )

    def stop(self) -> None:
        """Stop reacting to membership changes.

        Goals already written stay as they are; the garbage collector and
        sync transport are not stopped.
        """
        self._release_watch()
        self._lifecycle.transition(ConductorState.STOPPED)
        logger.info("Conductor stopped", extra={"self_id": self._self_id})

    def _release_watch(self) -> None:
        if self._channel is not None:
            self._channel.close()
            self._channel = None
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None


__all__ = ["Conductor"]
