"""Interfaces of the engines the conductor drives.

The conductor owns none of these. It derives feed IDs through the feed
store, writes goals into the goal tracker, reads and watches the membership
set, and hands the byte budget to the garbage collector.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Protocol, Tuple

from .models import AccountID, FeedID, GoalExpression, GoalSpec, MembershipEvent

MembershipHandler = Callable[[MembershipEvent], None]
Unsubscribe = Callable[[], None]


class FeedStore(Protocol):
    """Protocol for the message/feed store."""

    @property
    def id_length(self) -> int:
        """Length in bytes of the identifiers the store produces."""
        ...

    def derive_feed_id(self, account_id: AccountID, domain: str) -> FeedID:
        """Deterministic, side-effect free feed ID for an account/domain pair."""
        ...


class GoalTracker(Protocol):
    """Protocol for the goal-tracking engine."""

    def set(self, target: str, goal: GoalExpression) -> None:
        ...

    def get(self, target: str) -> Optional[GoalExpression]:
        ...

    def parse(self, goal: GoalExpression) -> GoalSpec:
        ...

    def list(self) -> List[Tuple[str, GoalExpression]]:
        ...


class MembershipSet(Protocol):
    """Protocol for the membership-set engine holding follows/blocks."""

    def get_domain(self, name: str) -> str:
        ...

    def values(self, name: str) -> List[AccountID]:
        ...

    def watch(self, handler: MembershipHandler) -> Optional[Unsubscribe]:
        ...

    def set_ghost_span(self, span: int) -> None:
        ...

    def get_ghost_span(self) -> int:
        ...


class DictionaryEngine(Protocol):
    """Protocol for the optional dictionary-replication engine."""

    def get_domain(self, name: str) -> str:
        ...

    def set_ghost_span(self, span: int) -> None:
        ...

    def get_ghost_span(self) -> int:
        ...


class GarbageCollector(Protocol):
    def start(self, max_bytes: int) -> None:
        ...


class SyncTransport(Protocol):
    def start(self) -> None:
        ...


__all__ = [
    "MembershipHandler",
    "Unsubscribe",
    "FeedStore",
    "GoalTracker",
    "MembershipSet",
    "DictionaryEngine",
    "GarbageCollector",
    "SyncTransport",
]
