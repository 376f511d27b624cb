"""A complete in-process peer: store, engines and conductor wired together."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..configuration.settings import ConductorConfig
from ..replication.conductor import Conductor
from ..replication.telemetry import ReconciliationTelemetry
from .gc import InMemoryGarbageCollector
from .goals import InMemoryGoalTracker
from .sets import InMemoryDictionary, InMemoryMembershipSet
from .store import InMemoryFeedStore
from .sync import LoopbackSync


@dataclass
class LocalPeer:
    name: str
    store: InMemoryFeedStore
    goals: InMemoryGoalTracker
    membership: InMemoryMembershipSet
    gc: InMemoryGarbageCollector
    sync: LoopbackSync
    conductor: Conductor
    dictionary: Optional[InMemoryDictionary] = None
    telemetry: ReconciliationTelemetry = field(default_factory=ReconciliationTelemetry)

    def create_account(self) -> str:
        """Create this peer's account (nonce is the peer name) and load sets for it."""
        account_id = self.store.create_account(self.name)
        self.membership.load(account_id)
        return account_id

    def connect(self, other: "LocalPeer") -> None:
        self.sync.connect(other.sync)

    def texts(self) -> List[str]:
        """``data["text"]`` of every stored message that has one."""
        return [m.data["text"] for m in self.store.messages() if m.data.get("text")]


def create_peer(
    name: str,
    *,
    config: Optional[ConductorConfig] = None,
    with_dictionary: bool = True,
) -> LocalPeer:
    store = InMemoryFeedStore()
    goals = InMemoryGoalTracker()
    membership = InMemoryMembershipSet(store)
    dictionary = InMemoryDictionary() if with_dictionary else None
    gc = InMemoryGarbageCollector(store, goals)
    sync = LoopbackSync(store, goals)
    telemetry = ReconciliationTelemetry()
    conductor = Conductor(
        store=store,
        goals=goals,
        membership=membership,
        gc=gc,
        sync=sync,
        dictionary=dictionary,
        config=config,
        telemetry=telemetry,
    )
    return LocalPeer(
        name=name,
        store=store,
        goals=goals,
        membership=membership,
        gc=gc,
        sync=sync,
        conductor=conductor,
        dictionary=dictionary,
        telemetry=telemetry,
    )


__all__ = ["LocalPeer", "create_peer"]
