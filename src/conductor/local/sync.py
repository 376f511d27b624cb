"""Loopback sync between in-process peers.

A pull copies every message of the remote store whose feed the local goal
tracker wants. Bounded goals (``newest-N``/``oldest-N``) only pull their
window.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List

from .goals import InMemoryGoalTracker
from .store import InMemoryFeedStore, Message

logger = logging.getLogger(__name__)


class LoopbackSync:
    def __init__(self, store: InMemoryFeedStore, goals: InMemoryGoalTracker) -> None:
        self._store = store
        self._goals = goals
        self._started = False
        self._peers: List["LoopbackSync"] = []

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        self._started = True
        logger.info("Sync started")

    def connect(self, remote: "LoopbackSync") -> None:
        if remote is self:
            raise ValueError("cannot connect sync to itself")
        if remote not in self._peers:
            self._peers.append(remote)
        if self not in remote._peers:
            remote._peers.append(self)

    def disconnect(self, remote: "LoopbackSync") -> None:
        if remote in self._peers:
            self._peers.remove(remote)
        if self in remote._peers:
            remote._peers.remove(self)

    def pull(self, remote: "LoopbackSync") -> int:
        """Copy wanted messages from ``remote``. Returns how many were new."""
        by_feed: Dict[str, List[Message]] = defaultdict(list)
        for message in remote._store.messages():
            by_feed[message.feed_id].append(message)

        received = 0
        for feed_id, messages in by_feed.items():
            goal = self._goals.get(feed_id)
            if goal is None:
                continue
            spec = self._goals.parse(goal)
            if spec.kind == "none":
                continue
            if spec.kind in ("newest", "oldest"):
                messages.sort(key=lambda m: m.seq)
                keep = int(spec.count)
                if spec.kind == "newest":
                    messages = messages[max(len(messages) - keep, 0):]
                else:
                    messages = messages[:keep]
            received += sum(1 for message in messages if self._store.add(message))
        return received

    def exchange(self) -> int:
        """Pull from, and push to, every connected started peer."""
        if not self._started:
            return 0

        total = 0
        for remote in list(self._peers):
            if not remote.started:
                continue
            total += self.pull(remote)
            total += remote.pull(self)

        logger.debug("Sync exchange finished", extra={"received": total})
        return total


__all__ = ["LoopbackSync"]
