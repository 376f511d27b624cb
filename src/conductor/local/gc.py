"""Naive garbage collector for the in-memory store.

A collection pass removes every message whose feed goal is ``none`` and
trims ``newest-N`` / ``oldest-N`` feeds to their window. Feeds without a
goal are left alone.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Optional

from .goals import InMemoryGoalTracker
from .store import InMemoryFeedStore, Message

logger = logging.getLogger(__name__)


class InMemoryGarbageCollector:
    def __init__(self, store: InMemoryFeedStore, goals: InMemoryGoalTracker) -> None:
        self._store = store
        self._goals = goals
        self._max_bytes: Optional[int] = None

    @property
    def started(self) -> bool:
        return self._max_bytes is not None

    @property
    def max_bytes(self) -> Optional[int]:
        return self._max_bytes

    def start(self, max_bytes: int) -> None:
        self._max_bytes = max_bytes
        logger.info("Garbage collector started", extra={"max_bytes": max_bytes})

    def stop(self) -> None:
        self._max_bytes = None

    def collect(self) -> int:
        """Run one pass. Returns the number of deleted messages."""
        by_feed: Dict[str, List[Message]] = defaultdict(list)
        for message in self._store.messages():
            by_feed[message.feed_id].append(message)

        doomed: List[Message] = []
        for feed_id, messages in by_feed.items():
            goal = self._goals.get(feed_id)
            if goal is None:
                continue
            spec = self._goals.parse(goal)
            if spec.kind == "none":
                doomed.extend(messages)
            elif spec.kind in ("newest", "oldest"):
                messages.sort(key=lambda m: m.seq)
                keep = int(spec.count)
                if spec.kind == "newest":
                    doomed.extend(messages[: max(len(messages) - keep, 0)])
                else:
                    doomed.extend(messages[keep:])

        deleted = sum(1 for message in doomed if self._store.delete(message.msg_id))
        logger.info(
            f"Garbage collection removed {deleted} messages",
            extra={"deleted": deleted, "remaining": len(self._store)},
        )
        return deleted


__all__ = ["InMemoryGarbageCollector"]
