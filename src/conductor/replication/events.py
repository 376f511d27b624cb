"""Single-consumer delivery of membership events.

The membership set calls :meth:`MembershipEventChannel.deliver` from its
watch callback. Events are queued and drained one at a time in arrival
order, so goal changes for an account are applied in the order the
follow/block changes happened even when a handler triggers further events.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Callable, Deque, Optional

from .models import MembershipEvent

logger = logging.getLogger(__name__)


class MembershipEventChannel:
    """Serial queue in front of a membership event handler."""

    def __init__(self, handler: Callable[[MembershipEvent], None]) -> None:
        self._handler: Optional[Callable[[MembershipEvent], None]] = handler
        self._queue: Deque[MembershipEvent] = deque()
        self._queue_lock = threading.Lock()
        self._drain_lock = threading.Lock()
        self._delivered = 0

    @property
    def pending(self) -> int:
        with self._queue_lock:
            return len(self._queue)

    @property
    def delivered(self) -> int:
        return self._delivered

    @property
    def closed(self) -> bool:
        return self._handler is None

    def deliver(self, event: MembershipEvent) -> None:
        """Queue ``event`` and drain unless another delivery already is."""
        if self._handler is None:
            logger.debug(
                "Dropping membership event on closed channel",
                extra={"event": event.kind.value, "subdomain": event.subdomain},
            )
            return

        with self._queue_lock:
            self._queue.append(event)

        while True:
            # Whoever holds the drain lock will also pick up this event.
            if not self._drain_lock.acquire(blocking=False):
                return
            try:
                self._drain()
            finally:
                self._drain_lock.release()

            # An event queued between the last check and the release
            with self._queue_lock:
                if not self._queue or self._handler is None:
                    return

    def _drain(self) -> None:
        while True:
            handler = self._handler
            with self._queue_lock:
                if handler is None or not self._queue:
                    return
                event = self._queue.popleft()

            handler(event)
            self._delivered += 1

    def close(self) -> None:
        """Stop delivering; pending events are dropped."""
        self._handler = None
        with self._queue_lock:
            self._queue.clear()


__all__ = ["MembershipEventChannel"]
