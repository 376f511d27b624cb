"""In-memory membership set and dictionary engines.

The membership set keeps named sets of account IDs (``follows``,
``blocks``) for the account it was loaded with. Every change is also
published to the feed store, so the set feed itself replicates like any
other feed, and is announced to watchers as a :class:`MembershipEvent`.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional

from ..replication.models import MembershipEvent, MembershipEventKind
from .store import InMemoryFeedStore

logger = logging.getLogger(__name__)

SET_DOMAIN_PREFIX = "set_v1__"
DICT_DOMAIN_PREFIX = "dict_v1__"
DEFAULT_GHOST_SPAN = 32

Watcher = Callable[[MembershipEvent], None]


class InMemoryMembershipSet:
    """Named account sets with change notifications."""

    def __init__(self, store: InMemoryFeedStore) -> None:
        self._store = store
        self._lock = threading.RLock()
        self._owner: Optional[str] = None
        self._items: Dict[str, Dict[str, None]] = {}
        self._watchers: List[Watcher] = []
        self._ghost_span = DEFAULT_GHOST_SPAN

    @property
    def owner(self) -> Optional[str]:
        return self._owner

    def load(self, account_id: str) -> None:
        self._owner = account_id

    def get_domain(self, name: str) -> str:
        return f"{SET_DOMAIN_PREFIX}{name}"

    def values(self, name: str) -> List[str]:
        with self._lock:
            return list(self._items.get(name, {}))

    def has(self, name: str, value: str) -> bool:
        with self._lock:
            return value in self._items.get(name, {})

    def add(self, name: str, value: str) -> bool:
        """Add ``value`` to set ``name``. False if it was already there."""
        with self._lock:
            owner = self._require_owner()
            items = self._items.setdefault(name, {})
            if value in items:
                return False
            items[value] = None
            self._store.publish(owner, self.get_domain(name), {"add": [value]})
        self._notify(MembershipEvent(MembershipEventKind.ADD, name, value))
        return True

    def delete(self, name: str, value: str) -> bool:
        """Remove ``value`` from set ``name``. False if it was not there."""
        with self._lock:
            owner = self._require_owner()
            items = self._items.get(name, {})
            if value not in items:
                return False
            del items[value]
            self._store.publish(owner, self.get_domain(name), {"del": [value]})
        self._notify(MembershipEvent(MembershipEventKind.DEL, name, value))
        return True

    def watch(self, handler: Watcher) -> Callable[[], None]:
        with self._lock:
            self._watchers.append(handler)

        def unsubscribe() -> None:
            with self._lock:
                if handler in self._watchers:
                    self._watchers.remove(handler)

        return unsubscribe

    def set_ghost_span(self, span: int) -> None:
        self._ghost_span = span

    def get_ghost_span(self) -> int:
        return self._ghost_span

    def _require_owner(self) -> str:
        if self._owner is None:
            raise RuntimeError("membership set is not loaded; call load(account_id) first")
        return self._owner

    def _notify(self, event: MembershipEvent) -> None:
        with self._lock:
            watchers = list(self._watchers)
        logger.debug(
            "Membership change",
            extra={"event": event.kind.value, "subdomain": event.subdomain, "value": event.value},
        )
        for watcher in watchers:
            watcher(event)


class InMemoryDictionary:
    """Dictionary engine stand-in: domain namespacing and ghost span only."""

    def __init__(self) -> None:
        self._ghost_span = DEFAULT_GHOST_SPAN

    def get_domain(self, name: str) -> str:
        return f"{DICT_DOMAIN_PREFIX}{name}"

    def set_ghost_span(self, span: int) -> None:
        self._ghost_span = span

    def get_ghost_span(self) -> int:
        return self._ghost_span


__all__ = [
    "SET_DOMAIN_PREFIX",
    "DICT_DOMAIN_PREFIX",
    "DEFAULT_GHOST_SPAN",
    "InMemoryMembershipSet",
    "InMemoryDictionary",
]
