"""In-memory feed store.

Messages live in insertion order. Account and feed identifiers are
URL-safe base64 SHA-256 digests, so they are deterministic across peers:
two stores derive the same feed ID for the same account and domain.
"""

from __future__ import annotations

import base64
import hashlib
import itertools
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

ACCOUNT_DOMAIN = "account"
ID_LENGTH = 43


def _digest(*parts: str) -> str:
    raw = hashlib.sha256("\x00".join(parts).encode("utf-8")).digest()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


@dataclass(frozen=True)
class Message:
    """One message of one feed.

    ``feed_id`` is the goal target the message belongs to. Account messages
    use the account ID itself.
    """

    msg_id: str
    account: str
    domain: str
    feed_id: str
    seq: int
    data: Dict[str, Any] = field(default_factory=dict)


class InMemoryFeedStore:
    """Thread-safe message store keyed by message ID."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._messages: Dict[str, Message] = {}
        self._seq = itertools.count()

    @property
    def id_length(self) -> int:
        return ID_LENGTH

    def derive_feed_id(self, account_id: str, domain: str) -> str:
        return _digest("feed", account_id, domain)

    def create_account(self, nonce: str) -> str:
        """Create an account and its first account message."""
        account_id = _digest("account", nonce)
        self._append(account_id, ACCOUNT_DOMAIN, account_id, {"action": "add", "nonce": nonce})
        return account_id

    def publish(self, account: str, domain: str, data: Dict[str, Any]) -> Message:
        return self._append(account, domain, self.derive_feed_id(account, domain), data)

    def _append(self, account: str, domain: str, feed_id: str, data: Dict[str, Any]) -> Message:
        with self._lock:
            seq = next(self._seq)
            msg_id = _digest("msg", feed_id, str(seq), repr(sorted(data.items())))
            message = Message(
                msg_id=msg_id,
                account=account,
                domain=domain,
                feed_id=feed_id,
                seq=seq,
                data=dict(data),
            )
            self._messages[msg_id] = message
        return message

    def add(self, message: Message) -> bool:
        """Store a message received from another peer. False if already known."""
        with self._lock:
            if message.msg_id in self._messages:
                return False
            self._messages[message.msg_id] = message
            return True

    def get(self, msg_id: str) -> Optional[Message]:
        with self._lock:
            return self._messages.get(msg_id)

    def delete(self, msg_id: str) -> bool:
        with self._lock:
            return self._messages.pop(msg_id, None) is not None

    def messages(self) -> List[Message]:
        with self._lock:
            return list(self._messages.values())

    def feed_messages(self, feed_id: str) -> List[Message]:
        return [m for m in self.messages() if m.feed_id == feed_id]

    def __iter__(self) -> Iterator[Message]:
        return iter(self.messages())

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)


__all__ = ["ACCOUNT_DOMAIN", "ID_LENGTH", "Message", "InMemoryFeedStore"]
