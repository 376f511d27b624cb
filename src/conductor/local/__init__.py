"""In-process collaborators for running the conductor without a network."""

from .gc import InMemoryGarbageCollector
from .goals import InMemoryGoalTracker, parse_goal
from .peer import LocalPeer, create_peer
from .sets import InMemoryDictionary, InMemoryMembershipSet
from .store import InMemoryFeedStore, Message
from .sync import LoopbackSync

__all__ = [
    "InMemoryGarbageCollector",
    "InMemoryGoalTracker",
    "parse_goal",
    "LocalPeer",
    "create_peer",
    "InMemoryDictionary",
    "InMemoryMembershipSet",
    "InMemoryFeedStore",
    "Message",
    "LoopbackSync",
]
