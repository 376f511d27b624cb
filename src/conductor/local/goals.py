"""In-memory goal tracker and goal expression parser.

Supported goal expressions:

- ``all``: every message
- ``none``: nothing; the feed may be garbage collected
- ``set`` / ``dict``: the feed is a membership set or a dictionary
- ``newest-N`` / ``oldest-N``: a bounded window of N messages
"""

from __future__ import annotations

import math
import re
import threading
from typing import Dict, List, Optional, Tuple

from ..replication.models import GoalSpec

_BOUNDED = re.compile(r"^(newest|oldest)-(\d+)$")


def parse_goal(goal: str) -> GoalSpec:
    """Parse a goal expression.

    Raises:
        ValueError: If the expression is not recognized
    """
    if goal == "all":
        return GoalSpec("all", math.inf)
    if goal == "none":
        return GoalSpec("none", 0)
    if goal in ("set", "dict"):
        return GoalSpec(goal, math.inf)

    match = _BOUNDED.match(goal)
    if match:
        return GoalSpec(match.group(1), int(match.group(2)))

    raise ValueError(f"unrecognized goal expression {goal!r}")


class InMemoryGoalTracker:
    """Goal per target, kept in first-write order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._goals: Dict[str, str] = {}

    def set(self, target: str, goal: str) -> None:
        parse_goal(goal)
        with self._lock:
            self._goals[target] = goal

    def get(self, target: str) -> Optional[str]:
        with self._lock:
            return self._goals.get(target)

    def parse(self, goal: str) -> GoalSpec:
        return parse_goal(goal)

    def list(self) -> List[Tuple[str, str]]:
        with self._lock:
            return list(self._goals.items())

    def wants(self, target: str) -> bool:
        """True when messages of ``target`` should be replicated."""
        goal = self.get(target)
        return goal is not None and goal != "none"

    def __len__(self) -> int:
        with self._lock:
            return len(self._goals)


__all__ = ["parse_goal", "InMemoryGoalTracker"]
