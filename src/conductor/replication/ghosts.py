"""Ghost span: how long tombstones of removed set/dict items are kept.

All ghostable feeds share one tombstone budget. The span is that budget
divided by the bytes one ghost costs (an identifier) times the number of
ghostable feeds across self and every followed account.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from ..configuration.settings import ConductorConfig
from .collaborators import DictionaryEngine, MembershipSet
from .models import RuleSet
from .rules import IMPLICIT_RULES, count_ghostable

logger = logging.getLogger(__name__)


def count_ghostable_feeds(my_rules: RuleSet, their_rules: RuleSet, num_followed: int) -> int:
    """Ghostable feeds for self plus ``num_followed`` accounts.

    Each account contributes its set/dict rules and its implicit follows and
    blocks sets.
    """
    implicit = count_ghostable(IMPLICIT_RULES)
    mine = count_ghostable(my_rules) + implicit
    theirs = count_ghostable(their_rules) + implicit
    return mine + num_followed * theirs


def compute_ghost_span(total_ghost_bytes: int, id_bytes: int, ghostable_feeds: int) -> int:
    """``total_ghost_bytes / (id_bytes × ghostable_feeds)``, rounded half up."""
    if id_bytes <= 0:
        raise ValueError(f"id_bytes must be positive, got {id_bytes}")
    if ghostable_feeds <= 0:
        raise ValueError(f"ghostable_feeds must be positive, got {ghostable_feeds}")
    return math.floor(total_ghost_bytes / (id_bytes * ghostable_feeds) + 0.5)


class GhostSpanCalculator:
    """Computes the ghost span and pushes it to the set and dict engines."""

    def __init__(
        self,
        membership: MembershipSet,
        dictionary: Optional[DictionaryEngine],
        config: ConductorConfig,
        id_bytes: int,
    ) -> None:
        self._membership = membership
        self._dictionary = dictionary
        self._total_ghost_bytes = config.ghosts.total_ghost_bytes
        self._id_bytes = config.ghosts.id_bytes or id_bytes

    @property
    def id_bytes(self) -> int:
        return self._id_bytes

    def compute(self, my_rules: RuleSet, their_rules: RuleSet, num_followed: int) -> int:
        feeds = count_ghostable_feeds(my_rules, their_rules, num_followed)
        return compute_ghost_span(self._total_ghost_bytes, self._id_bytes, feeds)

    def apply(self, my_rules: RuleSet, their_rules: RuleSet, num_followed: int) -> int:
        span = self.compute(my_rules, their_rules, num_followed)
        self._membership.set_ghost_span(span)
        if self._dictionary is not None:
            self._dictionary.set_ghost_span(span)

        logger.info(
            f"Ghost span set to {span}",
            extra={
                "ghost_span": span,
                "num_followed": num_followed,
                "id_bytes": self._id_bytes,
            },
        )
        return span


__all__ = [
    "count_ghostable_feeds",
    "compute_ghost_span",
    "GhostSpanCalculator",
]
