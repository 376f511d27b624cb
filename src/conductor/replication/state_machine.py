"""Lifecycle state machine for the conductor.

``start`` is the single entry point and must not be re-entered while it is
running. This module validates lifecycle transitions and keeps a history of
them for diagnostics.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Set

from .exceptions import InvalidStateTransitionError

logger = logging.getLogger(__name__)


class ConductorState(str, Enum):
    """Conductor lifecycle states."""

    IDLE = "idle"  # Constructed, never started
    STARTING = "starting"  # Inside start()
    RUNNING = "running"  # Goals bootstrapped, watching membership
    FAILED = "failed"  # start() raised
    STOPPED = "stopped"  # Membership watch released


VALID_TRANSITIONS: Dict[ConductorState, Set[ConductorState]] = {
    ConductorState.IDLE: {
        ConductorState.STARTING,
        ConductorState.STOPPED,
    },
    ConductorState.STARTING: {
        ConductorState.RUNNING,
        ConductorState.FAILED,
    },
    ConductorState.RUNNING: {
        ConductorState.STARTING,  # Restart with new rules or budget
        ConductorState.STOPPED,
    },
    ConductorState.FAILED: {
        ConductorState.STARTING,  # Retry after fixing configuration
        ConductorState.STOPPED,
    },
    ConductorState.STOPPED: {
        ConductorState.STARTING,
        ConductorState.STOPPED,  # Already stopped (idempotent)
    },
}


@dataclass
class StateTransition:
    """Records a lifecycle transition attempt."""

    from_state: ConductorState
    to_state: ConductorState
    timestamp: datetime
    reason: Optional[str] = None

    def is_valid(self) -> bool:
        return self.to_state in VALID_TRANSITIONS.get(self.from_state, set())

    def is_idempotent(self) -> bool:
        return self.from_state == self.to_state


class LifecycleTracker:
    """Holds the current lifecycle state and enforces VALID_TRANSITIONS."""

    def __init__(self, initial: ConductorState = ConductorState.IDLE) -> None:
        self._state = initial
        self._history: List[StateTransition] = []

    @property
    def state(self) -> ConductorState:
        return self._state

    @property
    def history(self) -> List[StateTransition]:
        return list(self._history)

    def transition(
        self,
        to_state: ConductorState,
        *,
        reason: Optional[str] = None,
    ) -> StateTransition:
        """Move to ``to_state``.

        Raises:
            InvalidStateTransitionError: If the move is not allowed
        """
        transition = StateTransition(
            from_state=self._state,
            to_state=to_state,
            timestamp=datetime.utcnow(),
            reason=reason,
        )

        if not transition.is_valid():
            logger.error(
                "Invalid conductor state transition",
                extra={
                    "from_state": self._state.value,
                    "to_state": to_state.value,
                },
            )
            raise InvalidStateTransitionError(
                f"Invalid transition: {self._state.value} → {to_state.value}"
            )

        if transition.is_idempotent():
            logger.debug(
                "Idempotent conductor state transition",
                extra={"state": to_state.value},
            )

        self._history.append(transition)
        self._state = to_state
        return transition


__all__ = [
    "ConductorState",
    "VALID_TRANSITIONS",
    "StateTransition",
    "LifecycleTracker",
]
