"""Lifecycle state machine for a single scan session."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from domain.errors import InternalFault
from domain.models import ScanState, StateTransition

logger = logging.getLogger(__name__)

_ALLOWED: dict[ScanState, frozenset[ScanState]] = {
    ScanState.IDLE: frozenset({ScanState.INITIALIZING, ScanState.CANCELLED, ScanState.ERROR}),
    ScanState.INITIALIZING: frozenset({ScanState.READY, ScanState.CANCELLED, ScanState.ERROR}),
    ScanState.READY: frozenset({ScanState.SCANNING, ScanState.CANCELLED, ScanState.ERROR}),
    ScanState.SCANNING: frozenset({ScanState.COMPLETED, ScanState.CANCELLED, ScanState.ERROR}),
    ScanState.COMPLETED: frozenset(),
    ScanState.CANCELLED: frozenset(),
    ScanState.ERROR: frozenset(),
}


class ScanStateMachine:
    """Validates and records lifecycle transitions.

    Terminal states accept no further transitions; asking for one raises
    :class:`InternalFault`.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._state = ScanState.IDLE
        self._history: list[StateTransition] = []
        self._on_transition: Optional[Callable[[StateTransition], None]] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def can_transition(self, target: ScanState) -> bool:
        return target in _ALLOWED[self._state]

    def transition(self, target: ScanState, reason: str = "") -> StateTransition:
        if not self.can_transition(target):
            raise InternalFault(
                f"Illegal transition {self._state.value} → {target.value}"
            )
        record = StateTransition(
            from_state=self._state,
            to_state=target,
            timestamp=self._clock(),
            reason=reason,
        )
        self._history.append(record)
        logger.info("Scan state: %s → %s  %s", self._state.value, target.value, reason)
        self._state = target
        if self._on_transition:
            self._on_transition(record)
        return record

    def set_on_transition(self, callback: Callable[[StateTransition], None]) -> None:
        self._on_transition = callback

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state.is_terminal

    @property
    def history(self) -> list[StateTransition]:
        return list(self._history)
