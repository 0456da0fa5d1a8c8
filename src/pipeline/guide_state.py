"""
Guide feedback state machine.

Driven only by per-cycle outcomes. Holds the current state and one pending
revert deadline that brings ``success``/``error`` back to ``scanning``.
"""

from __future__ import annotations

import logging
from typing import Optional

from models.scan_state import GuideState

logger = logging.getLogger(__name__)


class GuideStateMachine:
    """
    waiting -> scanning -> success/error -> scanning ..., any -> waiting on stop.

    Timed reverts are evaluated lazily: every event and every read passes
    the current time, and an expired deadline is applied first.
    """

    def __init__(self, success_display_ms: float = 300, error_display_ms: float = 1000):
        self._success_display_ms = success_display_ms
        self._error_display_ms = error_display_ms
        self._state = GuideState.WAITING
        self._revert_at: Optional[float] = None

    @property
    def state(self) -> GuideState:
        """State as of the last event (pending reverts not applied)."""
        return self._state

    @property
    def revert_at(self) -> Optional[float]:
        return self._revert_at

    def _set(self, state: GuideState, revert_at: Optional[float] = None) -> None:
        if state != self._state:
            logger.debug(f"Guide state {self._state.value} -> {state.value}")
        self._state = state
        self._revert_at = revert_at

    def tick(self, now: float) -> GuideState:
        """Apply an expired revert deadline."""
        if self._revert_at is not None and now >= self._revert_at:
            self._set(GuideState.SCANNING)
        return self._state

    def current(self, now: float) -> GuideState:
        return self.tick(now)

    def on_start(self) -> None:
        self._set(GuideState.WAITING)

    def on_capture_started(self) -> None:
        if self._state == GuideState.WAITING:
            self._set(GuideState.SCANNING)

    def on_success(self, now: float) -> None:
        """An in-guide detection was accepted this cycle."""
        self.tick(now)
        if self._state == GuideState.WAITING:
            return
        self._set(GuideState.SUCCESS, now + self._success_display_ms)

    def on_error(self, now: float) -> None:
        """The decode call failed this cycle."""
        self.tick(now)
        if self._state == GuideState.WAITING:
            return
        self._set(GuideState.ERROR, now + self._error_display_ms)

    def on_no_detection(self, now: float) -> None:
        """A cycle decoded nothing; drop a lingering success early."""
        self.tick(now)
        if self._state == GuideState.SUCCESS:
            self._set(GuideState.SCANNING)

    def on_stop(self) -> None:
        self._set(GuideState.WAITING)
