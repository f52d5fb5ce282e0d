"""Page flip animation state machine.

A navigation runs in two timed phases:

    IDLE --navigate(dir)--> LEAVING(dir) --delay--> ENTERING(dir) --delay--> IDLE

The spread index moves to the target when LEAVING ends. While a transition
is in flight every other navigate() is dropped, so at most one transition
exists at a time.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

import structlog

from bookreader.core.clock import Scheduler, TimerHandle

logger = structlog.get_logger(__name__)

DEFAULT_PHASE_DELAY = 0.5  # seconds


class FlipDirection(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"

    @property
    def step(self) -> int:
        return 1 if self is FlipDirection.FORWARD else -1


class FlipPhase(str, Enum):
    IDLE = "idle"
    LEAVING = "leaving"
    ENTERING = "entering"


@dataclass(frozen=True)
class FlipTransition:
    """An in-flight navigation between two spreads."""

    direction: FlipDirection
    phase: FlipPhase
    source: int
    target: int


FlipListener = Callable[["FlipStateMachine"], None]


class FlipStateMachine:
    """Serializes spread navigation through a two-phase flip.

    Args:
        total_spreads: Number of spreads in the open document.
        scheduler: Timer source for the phase delays.
        phase_delay: Seconds spent in each of LEAVING and ENTERING.
        start_index: Initial spread index (clamped).
    """

    def __init__(
        self,
        total_spreads: int,
        scheduler: Scheduler,
        phase_delay: float = DEFAULT_PHASE_DELAY,
        start_index: int = 0,
    ):
        self.total_spreads = max(0, total_spreads)
        self._scheduler = scheduler
        self.phase_delay = phase_delay
        self._index = self._clamp(start_index)
        self._transition: FlipTransition | None = None
        self._timer: TimerHandle | None = None
        self._listeners: list[FlipListener] = []

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def spread_index(self) -> int:
        return self._index

    @property
    def transition(self) -> FlipTransition | None:
        return self._transition

    @property
    def phase(self) -> FlipPhase:
        return self._transition.phase if self._transition else FlipPhase.IDLE

    @property
    def direction(self) -> FlipDirection | None:
        return self._transition.direction if self._transition else None

    @property
    def is_idle(self) -> bool:
        return self._transition is None

    def can_navigate(self, direction: FlipDirection) -> bool:
        """Whether navigate(direction) would start a transition now."""
        if not self.is_idle:
            return False
        return self._in_bounds(self._index + direction.step)

    def subscribe(self, listener: FlipListener) -> None:
        """Register a callback run after every phase or index change."""
        self._listeners.append(listener)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def navigate(self, direction: FlipDirection) -> bool:
        """Start a flip towards the neighbouring spread.

        Returns:
            True if a transition started, False if the request was dropped
            (transition already running, or target out of bounds).
        """
        if not self.is_idle:
            logger.debug(
                "flip.navigate_dropped",
                reason="in_transition",
                direction=direction.value,
                phase=self.phase.value,
            )
            return False

        target = self._index + direction.step
        if not self._in_bounds(target):
            logger.debug(
                "flip.navigate_dropped",
                reason="out_of_bounds",
                direction=direction.value,
                spread_index=self._index,
                total_spreads=self.total_spreads,
            )
            return False

        self._transition = FlipTransition(
            direction=direction,
            phase=FlipPhase.LEAVING,
            source=self._index,
            target=target,
        )
        self._timer = self._scheduler.call_later(self.phase_delay, self._end_leaving)
        logger.debug("flip.started", direction=direction.value, source=self._index, target=target)
        self._notify()
        return True

    def jump_to(self, index: int) -> bool:
        """Move to index immediately, without animation.

        Cancels any in-flight transition. The index is clamped to bounds.

        Returns:
            True if the spread index or flip phase changed.
        """
        target = self._clamp(index)
        interrupted = self._cancel_transition()
        if target == self._index and not interrupted:
            return False
        self._index = target
        logger.debug("flip.jumped", target=target, interrupted=interrupted)
        self._notify()
        return True

    def jump_to_first(self) -> bool:
        return self.jump_to(0)

    def jump_to_last(self) -> bool:
        return self.jump_to(self.total_spreads - 1)

    def cancel(self) -> None:
        """Drop any in-flight transition, keeping the current index."""
        if self._cancel_transition():
            self._notify()

    # -------------------------------------------------------------------------
    # Timer callbacks
    # -------------------------------------------------------------------------

    def _end_leaving(self) -> None:
        transition = self._transition
        if transition is None or transition.phase is not FlipPhase.LEAVING:
            return
        self._index = transition.target
        self._transition = FlipTransition(
            direction=transition.direction,
            phase=FlipPhase.ENTERING,
            source=transition.source,
            target=transition.target,
        )
        self._timer = self._scheduler.call_later(self.phase_delay, self._end_entering)
        self._notify()

    def _end_entering(self) -> None:
        if self._transition is None or self._transition.phase is not FlipPhase.ENTERING:
            return
        self._transition = None
        self._timer = None
        logger.debug("flip.finished", spread_index=self._index)
        self._notify()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _cancel_transition(self) -> bool:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._transition is None:
            return False
        self._transition = None
        return True

    def _in_bounds(self, index: int) -> bool:
        return 0 <= index < self.total_spreads

    def _clamp(self, index: int) -> int:
        if self.total_spreads == 0:
            return 0
        return max(0, min(index, self.total_spreads - 1))

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
