"""Tests for the flip animation state machine (F3)."""

import pytest

from bookreader.core.clock import ManualScheduler
from bookreader.core.flip import FlipDirection, FlipPhase, FlipStateMachine

FORWARD = FlipDirection.FORWARD
BACKWARD = FlipDirection.BACKWARD


@pytest.fixture
def clock():
    return ManualScheduler()


@pytest.fixture
def machine(clock):
    # 48 pages -> 25 spreads
    return FlipStateMachine(total_spreads=25, scheduler=clock, phase_delay=0.5)


class TestFlipPhases:
    """Tests for the LEAVING -> ENTERING -> IDLE sequence."""

    def test_starts_idle_at_cover(self, machine):
        assert machine.phase is FlipPhase.IDLE
        assert machine.spread_index == 0
        assert machine.transition is None

    def test_navigate_enters_leaving(self, machine):
        assert machine.navigate(FORWARD) is True
        assert machine.phase is FlipPhase.LEAVING
        assert machine.direction is FORWARD
        # Index does not move until LEAVING ends
        assert machine.spread_index == 0

    def test_index_moves_when_leaving_ends(self, machine, clock):
        machine.navigate(FORWARD)
        clock.advance(0.5)
        assert machine.phase is FlipPhase.ENTERING
        assert machine.spread_index == 1

    def test_back_to_idle_after_entering(self, machine, clock):
        machine.navigate(FORWARD)
        clock.advance(0.5)
        clock.advance(0.5)
        assert machine.phase is FlipPhase.IDLE
        assert machine.direction is None
        assert machine.spread_index == 1

    def test_backward_flip(self, clock):
        machine = FlipStateMachine(25, clock, phase_delay=0.5, start_index=5)
        machine.navigate(BACKWARD)
        clock.advance(1.0)
        assert machine.spread_index == 4
        assert machine.is_idle


class TestFlipSerialization:
    """Only one transition may be in flight."""

    def test_double_navigate_changes_index_once(self, machine, clock):
        assert machine.navigate(FORWARD) is True
        assert machine.navigate(FORWARD) is False
        clock.advance(5.0)
        assert machine.spread_index == 1

    def test_navigate_dropped_while_entering(self, machine, clock):
        machine.navigate(FORWARD)
        clock.advance(0.5)
        assert machine.phase is FlipPhase.ENTERING
        assert machine.navigate(BACKWARD) is False
        clock.advance(0.5)
        assert machine.spread_index == 1

    def test_navigate_again_after_idle(self, machine, clock):
        machine.navigate(FORWARD)
        clock.advance(1.0)
        assert machine.navigate(FORWARD) is True
        clock.advance(1.0)
        assert machine.spread_index == 2


class TestFlipBounds:
    """Boundary guards."""

    def test_backward_at_cover_is_noop(self, machine, clock):
        assert machine.navigate(BACKWARD) is False
        assert machine.is_idle
        assert clock.pending == 0

    def test_forward_at_last_spread_is_noop(self, clock):
        machine = FlipStateMachine(25, clock, start_index=24)
        assert machine.navigate(FORWARD) is False
        assert machine.spread_index == 24
        assert machine.is_idle

    def test_can_navigate(self, machine, clock):
        assert machine.can_navigate(FORWARD) is True
        assert machine.can_navigate(BACKWARD) is False
        machine.navigate(FORWARD)
        assert machine.can_navigate(FORWARD) is False

    def test_single_spread_document(self, clock):
        machine = FlipStateMachine(1, clock)
        assert machine.navigate(FORWARD) is False
        assert machine.navigate(BACKWARD) is False

    def test_start_index_clamped(self, clock):
        machine = FlipStateMachine(3, clock, start_index=10)
        assert machine.spread_index == 2


class TestFlipJumps:
    """Home/End jumps bypass the animation."""

    def test_jump_to_last(self, machine, clock):
        assert machine.jump_to_last() is True
        assert machine.spread_index == 24
        assert machine.is_idle
        assert clock.pending == 0

    def test_jump_to_first(self, clock):
        machine = FlipStateMachine(25, clock, start_index=10)
        assert machine.jump_to_first() is True
        assert machine.spread_index == 0

    def test_jump_to_current_is_noop(self, machine):
        assert machine.jump_to_first() is False

    def test_jump_cancels_transition(self, machine, clock):
        machine.navigate(FORWARD)
        machine.jump_to_last()
        clock.advance(5.0)
        assert machine.spread_index == 24
        assert machine.is_idle

    def test_jump_clamps(self, machine):
        machine.jump_to(99)
        assert machine.spread_index == 24
        machine.jump_to(-3)
        assert machine.spread_index == 0


class TestFlipListeners:
    """Observers see every phase change."""

    def test_listener_sequence(self, machine, clock):
        seen = []
        machine.subscribe(lambda m: seen.append((m.phase, m.spread_index)))

        machine.navigate(FORWARD)
        clock.advance(1.0)

        assert seen == [
            (FlipPhase.LEAVING, 0),
            (FlipPhase.ENTERING, 1),
            (FlipPhase.IDLE, 1),
        ]

    def test_dropped_request_not_notified(self, machine):
        seen = []
        machine.subscribe(lambda m: seen.append(m.phase))
        machine.navigate(BACKWARD)
        assert seen == []

    def test_cancel_keeps_index(self, machine, clock):
        machine.navigate(FORWARD)
        machine.cancel()
        clock.advance(1.0)
        assert machine.spread_index == 0
        assert machine.is_idle
