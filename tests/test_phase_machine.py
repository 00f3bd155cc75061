"""Tests for the phase sequencer.

Tests cover:
1. Phase order and timing of a station transition
2. Catching up when several boundaries pass between updates
3. Queued interactions and their ordering relative to completion
4. The claim success pulse
"""

import pytest

from core.constants import (
    TransitionPhase,
    PHASE_DURATIONS_MS,
    TOTAL_ANIMATION_DURATION_MS,
    CLAIM_SUCCESS_PULSE_MS,
)
from engine.clock import ManualClock
from engine.phase_machine import PhaseSequencer, PHASE_SEQUENCE, PHASE_TRANSITIONS


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def events():
    return []


@pytest.fixture
def pulses():
    return []


@pytest.fixture
def sequencer(clock, events, pulses) -> PhaseSequencer:
    return PhaseSequencer(clock=clock, on_phase_change=events.append, on_pulse_change=pulses.append)


# =============================================================================
# Phase order
# =============================================================================


class TestPhaseOrder:
    """Test the fixed order of transition phases."""

    def test_initially_idle(self, sequencer):
        assert sequencer.phase == TransitionPhase.IDLE
        assert not sequencer.is_animating
        assert sequencer.get_valid_transitions() == [TransitionPhase.TRAVELING]

    def test_transition_table_is_a_cycle(self):
        phase = TransitionPhase.IDLE
        visited = []
        for _ in range(len(PHASE_TRANSITIONS)):
            phase = PHASE_TRANSITIONS[phase][0]
            visited.append(phase)
        assert tuple(visited[:-1]) == PHASE_SEQUENCE
        assert visited[-1] == TransitionPhase.IDLE

    def test_start_enters_traveling(self, sequencer, events):
        result = sequencer.start_transition(["npc-0"], "standing-npc-0", 2)
        assert result.success
        assert result.new_phase == TransitionPhase.TRAVELING
        assert sequencer.state.departing_ids == ("npc-0",)
        assert sequencer.state.claiming_id == "standing-npc-0"
        assert sequencer.state.claimed_seat_id == 2
        assert events[-1].phase == TransitionPhase.TRAVELING

    def test_phases_follow_durations(self, sequencer, clock):
        sequencer.start_transition()
        elapsed = 0
        for phase in PHASE_SEQUENCE:
            assert sequencer.phase == phase
            elapsed += PHASE_DURATIONS_MS[phase]
            clock.set(elapsed - 1)
            sequencer.update()
            assert sequencer.phase == phase
            clock.set(elapsed)
            sequencer.update()
        assert sequencer.phase == TransitionPhase.IDLE
        assert elapsed == TOTAL_ANIMATION_DURATION_MS == sequencer.total_duration_ms

    def test_start_while_animating_fails(self, sequencer):
        sequencer.start_transition()
        result = sequencer.start_transition()
        assert not result.success
        assert "already in progress" in result.reason

    def test_idle_clears_transition_details(self, sequencer):
        sequencer.start_transition(["npc-0"], "standing-npc-1", 0)
        sequencer.update(TOTAL_ANIMATION_DURATION_MS)
        assert sequencer.state.departing_ids == ()
        assert sequencer.state.claiming_id is None


class TestCatchUp:
    """Test crossing several boundaries in one update."""

    def test_single_late_update_emits_every_phase(self, sequencer, events):
        sequencer.start_transition(now=0)
        emitted = sequencer.update(10_000)
        assert [e.phase for e in emitted] == list(PHASE_SEQUENCE[1:]) + [TransitionPhase.IDLE]
        assert [e.phase for e in events][1:] == [e.phase for e in emitted]

    def test_boundary_times_are_scheduled_not_observed(self, sequencer):
        sequencer.start_transition(now=100)
        emitted = sequencer.update(10_000)
        assert emitted[0].at_ms == 100 + PHASE_DURATIONS_MS[TransitionPhase.TRAVELING]
        assert emitted[-1].at_ms == 100 + TOTAL_ANIMATION_DURATION_MS

    def test_update_when_idle_does_nothing(self, sequencer):
        assert sequencer.update(5000) == []


# =============================================================================
# Queued interactions
# =============================================================================


class TestInteractionQueue:
    """Test interactions deferred until the sequence finishes."""

    def test_runs_immediately_when_idle(self, sequencer):
        calls = []
        assert sequencer.queue_interaction(lambda: calls.append("now"))
        assert calls == ["now"]

    def test_queued_while_animating(self, sequencer):
        calls = []
        sequencer.start_transition(now=0)
        assert not sequencer.queue_interaction(lambda: calls.append("later"))
        assert sequencer.pending_count == 1
        sequencer.update(1000)
        assert calls == []

    def test_drained_fifo_after_completion(self, sequencer):
        calls = []
        sequencer.start_transition(on_complete=lambda: calls.append("complete"), now=0)
        for name in ("a", "b", "c"):
            sequencer.queue_interaction(lambda name=name: calls.append(name))

        sequencer.update(TOTAL_ANIMATION_DURATION_MS)

        assert calls == ["complete", "a", "b", "c"]
        assert sequencer.pending_count == 0

    def test_drain_stops_when_interaction_starts_a_sequence(self, sequencer):
        calls = []
        sequencer.start_transition(now=0)
        sequencer.queue_interaction(lambda: sequencer.start_transition(now=TOTAL_ANIMATION_DURATION_MS))
        sequencer.queue_interaction(lambda: calls.append("after second ride"))

        sequencer.update(TOTAL_ANIMATION_DURATION_MS)
        assert sequencer.is_animating
        assert calls == []

        sequencer.update(2 * TOTAL_ANIMATION_DURATION_MS)
        assert calls == ["after second ride"]

    def test_reset_drops_queue(self, sequencer):
        calls = []
        sequencer.start_transition(on_complete=lambda: calls.append("complete"), now=0)
        sequencer.queue_interaction(lambda: calls.append("queued"))
        sequencer.reset()
        sequencer.update(10_000)
        assert calls == []
        assert sequencer.phase == TransitionPhase.IDLE


# =============================================================================
# Claim pulse
# =============================================================================


class TestClaimPulse:
    """Test the short-lived claim success flag."""

    def test_pulse_turns_on_and_off(self, sequencer, pulses):
        sequencer.trigger_claim_success_pulse(now=0)
        assert sequencer.state.player_claim_success
        sequencer.update(CLAIM_SUCCESS_PULSE_MS - 1)
        assert sequencer.state.player_claim_success
        sequencer.update(CLAIM_SUCCESS_PULSE_MS)
        assert not sequencer.state.player_claim_success
        assert pulses == [True, False]

    def test_retrigger_extends_pulse(self, sequencer, pulses):
        sequencer.trigger_claim_success_pulse(now=0)
        sequencer.trigger_claim_success_pulse(now=300)
        sequencer.update(CLAIM_SUCCESS_PULSE_MS)
        assert sequencer.state.player_claim_success
        sequencer.update(300 + CLAIM_SUCCESS_PULSE_MS)
        assert pulses == [True, False]

    def test_pulse_survives_return_to_idle(self, sequencer):
        sequencer.start_transition(now=0)
        sequencer.trigger_claim_success_pulse(now=TOTAL_ANIMATION_DURATION_MS - 10)
        sequencer.update(TOTAL_ANIMATION_DURATION_MS)
        assert sequencer.phase == TransitionPhase.IDLE
        assert sequencer.state.player_claim_success
