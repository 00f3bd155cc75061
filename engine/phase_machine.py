"""Phase sequencer for the seat-rush game engine.

Drives the animated transition between stations:
- IDLE -> TRAVELING -> ARRIVING -> DEPARTING -> CLAIMING -> SETTLING -> IDLE

Each phase has a fixed dwell time. Transitions are time-driven: the
owner calls update() with the current clock reading and the sequencer
emits one PhaseEvent per boundary crossed, catching up in order if
several have passed. Phases can never be skipped or reordered.

Player interactions arriving mid-animation are queued and drained in
FIFO order once the sequence is back to IDLE, after the owner's
completion callback has applied the authoritative state change.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence

from core.constants import TransitionPhase, PHASE_DURATIONS_MS, CLAIM_SUCCESS_PULSE_MS
from .clock import Clock, monotonic_ms

logger = logging.getLogger(__name__)


# Phases of one station transition, in order
PHASE_SEQUENCE: tuple[TransitionPhase, ...] = (
    TransitionPhase.TRAVELING,
    TransitionPhase.ARRIVING,
    TransitionPhase.DEPARTING,
    TransitionPhase.CLAIMING,
    TransitionPhase.SETTLING,
)

# Valid phase transitions
PHASE_TRANSITIONS: dict[TransitionPhase, list[TransitionPhase]] = {
    TransitionPhase.IDLE: [TransitionPhase.TRAVELING],
    TransitionPhase.TRAVELING: [TransitionPhase.ARRIVING],
    TransitionPhase.ARRIVING: [TransitionPhase.DEPARTING],
    TransitionPhase.DEPARTING: [TransitionPhase.CLAIMING],
    TransitionPhase.CLAIMING: [TransitionPhase.SETTLING],
    TransitionPhase.SETTLING: [TransitionPhase.IDLE],
}


@dataclass(frozen=True)
class TransitionState:
    """What the rendering layer needs to animate the current transition.

    Attributes:
        phase: Current phase.
        departing_ids: Occupants leaving at the upcoming station.
        claiming_id: Standing competitor taking a seat, if any.
        claimed_seat_id: Seat being taken, if any.
        player_claim_success: Whether the player's grab flourish is showing.
    """

    phase: TransitionPhase = TransitionPhase.IDLE
    departing_ids: tuple[str, ...] = ()
    claiming_id: Optional[str] = None
    claimed_seat_id: Optional[int] = None
    player_claim_success: bool = False


@dataclass(frozen=True)
class PhaseEvent:
    """A phase boundary crossed by the sequencer."""

    previous_phase: TransitionPhase
    phase: TransitionPhase
    at_ms: float


@dataclass
class PhaseTransitionResult:
    """Result of a transition start attempt.

    Attributes:
        success: Whether the transition started.
        new_phase: The new phase if successful, None otherwise.
        reason: Description of why the transition failed (if it did).
    """

    success: bool
    new_phase: Optional[TransitionPhase]
    reason: Optional[str] = None


class PhaseSequencer:
    """Time-driven state machine for station transition animations.

    The sequencer does not touch game state. It tells its owner when
    the sequence completes and replays interactions queued meanwhile.
    """

    def __init__(
        self,
        clock: Clock = monotonic_ms,
        on_phase_change: Optional[Callable[[PhaseEvent], None]] = None,
        on_pulse_change: Optional[Callable[[bool], None]] = None,
        durations_ms: Optional[dict[TransitionPhase, int]] = None,
        pulse_ms: float = CLAIM_SUCCESS_PULSE_MS,
    ):
        """Initialize the sequencer.

        Args:
            clock: Millisecond clock used when update() gets no time.
            on_phase_change: Called for every phase boundary.
            on_pulse_change: Called when the claim flourish turns on or off.
            durations_ms: Dwell time per phase (default: PHASE_DURATIONS_MS).
            pulse_ms: How long the claim flourish lasts.
        """
        self._clock = clock
        self._on_phase_change = on_phase_change
        self._on_pulse_change = on_pulse_change
        self._durations = dict(durations_ms or PHASE_DURATIONS_MS)
        self._pulse_ms = pulse_ms

        self._state = TransitionState()
        self._pending: deque[Callable[[], None]] = deque()
        self._schedule: list[tuple[float, TransitionPhase]] = []
        self._on_complete: Optional[Callable[[], None]] = None
        self._pulse_until: Optional[float] = None

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def state(self) -> TransitionState:
        return self._state

    @property
    def phase(self) -> TransitionPhase:
        return self._state.phase

    @property
    def is_animating(self) -> bool:
        return self._state.phase != TransitionPhase.IDLE

    @property
    def pending_count(self) -> int:
        """Number of interactions waiting for the sequence to finish."""
        return len(self._pending)

    @property
    def total_duration_ms(self) -> float:
        return float(sum(self._durations[p] for p in PHASE_SEQUENCE))

    def get_valid_transitions(self) -> list[TransitionPhase]:
        return PHASE_TRANSITIONS.get(self._state.phase, [])

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def start_transition(
        self,
        departing_ids: Sequence[str] = (),
        claiming_id: Optional[str] = None,
        claimed_seat_id: Optional[int] = None,
        on_complete: Optional[Callable[[], None]] = None,
        now: Optional[float] = None,
    ) -> PhaseTransitionResult:
        """Enter TRAVELING and schedule the rest of the sequence.

        Args:
            departing_ids: Occupants to animate leaving.
            claiming_id: Standing competitor to animate taking a seat.
            claimed_seat_id: Seat being taken.
            on_complete: Called on reaching IDLE, before queued
                interactions are drained.
            now: Start time (default: the clock).

        Returns:
            PhaseTransitionResult; fails if a sequence is already running.
        """
        if self.is_animating:
            return PhaseTransitionResult(
                success=False,
                new_phase=None,
                reason=f"Transition already in progress (phase: {self._state.phase.value})",
            )

        if now is None:
            now = self._clock()

        self._schedule = []
        boundary = now
        for phase, next_phase in zip(PHASE_SEQUENCE, PHASE_SEQUENCE[1:] + (TransitionPhase.IDLE,)):
            boundary += self._durations[phase]
            self._schedule.append((boundary, next_phase))

        self._on_complete = on_complete
        self._state = replace(
            self._state,
            phase=TransitionPhase.TRAVELING,
            departing_ids=tuple(departing_ids),
            claiming_id=claiming_id,
            claimed_seat_id=claimed_seat_id,
        )
        self._emit(PhaseEvent(TransitionPhase.IDLE, TransitionPhase.TRAVELING, now))
        return PhaseTransitionResult(success=True, new_phase=TransitionPhase.TRAVELING)

    def queue_interaction(self, fn: Callable[[], None]) -> bool:
        """Run an interaction now if idle, otherwise queue it.

        Returns:
            True if the interaction ran immediately.
        """
        if not self.is_animating:
            fn()
            return True
        self._pending.append(fn)
        logger.debug("Queued interaction (%d pending)", len(self._pending))
        return False

    def trigger_claim_success_pulse(self, now: Optional[float] = None) -> None:
        """Show the player's claim flourish for a short while."""
        if now is None:
            now = self._clock()
        self._pulse_until = now + self._pulse_ms
        if not self._state.player_claim_success:
            self._state = replace(self._state, player_claim_success=True)
            if self._on_pulse_change is not None:
                self._on_pulse_change(True)

    def update(self, now: Optional[float] = None) -> list[PhaseEvent]:
        """Cross every phase boundary that has passed.

        Returns:
            The phase events emitted by this call, in order.
        """
        if now is None:
            now = self._clock()

        events: list[PhaseEvent] = []
        while self._schedule and self._schedule[0][0] <= now:
            at_ms, next_phase = self._schedule.pop(0)
            previous = self._state.phase

            if next_phase == TransitionPhase.IDLE:
                self._state = TransitionState(player_claim_success=self._state.player_claim_success)
                event = PhaseEvent(previous, next_phase, at_ms)
                events.append(event)
                self._emit(event)
                # May start a new sequence, whose boundaries this loop then follows
                self._complete()
                continue

            self._state = replace(self._state, phase=next_phase)
            event = PhaseEvent(previous, next_phase, at_ms)
            events.append(event)
            self._emit(event)

        if self._pulse_until is not None and now >= self._pulse_until:
            self._pulse_until = None
            self._state = replace(self._state, player_claim_success=False)
            if self._on_pulse_change is not None:
                self._on_pulse_change(False)

        return events

    def reset(self) -> None:
        """Drop any running sequence and queued interactions without running them."""
        self._state = TransitionState()
        self._schedule = []
        self._pending.clear()
        self._on_complete = None
        self._pulse_until = None

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _complete(self) -> None:
        callback = self._on_complete
        self._on_complete = None
        if callback is not None:
            callback()

        while self._pending and not self.is_animating:
            fn = self._pending.popleft()
            fn()

    def _emit(self, event: PhaseEvent) -> None:
        logger.debug(
            "Phase %s -> %s at %.0f ms", event.previous_phase.value, event.phase.value, event.at_ms
        )
        if self._on_phase_change is not None:
            self._on_phase_change(event)

    def __str__(self) -> str:
        """Return string representation of the sequencer."""
        return f"PhaseSequencer(phase={self._state.phase.value}, pending={len(self._pending)})"
