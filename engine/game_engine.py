"""Main game engine for the seat-rush game.

The GameEngine is the primary interface for playing a ride. It provides:
- reset(): Start a new ride
- step(): Execute an action
- update(): Per-frame callback driving animations, sound cues and the
  grab window countdown
- get_valid_actions(): Return legal actions for the current state

The engine composes the pure state transforms with the two timed
components (PhaseSequencer and GrabTimer) so that the authoritative
state change of a station advance is applied only once its animation
has finished. Action legality is enforced here: illegal actions are
rejected with an unsuccessful StepResult and never executed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

import numpy as np

from core.constants import (
    Difficulty,
    Line,
    GameStatus,
    SoundEvent,
    TOTAL_STANDING_SPOTS,
    MAX_MOVE_DISTANCE,
    GRAB_WINDOW_MS,
    GRAB_START_DELAY_MS,
    TRAVEL_SOUND_CUES_MS,
    get_adjacent_seats,
    is_adjacent_to_seat,
)
from core.game_state import GameState
from data.loader import get_station_line

from .clock import Clock, monotonic_ms
from .grab_competition import GrabResult
from .grab_timer import GrabContext, GrabSession, GrabTimer
from .occupancy import (
    AdvancePreview,
    preview_advance,
    advance,
    reveal_destination,
    claim_seat,
    set_watched_seat,
    move_position,
    apply_grab_results,
    fill_empty_seats,
)
from .phase_machine import PhaseEvent, PhaseSequencer, TransitionState
from .setup import generate_initial_state

logger = logging.getLogger(__name__)


class ActionType(Enum):
    """Types of actions a player can take."""

    ADVANCE_STATION = "advance_station"
    REVEAL_DESTINATION = "reveal_destination"
    CLAIM_SEAT = "claim_seat"
    SET_WATCHED_SEAT = "set_watched_seat"
    MOVE_POSITION = "move_position"
    TAP_GRAB_SEAT = "tap_grab_seat"


# Actions that change the player's situation and wait out animations
INTERACTION_TYPES = frozenset(
    {
        ActionType.REVEAL_DESTINATION,
        ActionType.CLAIM_SEAT,
        ActionType.SET_WATCHED_SEAT,
        ActionType.MOVE_POSITION,
    }
)


@dataclass
class Action:
    """Represents an action to be executed.

    Attributes:
        action_type: The type of action.
        params: Additional parameters ('seat_id' or 'slot').
    """

    action_type: ActionType
    params: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"Action({self.action_type.value}, params={self.params})"


@dataclass
class StepResult:
    """Result of executing a step in the game.

    Attributes:
        success: Whether the action was accepted.
        state: The game state after the action.
        done: Whether the ride has ended.
        info: Additional information about the step.
    """

    success: bool
    state: GameState
    done: bool
    info: dict[str, Any]


class Notifier:
    """Receives sound cues from the engine. The base class ignores them."""

    def notify(self, event: SoundEvent) -> None:
        pass


class CallbackNotifier(Notifier):
    """Forwards sound cues to a callable."""

    def __init__(self, callback):
        self._callback = callback

    def notify(self, event: SoundEvent) -> None:
        self._callback(event)


class EngineListener:
    """Receives engine events for a rendering layer. All hooks are no-ops."""

    def on_state_changed(self, state: GameState) -> None:
        pass

    def on_phase_changed(self, event: PhaseEvent) -> None:
        pass

    def on_grab_started(self, seat_ids: list[int]) -> None:
        pass

    def on_grab_countdown(self, remaining_ms: float) -> None:
        pass

    def on_grab_resolved(self, results: list[GrabResult]) -> None:
        pass

    def on_claim_pulse_changed(self, active: bool) -> None:
        pass

    def on_action_rejected(self, reason: str) -> None:
        pass

    def on_game_ended(self, status: GameStatus) -> None:
        pass


class GameEngine:
    """Main engine for playing a ride.

    Usage:
        engine = GameEngine()
        engine.reset(boarding_station_index=0, destination_station_index=5)

        while not engine.is_game_over():
            engine.update()  # once per frame
            actions = engine.get_valid_actions()
            if actions:
                result = engine.step(select_action(actions))
    """

    def __init__(
        self,
        clock: Clock = monotonic_ms,
        notifier: Optional[Notifier] = None,
        listener: Optional[EngineListener] = None,
        grab_window_ms: float = GRAB_WINDOW_MS,
    ):
        """Initialize the game engine.

        Args:
            clock: Millisecond clock driving animations and the grab window.
            notifier: Receives sound cues.
            listener: Receives state, phase and grab events.
            grab_window_ms: Length of a grab window.
        """
        self._clock = clock
        self._notifier = notifier if notifier is not None else Notifier()
        self._listener = listener if listener is not None else EngineListener()

        self._state: Optional[GameState] = None
        self._rng: np.random.Generator = np.random.default_rng()
        self._sequencer = PhaseSequencer(
            clock=clock,
            on_phase_change=self._handle_phase_event,
            on_pulse_change=self._listener.on_claim_pulse_changed,
        )
        self._grab_timer = GrabTimer(
            context_provider=self._grab_context,
            on_complete=self._handle_grab_results,
            clock=clock,
            window_ms=grab_window_ms,
            on_tick=self._listener.on_grab_countdown,
        )
        self._sound_cues: list[tuple[float, SoundEvent]] = []
        self._grab_start_at: Optional[float] = None
        # Seat watched when the last advance started; arrival clears the live watch
        self._carried_watch: Optional[int] = None
        self._boundary_ms: Optional[float] = None

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def state(self) -> GameState:
        """Get the current game state.

        Raises:
            RuntimeError: If the game has not been initialized.
        """
        if self._state is None:
            raise RuntimeError("Game not initialized. Call reset() first.")
        return self._state

    @property
    def transition_state(self) -> TransitionState:
        return self._sequencer.state

    @property
    def grab_session(self) -> GrabSession:
        return self._grab_timer.session

    def is_game_over(self) -> bool:
        """Check if the ride has ended."""
        return self._state is not None and self._state.is_game_over()

    def is_animating(self) -> bool:
        return self._sequencer.is_animating

    def is_grab_pending(self) -> bool:
        """Whether a grab window is open or about to open."""
        return self._grab_timer.is_active or self._grab_start_at is not None

    # -------------------------------------------------------------------------
    # Game Initialization
    # -------------------------------------------------------------------------

    def reset(
        self,
        boarding_station_index: int = 0,
        destination_station_index: Optional[int] = None,
        difficulty: Union[Difficulty, str, None] = None,
        line: Union[Line, str, None] = None,
        seed: Optional[int] = None,
    ) -> GameState:
        """Start a new ride.

        Args:
            boarding_station_index: Station where the player boards.
            destination_station_index: Station where the player gets off
                (default: the last station of the line).
            difficulty: Difficulty tag (default: normal).
            line: Line to ride (default: short).
            seed: Seed for the ride's random source.

        Returns:
            The initial game state.

        Raises:
            ValueError: If the stations are out of order or off the line.
            KeyError: If the line is unknown.
        """
        self.close()

        if destination_station_index is None:
            destination_station_index = get_station_line(line).last_station_index

        self._rng = np.random.default_rng(seed)
        self._state = generate_initial_state(
            boarding_station_index,
            destination_station_index,
            difficulty=difficulty,
            line=line,
            rng=self._rng,
        )
        logger.debug("New ride:\n%s", self._state)
        self._listener.on_state_changed(self._state)
        return self._state

    def load_state(self, state: GameState, seed: Optional[int] = None) -> GameState:
        """Resume a ride from a saved state, stopping any running timers.

        Raises:
            ValueError: If the state breaks a GameState invariant.
        """
        errors = state.validate()
        if errors:
            raise ValueError(f"Invalid game state: {'; '.join(errors)}")

        self.close()
        self._rng = np.random.default_rng(seed)
        self._state = state
        self._listener.on_state_changed(state)
        return state

    def close(self) -> None:
        """Stop all timers. Nothing fires after this until the next reset()."""
        self._grab_timer.cancel()
        self._sequencer.reset()
        self._sound_cues = []
        self._grab_start_at = None
        self._carried_watch = None

    # -------------------------------------------------------------------------
    # Action Execution
    # -------------------------------------------------------------------------

    def step(self, action: Action) -> StepResult:
        """Execute an action.

        Interactions issued while a station transition is animating are
        queued and applied, in order, once it finishes.

        Args:
            action: The action to execute.

        Returns:
            StepResult with the outcome of the action.
        """
        state = self.state
        info: dict[str, Any] = {"action": str(action)}

        if action.action_type == ActionType.ADVANCE_STATION:
            error = self._start_advance()
        elif action.action_type == ActionType.TAP_GRAB_SEAT:
            error = self._tap(action)
        elif action.action_type in INTERACTION_TYPES:
            error = self._submit_interaction(action)
            if error is None and self._sequencer.is_animating:
                info["queued"] = True
        else:
            error = f"Unknown action type: {action.action_type}"

        if error is not None:
            return self._reject(error)

        return StepResult(
            success=True,
            state=self.state,
            done=self.is_game_over(),
            info=info,
        )

    def _reject(self, reason: str) -> StepResult:
        logger.warning("Rejected action: %s", reason)
        self._listener.on_action_rejected(reason)
        return StepResult(
            success=False,
            state=self.state,
            done=self.is_game_over(),
            info={"error": reason},
        )

    def _start_advance(self) -> Optional[str]:
        state = self.state
        if state.is_game_over():
            return "Ride is over"
        if self._sequencer.is_animating:
            return "Train is already moving"
        if self.is_grab_pending():
            return "Grab window in progress"

        now = self._clock()
        preview = preview_advance(state, self._rng)
        self._carried_watch = state.player_watched_seat_id
        result = self._sequencer.start_transition(
            preview.departing_ids,
            preview.claiming_id,
            preview.claimed_seat_id,
            on_complete=lambda: self._finish_advance(preview),
            now=now,
        )
        if not result.success:
            return result.reason

        self._sound_cues = [(now + offset, event) for offset, event in TRAVEL_SOUND_CUES_MS]
        self._play_due_sounds(now)
        return None

    def _finish_advance(self, preview: AdvancePreview) -> None:
        state = advance(self.state, preview=preview)
        self._set_state(state)

        if state.is_game_over():
            self._end_ride(state.status)
            return

        if state.empty_seat_ids():
            arrived_at = self._boundary_ms if self._boundary_ms is not None else self._clock()
            self._grab_start_at = arrived_at + GRAB_START_DELAY_MS
        else:
            self._carried_watch = None

    def _tap(self, action: Action) -> Optional[str]:
        if self.state.player_seated:
            return "Already seated"
        if not self._grab_timer.is_active:
            return "No grab window open"
        seat_id = action.params.get("seat_id")
        if not self._grab_timer.tap(seat_id):
            return f"Tap on seat {seat_id} ignored"
        self._notifier.notify(SoundEvent.SEAT_CLICK)
        return None

    # -------------------------------------------------------------------------
    # Interactions
    # -------------------------------------------------------------------------

    def _submit_interaction(self, action: Action) -> Optional[str]:
        """Run an interaction now, or queue it behind the running animation.

        Returns:
            The rejection reason of an interaction that ran immediately.
        """
        if self.state.is_game_over():
            return "Ride is over"

        deferred = self._sequencer.is_animating
        outcome: list[Optional[str]] = []

        def run() -> None:
            error = self._run_interaction(action)
            if deferred and error is not None:
                logger.warning("Dropped queued action %s: %s", action, error)
                self._listener.on_action_rejected(error)
            outcome.append(error)

        self._sequencer.queue_interaction(run)
        return outcome[0] if outcome and not deferred else None

    def _run_interaction(self, action: Action) -> Optional[str]:
        if self.state.is_game_over():
            return "Ride is over"
        if self._grab_timer.is_active:
            return "Grab window in progress"
        if action.action_type == ActionType.CLAIM_SEAT and self._grab_start_at is not None:
            return "Free seats are about to be contested"
        return self._apply_interaction(action)

    def _apply_interaction(self, action: Action) -> Optional[str]:
        state = self.state
        seat_id = action.params.get("seat_id")

        if action.action_type == ActionType.REVEAL_DESTINATION:
            seat = state.get_seat(seat_id) if seat_id is not None else None
            if seat is None or seat.occupant is None:
                return f"Nobody sits on seat {seat_id}"
            self._set_state(reveal_destination(state, seat_id))
            return None

        if state.player_seated:
            return "Already seated"

        if action.action_type == ActionType.CLAIM_SEAT:
            if seat_id is None or not state.is_seat_available(seat_id):
                return f"Seat {seat_id} is not free"
            new_state = claim_seat(state, seat_id).replace(
                last_claim_message=f"You took seat {seat_id + 1}!"
            )
            self._set_state(new_state)
            self._notifier.notify(SoundEvent.SEAT_CLAIM)
            self._sequencer.trigger_claim_success_pulse()
            return None

        if action.action_type == ActionType.SET_WATCHED_SEAT:
            if seat_id is not None and state.get_seat(seat_id) is None:
                return f"Seat {seat_id} does not exist"
            if seat_id is not None and not is_adjacent_to_seat(state.player_standing_slot, seat_id):
                return f"Seat {seat_id} is out of view"
            self._carried_watch = None
            self._set_state(set_watched_seat(state, seat_id))
            return None

        if action.action_type == ActionType.MOVE_POSITION:
            slot = action.params.get("slot")
            new_state = move_position(state, slot) if slot is not None else state
            if new_state is state:
                return f"Cannot move to standing spot {slot}"
            self._set_state(new_state)
            return None

        return f"Unknown interaction: {action.action_type}"

    # -------------------------------------------------------------------------
    # Frame updates
    # -------------------------------------------------------------------------

    def update(self, now: Optional[float] = None) -> None:
        """Per-frame callback: sound cues, phases, grab start and countdown.

        Args:
            now: Current clock reading (default: read the clock).
        """
        if self._state is None:
            return
        if now is None:
            now = self._clock()

        self._play_due_sounds(now)
        self._sequencer.update(now)

        if self._grab_start_at is not None and now >= self._grab_start_at:
            opens_at = self._grab_start_at
            self._grab_start_at = None
            self._open_grab_window(opens_at)

        self._grab_timer.update(now)

    def _play_due_sounds(self, now: float) -> None:
        while self._sound_cues and self._sound_cues[0][0] <= now:
            _, event = self._sound_cues.pop(0)
            self._notifier.notify(event)

    def _open_grab_window(self, opens_at: float) -> None:
        state = self.state
        open_seats = state.empty_seat_ids()
        if state.is_game_over() or not open_seats:
            return
        if self._grab_timer.start(open_seats, now=opens_at):
            self._listener.on_grab_started(open_seats)

    def _grab_context(self) -> GrabContext:
        state = self.state
        watched = state.player_watched_seat_id
        if watched is None and self._carried_watch is not None:
            if is_adjacent_to_seat(state.player_standing_slot, self._carried_watch):
                watched = self._carried_watch
        return GrabContext(
            player_slot=state.player_standing_slot,
            player_watched_seat_id=watched,
            competitors=state.standing_competitors,
        )

    def _handle_grab_results(self, results: list[GrabResult]) -> None:
        self._carried_watch = None
        state = apply_grab_results(self.state, results, self._rng)
        player_won = any(r.is_player_winner for r in results)
        if any(r.winner_id is not None and not r.is_player_winner for r in results):
            self._notifier.notify(SoundEvent.NPC_GRAB)

        state = fill_empty_seats(state, self._rng)
        self._set_state(state)
        self._listener.on_grab_resolved(results)

        if player_won:
            self._notifier.notify(SoundEvent.SEAT_CLAIM)
            self._sequencer.trigger_claim_success_pulse()

    def _handle_phase_event(self, event: PhaseEvent) -> None:
        self._boundary_ms = event.at_ms
        self._listener.on_phase_changed(event)

    def _set_state(self, state: GameState) -> None:
        if state is self._state:
            return
        self._state = state
        self._listener.on_state_changed(state)

    def _end_ride(self, status: GameStatus) -> None:
        self._grab_timer.cancel()
        self._grab_start_at = None
        if status == GameStatus.WON:
            self._notifier.notify(SoundEvent.WIN_JINGLE)
        else:
            self._notifier.notify(SoundEvent.LOSE_SOUND)
        logger.debug("Ride over: %s", status.value)
        self._listener.on_game_ended(status)

    # -------------------------------------------------------------------------
    # Valid Action Generation
    # -------------------------------------------------------------------------

    def get_valid_actions(self) -> list[Action]:
        """Get all valid actions for the current state.

        Returns:
            List of actions step() would accept right now.
        """
        state = self.state
        if state.is_game_over() or self._sequencer.is_animating:
            return []

        if self._grab_timer.is_active:
            session = self._grab_timer.session
            if state.player_seated or session.has_tapped:
                return []
            return [
                Action(ActionType.TAP_GRAB_SEAT, {"seat_id": seat_id})
                for seat_id in session.open_seat_ids
            ]

        # Advancing and claiming wait until the pending window has resolved
        contested = self._grab_start_at is not None
        actions = [] if contested else [Action(ActionType.ADVANCE_STATION)]

        for seat in state.occupied_seats():
            if not seat.occupant.destination_revealed:
                actions.append(Action(ActionType.REVEAL_DESTINATION, {"seat_id": seat.seat_id}))

        if state.player_seated:
            return actions

        if not contested:
            for seat_id in state.empty_seat_ids():
                actions.append(Action(ActionType.CLAIM_SEAT, {"seat_id": seat_id}))

        for seat_id in get_adjacent_seats(state.player_standing_slot):
            if seat_id != state.player_watched_seat_id:
                actions.append(Action(ActionType.SET_WATCHED_SEAT, {"seat_id": seat_id}))
        if state.player_watched_seat_id is not None:
            actions.append(Action(ActionType.SET_WATCHED_SEAT, {"seat_id": None}))

        here = state.player_standing_slot
        for slot in range(TOTAL_STANDING_SPOTS):
            if slot != here and abs(slot - here) <= MAX_MOVE_DISTANCE:
                actions.append(Action(ActionType.MOVE_POSITION, {"slot": slot}))

        return actions

    # -------------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------------

    def get_game_summary(self) -> dict[str, Any]:
        """Get a summary of the current ride.

        Returns:
            Dictionary with ride summary information.
        """
        state = self.state
        station_line = get_station_line(state.line)
        return {
            "status": state.status.value,
            "difficulty": state.difficulty.value,
            "line": state.line.value,
            "current_station": station_line.station_name(state.current_station_index),
            "destination": station_line.station_name(state.destination_station_index),
            "stops_remaining": state.stops_remaining(),
            "player_seated": state.player_seated,
            "player_seat_id": state.player_seat_id,
            "empty_seats": len(state.empty_seat_ids()),
            "standing_competitors": len(state.standing_competitors),
            "phase": self._sequencer.phase.value,
            "grab_active": self._grab_timer.is_active,
            "game_over": state.is_game_over(),
        }

    def __str__(self) -> str:
        """Return string representation of the engine."""
        if self._state is None:
            return "GameEngine(not initialized)"
        return (
            f"GameEngine(status={self._state.status.value}, "
            f"station={self._state.current_station_index}, phase={self._sequencer.phase.value})"
        )
