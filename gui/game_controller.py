"""Game controller for hosting the game engine on the Qt event loop."""

from __future__ import annotations

import logging
from typing import Optional, Union

from PySide6.QtCore import QObject, QTimer, Signal, Slot

from core.constants import Difficulty, Line, GameStatus, SoundEvent
from core.game_state import GameState

from engine.clock import Clock, monotonic_ms
from engine.game_engine import (
    GameEngine,
    Action,
    ActionType,
    StepResult,
    EngineListener,
    CallbackNotifier,
)
from engine.grab_competition import GrabResult
from engine.phase_machine import PhaseEvent

logger = logging.getLogger(__name__)

# Frame interval of the cooperative update loop (~60 fps)
FRAME_INTERVAL_MS = 16


class _SignalListener(EngineListener):
    """Re-publishes engine events as controller signals."""

    def __init__(self, controller: GameController):
        self._controller = controller

    def on_state_changed(self, state: GameState) -> None:
        self._controller.state_changed.emit(state)

    def on_phase_changed(self, event: PhaseEvent) -> None:
        self._controller.phase_changed.emit(event.phase.value)

    def on_grab_started(self, seat_ids: list[int]) -> None:
        self._controller.grab_started.emit(list(seat_ids))

    def on_grab_countdown(self, remaining_ms: float) -> None:
        self._controller.grab_countdown.emit(float(remaining_ms))

    def on_grab_resolved(self, results: list[GrabResult]) -> None:
        self._controller.grab_resolved.emit(list(results))

    def on_claim_pulse_changed(self, active: bool) -> None:
        self._controller.claim_pulse_changed.emit(active)

    def on_action_rejected(self, reason: str) -> None:
        self._controller.action_rejected.emit(reason)

    def on_game_ended(self, status: GameStatus) -> None:
        self._controller.game_ended.emit(status.value)


class GameController(QObject):
    """Controller that runs the engine's frame loop on a QTimer.

    This class orchestrates:
    - Starting and stopping rides
    - Forwarding player input to the engine
    - Publishing state snapshots, phases, grab countdowns and sound cues

    It renders nothing itself; a view connects to its signals.
    """

    state_changed = Signal(object)  # GameState
    phase_changed = Signal(str)  # TransitionPhase value
    grab_started = Signal(list)  # open seat ids
    grab_countdown = Signal(float)  # remaining ms
    grab_resolved = Signal(list)  # GrabResult list
    claim_pulse_changed = Signal(bool)
    sound_requested = Signal(str)  # SoundEvent value
    action_rejected = Signal(str)  # reason
    game_ended = Signal(str)  # GameStatus value

    def __init__(self, parent: Optional[QObject] = None, clock: Clock = monotonic_ms):
        super().__init__(parent)

        self._engine = GameEngine(
            clock=clock,
            notifier=CallbackNotifier(self._on_sound),
            listener=_SignalListener(self),
        )

        self._timer = QTimer(self)
        self._timer.setInterval(FRAME_INTERVAL_MS)
        self._timer.timeout.connect(self._on_frame)

    @property
    def engine(self) -> GameEngine:
        return self._engine

    @property
    def is_running(self) -> bool:
        return self._timer.isActive()

    def start_game(
        self,
        boarding_station_index: int,
        destination_station_index: int,
        difficulty: Union[Difficulty, str, None] = None,
        line: Union[Line, str, None] = None,
        seed: Optional[int] = None,
    ) -> GameState:
        """Start a new ride and the frame loop."""
        state = self._engine.reset(
            boarding_station_index,
            destination_station_index,
            difficulty=difficulty,
            line=line,
            seed=seed,
        )
        self._timer.start()
        logger.debug("Frame loop started for %s", self._engine)
        return state

    def stop(self) -> None:
        """Stop the frame loop and cancel every engine timer."""
        self._timer.stop()
        self._engine.close()

    # -------------------------------------------------------------------------
    # Player input
    # -------------------------------------------------------------------------

    @Slot()
    def advance_station(self) -> bool:
        return self._submit(Action(ActionType.ADVANCE_STATION))

    @Slot(int)
    def reveal_destination(self, seat_id: int) -> bool:
        return self._submit(Action(ActionType.REVEAL_DESTINATION, {"seat_id": seat_id}))

    @Slot(int)
    def claim_seat(self, seat_id: int) -> bool:
        return self._submit(Action(ActionType.CLAIM_SEAT, {"seat_id": seat_id}))

    @Slot(object)
    def set_watched_seat(self, seat_id: Optional[int]) -> bool:
        return self._submit(Action(ActionType.SET_WATCHED_SEAT, {"seat_id": seat_id}))

    @Slot(int)
    def move_position(self, slot: int) -> bool:
        return self._submit(Action(ActionType.MOVE_POSITION, {"slot": slot}))

    @Slot(int)
    def tap_grab_seat(self, seat_id: int) -> bool:
        return self._submit(Action(ActionType.TAP_GRAB_SEAT, {"seat_id": seat_id}))

    def _submit(self, action: Action) -> bool:
        result: StepResult = self._engine.step(action)
        return result.success

    # -------------------------------------------------------------------------
    # Frame loop
    # -------------------------------------------------------------------------

    def _on_frame(self) -> None:
        self._engine.update()
        if self._engine.is_game_over() and not self._engine.is_animating():
            self._timer.stop()

    def _on_sound(self, event: SoundEvent) -> None:
        self.sound_requested.emit(event.value)
