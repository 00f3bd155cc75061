"""Game engine for the seat-rush game.

This module provides the game logic including:
- Ride setup and occupancy transitions (pure state transforms)
- Grab competition resolution and the grab window timer
- Phase sequencer for station transition animations
- Game engine for coordinating play
"""

from .clock import Clock, ManualClock, monotonic_ms

from .setup import (
    generate_initial_state,
    generate_standing_competitors,
)

from .occupancy import (
    AdvancePreview,
    preview_advance,
    advance,
    reveal_destination,
    claim_seat,
    set_watched_seat,
    move_position,
    npc_grabs_seat,
    fill_empty_seats,
    apply_grab_results,
)

from .grab_competition import (
    CompetitorTime,
    GrabResult,
    effective_time,
    resolve_one,
    resolve_many,
)

from .grab_timer import GrabSession, GrabContext, GrabTimer

from .phase_machine import (
    PhaseSequencer,
    PhaseEvent,
    PhaseTransitionResult,
    TransitionState,
    PHASE_SEQUENCE,
    PHASE_TRANSITIONS,
)

from .game_engine import (
    GameEngine,
    Action,
    ActionType,
    StepResult,
    Notifier,
    CallbackNotifier,
    EngineListener,
)

__all__ = [
    # Clock
    "Clock",
    "ManualClock",
    "monotonic_ms",
    # Setup
    "generate_initial_state",
    "generate_standing_competitors",
    # Occupancy
    "AdvancePreview",
    "preview_advance",
    "advance",
    "reveal_destination",
    "claim_seat",
    "set_watched_seat",
    "move_position",
    "npc_grabs_seat",
    "fill_empty_seats",
    "apply_grab_results",
    # Grab competition
    "CompetitorTime",
    "GrabResult",
    "effective_time",
    "resolve_one",
    "resolve_many",
    # Grab timer
    "GrabSession",
    "GrabContext",
    "GrabTimer",
    # Phase sequencer
    "PhaseSequencer",
    "PhaseEvent",
    "PhaseTransitionResult",
    "TransitionState",
    "PHASE_SEQUENCE",
    "PHASE_TRANSITIONS",
    # Game engine
    "GameEngine",
    "Action",
    "ActionType",
    "StepResult",
    "Notifier",
    "CallbackNotifier",
    "EngineListener",
]
