"""Core data models for the seat-rush game engine."""

from .constants import (
    Difficulty,
    Line,
    GameStatus,
    TransitionPhase,
    SoundEvent,
    DEFAULT_DIFFICULTY,
    DEFAULT_LINE,
    TOTAL_SEATS,
    TOTAL_STANDING_SPOTS,
    CHARACTER_COUNT,
    MAX_MOVE_DISTANCE,
    WATCHING_BONUS_MS,
    ADJACENT_BONUS_MS,
    NON_ADJACENT_PENALTY_MS,
    MIN_EFFECTIVE_TIME_MS,
    GRAB_WINDOW_MS,
    GRAB_START_DELAY_MS,
    PLAYER_ID,
    PHASE_DURATIONS_MS,
    TOTAL_ANIMATION_DURATION_MS,
    CLAIM_SUCCESS_PULSE_MS,
    TRAVEL_SOUND_CUES_MS,
    get_seat_column,
    get_position_column,
    is_adjacent_to_seat,
    get_adjacent_seats,
)

from .difficulty import (
    ResponseTimeRange,
    BoardingConfig,
    DifficultyConfig,
    DIFFICULTY_CONFIGS,
    parse_difficulty,
    get_difficulty_config,
    get_difficulty_options,
)

from .game_state import (
    Occupant,
    Seat,
    StandingCompetitor,
    GameState,
    make_empty_seats,
)

__all__ = [
    # Constants
    "Difficulty",
    "Line",
    "GameStatus",
    "TransitionPhase",
    "SoundEvent",
    "DEFAULT_DIFFICULTY",
    "DEFAULT_LINE",
    "TOTAL_SEATS",
    "TOTAL_STANDING_SPOTS",
    "CHARACTER_COUNT",
    "MAX_MOVE_DISTANCE",
    "WATCHING_BONUS_MS",
    "ADJACENT_BONUS_MS",
    "NON_ADJACENT_PENALTY_MS",
    "MIN_EFFECTIVE_TIME_MS",
    "GRAB_WINDOW_MS",
    "GRAB_START_DELAY_MS",
    "PLAYER_ID",
    "PHASE_DURATIONS_MS",
    "TOTAL_ANIMATION_DURATION_MS",
    "CLAIM_SUCCESS_PULSE_MS",
    "TRAVEL_SOUND_CUES_MS",
    "get_seat_column",
    "get_position_column",
    "is_adjacent_to_seat",
    "get_adjacent_seats",
    # Difficulty
    "ResponseTimeRange",
    "BoardingConfig",
    "DifficultyConfig",
    "DIFFICULTY_CONFIGS",
    "parse_difficulty",
    "get_difficulty_config",
    "get_difficulty_options",
    # Game State
    "Occupant",
    "Seat",
    "StandingCompetitor",
    "GameState",
    "make_empty_seats",
]
