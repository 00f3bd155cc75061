"""Constants and enums for the seat-rush game engine."""

from enum import Enum


class Difficulty(Enum):
    """Difficulty levels, from an empty-ish compartment to rush hour."""

    EASY = "easy"
    NORMAL = "normal"
    RUSH = "rush"


class Line(Enum):
    """Length of the ride. Station names live in data/lines.json."""

    SHORT = "short"
    FULL = "full"


class GameStatus(Enum):
    """Overall game status. WON and LOST are terminal."""

    PLAYING = "playing"
    WON = "won"
    LOST = "lost"


class TransitionPhase(Enum):
    """Animated phases of a station transition."""

    IDLE = "idle"
    TRAVELING = "traveling"  # Train journey, progress bar animates
    ARRIVING = "arriving"  # Train has arrived at station
    DEPARTING = "departing"  # Seated passengers leave
    CLAIMING = "claiming"  # Standing passengers grab vacated seats
    SETTLING = "settling"  # Final settle before idle


class SoundEvent(Enum):
    """Sound cues published to the audio collaborator."""

    TRAIN_MOVING = "train_moving"
    TRAIN_STOPPING = "train_stopping"
    DOOR_CLOSE = "door_close"
    ANNOUNCEMENT = "announcement"
    SEAT_CLICK = "seat_click"
    SEAT_CLAIM = "seat_claim"
    WIN_JINGLE = "win_jingle"
    LOSE_SOUND = "lose_sound"
    NPC_GRAB = "npc_grab"


DEFAULT_DIFFICULTY = Difficulty.NORMAL
DEFAULT_LINE = Line.SHORT

# Compartment layout: three columns, each with two seats and two standing spots
TOTAL_SEATS = 6
TOTAL_STANDING_SPOTS = 6
SEATS_PER_COLUMN = 2
SPOTS_PER_COLUMN = 2

# Number of distinct passenger sprites
CHARACTER_COUNT = 8

# Player may move at most this many standing spots per action
MAX_MOVE_DISTANCE = 2

# Grab competition timing (milliseconds)
WATCHING_BONUS_MS = 300
ADJACENT_BONUS_MS = 150
NON_ADJACENT_PENALTY_MS = 150
MIN_EFFECTIVE_TIME_MS = 50
GRAB_WINDOW_MS = 2000
GRAB_START_DELAY_MS = 200

# Identifier reported as the winner when the player takes a seat
PLAYER_ID = "player"

# Standing passenger behaviour
INITIAL_WATCH_CHANCE = 0.6
WATCH_CHANGE_CHANCE = 0.5
WATCH_ADJACENT_CHANCE = 0.7
MAJOR_STATION_BOARDING_BONUS = 0.3

# Phase dwell times (milliseconds), in sequence order
PHASE_DURATIONS_MS: dict[TransitionPhase, int] = {
    TransitionPhase.TRAVELING: 1800,
    TransitionPhase.ARRIVING: 200,
    TransitionPhase.DEPARTING: 400,
    TransitionPhase.CLAIMING: 200,
    TransitionPhase.SETTLING: 100,
}

TOTAL_ANIMATION_DURATION_MS = sum(PHASE_DURATIONS_MS.values())

CLAIM_SUCCESS_PULSE_MS = 400

# Sound timeline within the traveling phase, relative to transition start
TRAVEL_SOUND_CUES_MS: tuple[tuple[int, SoundEvent], ...] = (
    (0, SoundEvent.TRAIN_MOVING),
    (800, SoundEvent.TRAIN_STOPPING),
    (1200, SoundEvent.ANNOUNCEMENT),
    (1600, SoundEvent.DOOR_CLOSE),
)


def get_seat_column(seat_id: int) -> int:
    """Return the column (0-2) a seat sits in."""
    return seat_id // SEATS_PER_COLUMN


def get_position_column(spot: int) -> int:
    """Return the column (0-2) a standing spot faces."""
    return spot // SPOTS_PER_COLUMN


def is_adjacent_to_seat(spot: int, seat_id: int) -> bool:
    """Check if a standing spot is right next to a seat."""
    return get_position_column(spot) == get_seat_column(seat_id)


def get_adjacent_seats(spot: int) -> list[int]:
    """Get the seat ids adjacent to a standing spot, in id order."""
    return [seat_id for seat_id in range(TOTAL_SEATS) if is_adjacent_to_seat(spot, seat_id)]
