"""Initial ride setup for the seat-rush game engine.

Builds the starting GameState for a ride:
1. Fill a random subset of seats with passengers, sized by difficulty
2. Give every seated passenger a destination after the boarding station
3. Put the player on a random standing spot
4. Add standing competitors on the remaining spots

All randomness is drawn from a numpy Generator so rides can be
reproduced by passing a seeded one.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

import numpy as np

from core.constants import (
    Difficulty,
    Line,
    GameStatus,
    TOTAL_SEATS,
    TOTAL_STANDING_SPOTS,
    CHARACTER_COUNT,
    INITIAL_WATCH_CHANCE,
    get_adjacent_seats,
)
from core.difficulty import DifficultyConfig, get_difficulty_config
from core.game_state import GameState, Occupant, Seat, StandingCompetitor
from data.loader import get_station_line, parse_line

logger = logging.getLogger(__name__)


def get_rng(rng: Optional[np.random.Generator] = None) -> np.random.Generator:
    """Return the given generator, or a fresh unseeded one."""
    return rng if rng is not None else np.random.default_rng()


def draw_between(rng: np.random.Generator, low: int, high: int) -> int:
    """Draw an integer uniformly from the inclusive range [low, high]."""
    return int(rng.integers(low, high, endpoint=True))


def draw_destination(rng: np.random.Generator, after_index: int, last_station_index: int) -> int:
    """Draw a destination uniformly from (after_index, last_station_index]."""
    return draw_between(rng, after_index + 1, last_station_index)


def draw_watched_seat(rng: np.random.Generator, slot: int, chance: float) -> Optional[int]:
    """With the given chance, pick one of the seats next to a standing spot."""
    if rng.random() >= chance:
        return None
    adjacent = get_adjacent_seats(slot)
    if not adjacent:
        return None
    return adjacent[int(rng.integers(len(adjacent)))]


def make_standing_competitor(
    competitor_id: str,
    slot: int,
    config: DifficultyConfig,
    visual_variant: int,
    rng: np.random.Generator,
) -> StandingCompetitor:
    """Create a standing competitor on a spot with a drawn reaction time and watch."""
    watched = draw_watched_seat(rng, slot, INITIAL_WATCH_CHANCE)
    reaction = draw_between(rng, config.npc_response_time.min, config.npc_response_time.max)
    return StandingCompetitor(
        competitor_id=competitor_id,
        watched_seat_id=watched,
        base_reaction_time_ms=float(reaction),
        visual_variant=visual_variant,
        position_slot=slot,
    )


def generate_standing_competitors(
    config: DifficultyConfig,
    reserved_slots: tuple[int, ...] = (),
    rng: Optional[np.random.Generator] = None,
    variants: Optional[list[int]] = None,
) -> tuple[StandingCompetitor, ...]:
    """Generate the standing competitors for a new ride.

    The count is drawn from the difficulty's standing range and capped
    by the number of free standing spots.

    Args:
        config: Difficulty configuration.
        reserved_slots: Standing spots already taken (e.g. by the player).
        rng: Random source.
        variants: Visual variants to hand out in order, wrapping around.
            Drawn at random when omitted.

    Returns:
        Competitors in queue order, ids standing-npc-0, standing-npc-1, ...
    """
    rng = get_rng(rng)
    low, high = config.standing_npc_range
    count = draw_between(rng, low, high)

    available = [s for s in range(TOTAL_STANDING_SPOTS) if s not in reserved_slots]
    slots = [available[int(i)] for i in rng.permutation(len(available))]
    count = min(count, len(slots))

    competitors = []
    for i in range(count):
        if variants:
            variant = variants[i % len(variants)]
        else:
            variant = int(rng.integers(CHARACTER_COUNT))
        competitors.append(
            make_standing_competitor(f"standing-npc-{i}", slots[i], config, variant, rng)
        )
    return tuple(competitors)


def generate_initial_state(
    boarding_station_index: int,
    destination_station_index: int,
    difficulty: Union[Difficulty, str, None] = None,
    line: Union[Line, str, None] = None,
    rng: Optional[np.random.Generator] = None,
) -> GameState:
    """Generate the starting state of a ride.

    Args:
        boarding_station_index: Station where the player boards.
        destination_station_index: Station where the player gets off.
        difficulty: Difficulty tag. Unknown or missing tags mean normal.
        line: Line to ride (default: the short line).
        rng: Random source.

    Returns:
        A GameState with the player standing and the compartment populated.

    Raises:
        ValueError: If the stations are out of order or off the line.
        KeyError: If the line is unknown.
    """
    rng = get_rng(rng)
    config = get_difficulty_config(difficulty)
    station_line = get_station_line(line)
    last = station_line.last_station_index

    if not 0 <= boarding_station_index < destination_station_index <= last:
        raise ValueError(
            f"Invalid ride {boarding_station_index} -> {destination_station_index}: "
            f"need 0 <= boarding < destination <= {last}"
        )

    # One shuffled sprite pool shared by seated and standing passengers
    variants = [int(v) for v in rng.permutation(CHARACTER_COUNT)]

    low, high = config.seated_npc_range
    occupant_count = min(draw_between(rng, low, high), TOTAL_SEATS)
    chosen_seats = [int(s) for s in rng.permutation(TOTAL_SEATS)[:occupant_count]]

    occupants: dict[int, Occupant] = {}
    for i, seat_id in enumerate(chosen_seats):
        occupants[seat_id] = Occupant(
            occupant_id=f"npc-{i}",
            destination_station_index=draw_destination(rng, boarding_station_index, last),
            destination_revealed=False,
            visual_variant=variants[i % CHARACTER_COUNT],
        )
    seats = tuple(Seat(seat_id=i, occupant=occupants.get(i)) for i in range(TOTAL_SEATS))

    player_slot = int(rng.integers(TOTAL_STANDING_SPOTS))
    standing_variants = [variants[(occupant_count + j) % CHARACTER_COUNT] for j in range(CHARACTER_COUNT)]
    competitors = generate_standing_competitors(
        config, reserved_slots=(player_slot,), rng=rng, variants=standing_variants
    )

    state = GameState(
        current_station_index=boarding_station_index,
        boarding_station_index=boarding_station_index,
        destination_station_index=destination_station_index,
        last_station_index=last,
        seats=seats,
        standing_competitors=competitors,
        player_seated=False,
        player_seat_id=None,
        player_standing_slot=player_slot,
        player_watched_seat_id=None,
        difficulty=config.difficulty,
        line=parse_line(line),
        status=GameStatus.PLAYING,
    )

    logger.debug(
        "Generated %s ride %d -> %d: %d seated, %d standing",
        config.difficulty.value,
        boarding_station_index,
        destination_station_index,
        occupant_count,
        len(competitors),
    )
    return state
