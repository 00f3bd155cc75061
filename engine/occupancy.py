"""Occupancy transitions for the seat-rush game engine.

Every function here is a pure transform: it takes a GameState and
returns a new one, leaving its input untouched. Randomness is drawn
from an optional numpy Generator.

Station advancement is split in two so animation can start before the
authoritative mutation:
- preview_advance() draws every random outcome of the next advance
  and returns it as an AdvancePreview
- advance() applies a preview (drawing one first when none is given)

Applying a preview always produces exactly the previewed outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, TYPE_CHECKING

import numpy as np

from core.constants import (
    GameStatus,
    TOTAL_STANDING_SPOTS,
    CHARACTER_COUNT,
    MAX_MOVE_DISTANCE,
    WATCH_CHANGE_CHANCE,
    WATCH_ADJACENT_CHANCE,
    MAJOR_STATION_BOARDING_BONUS,
    get_position_column,
    is_adjacent_to_seat,
)
from core.difficulty import get_difficulty_config
from core.game_state import GameState, Occupant, Seat, StandingCompetitor
from data.loader import get_station_line
from .setup import (
    get_rng,
    draw_between,
    draw_destination,
    draw_watched_seat,
    make_standing_competitor,
)

if TYPE_CHECKING:
    from .grab_competition import GrabResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdvancePreview:
    """Everything that will happen on the next station advance.

    Attributes:
        new_station_index: Station the train arrives at.
        departing_ids: Occupants leaving at this station.
        vacated_seat_ids: Seats those occupants leave, in seat order.
        claiming_id: Standing competitor passively taking a seat, if any.
        claimed_seat_id: Seat taken by the passive claim, if any.
        claimant_destination: Destination drawn for the claimant.
        watch_updates: (competitor id, new watched seat) for every
            competitor that re-rolled its watch.
        boarders: Standing competitors boarding at this station.
        boarding_message: Message describing the boarding, if any.
        status: Game status after arrival.
    """

    new_station_index: int
    departing_ids: tuple[str, ...] = ()
    vacated_seat_ids: tuple[int, ...] = ()
    claiming_id: Optional[str] = None
    claimed_seat_id: Optional[int] = None
    claimant_destination: Optional[int] = None
    watch_updates: tuple[tuple[str, Optional[int]], ...] = ()
    boarders: tuple[StandingCompetitor, ...] = ()
    boarding_message: Optional[str] = None
    status: GameStatus = GameStatus.PLAYING


# -------------------------------------------------------------------------
# Station advancement
# -------------------------------------------------------------------------


def preview_advance(
    state: GameState, rng: Optional[np.random.Generator] = None
) -> AdvancePreview:
    """Work out what advancing one station would do, without doing it.

    Args:
        state: Current state. Must still be playing.
        rng: Random source for passive claims, watches and boarding.

    Returns:
        The complete outcome of the advance.
    """
    rng = get_rng(rng)
    config = get_difficulty_config(state.difficulty)
    new_station = state.current_station_index + 1

    departing_ids: list[str] = []
    vacated: list[int] = []
    for seat in state.seats:
        occupant = seat.occupant
        if occupant is not None and occupant.destination_station_index <= new_station:
            departing_ids.append(occupant.occupant_id)
            vacated.append(seat.seat_id)

    # Passive claim: at most one per advance, always the head of the queue
    claiming_id: Optional[str] = None
    claimed_seat_id: Optional[int] = None
    claimant_destination: Optional[int] = None
    queue = list(state.standing_competitors)
    if new_station < state.last_station_index:
        for seat_id in vacated:
            if state.player_watched_seat_id == seat_id:
                continue
            roll = rng.random()
            if roll < config.npc_claim_chance and queue:
                claimant = queue.pop(0)
                claiming_id = claimant.competitor_id
                claimed_seat_id = seat_id
                claimant_destination = draw_destination(
                    rng, new_station, state.last_station_index
                )
                break

    watch_updates: list[tuple[str, Optional[int]]] = []
    for competitor in queue:
        if rng.random() >= WATCH_CHANGE_CHANCE:
            continue
        watched = draw_watched_seat(rng, competitor.position_slot, WATCH_ADJACENT_CHANCE)
        watch_updates.append((competitor.competitor_id, watched))

    player_slot = None if state.player_seated else state.player_standing_slot
    boarders = _plan_boarding(state, queue, player_slot, new_station, rng)
    boarding_message = None
    if boarders:
        plural = "s" if len(boarders) > 1 else ""
        boarding_message = f"{len(boarders)} passenger{plural} joined the queue!"

    status = state.status
    if status == GameStatus.PLAYING and new_station >= state.destination_station_index:
        status = GameStatus.WON if state.player_seated else GameStatus.LOST

    return AdvancePreview(
        new_station_index=new_station,
        departing_ids=tuple(departing_ids),
        vacated_seat_ids=tuple(vacated),
        claiming_id=claiming_id,
        claimed_seat_id=claimed_seat_id,
        claimant_destination=claimant_destination,
        watch_updates=tuple(watch_updates),
        boarders=boarders,
        boarding_message=boarding_message,
        status=status,
    )


def _plan_boarding(
    state: GameState,
    queue: list[StandingCompetitor],
    player_slot: Optional[int],
    new_station: int,
    rng: np.random.Generator,
) -> tuple[StandingCompetitor, ...]:
    """Draw the standing competitors boarding at a station."""
    config = get_difficulty_config(state.difficulty)
    min_count, max_count = config.standing_npc_range
    deficit = max_count - len(queue)
    if deficit <= 0:
        return ()

    below_minimum = len(queue) < min_count
    chance = config.boarding.boarding_chance
    if get_station_line(state.line).is_major_boarding_station(new_station):
        chance = min(chance + MAJOR_STATION_BOARDING_BONUS, 1.0)
    if not below_minimum and rng.random() >= chance:
        return ()

    taken = {c.position_slot for c in queue}
    if player_slot is not None:
        taken.add(player_slot)
    free_slots = [s for s in range(TOTAL_STANDING_SPOTS) if s not in taken]
    if not free_slots:
        return ()

    if below_minimum:
        count = min_count - len(queue)
    else:
        low = max(1, config.boarding.min_board)
        high = max(low, config.boarding.max_board)
        count = draw_between(rng, low, high)
    count = min(count, deficit, len(free_slots))

    slots = [free_slots[int(i)] for i in rng.permutation(len(free_slots))]
    return tuple(
        make_standing_competitor(
            f"standing-npc-boarded-{new_station}-{k}",
            slots[k],
            config,
            int(rng.integers(CHARACTER_COUNT)),
            rng,
        )
        for k in range(count)
    )


def advance(
    state: GameState,
    rng: Optional[np.random.Generator] = None,
    preview: Optional[AdvancePreview] = None,
) -> GameState:
    """Advance the train one station.

    Occupants whose destination has been reached leave; one standing
    competitor may passively take a freed seat; standing competitors
    re-roll their watches and new ones may board. On reaching the
    player's destination the ride ends, won if the player is seated.

    Args:
        state: Current state. Must still be playing.
        rng: Random source, used only when no preview is given.
        preview: Outcome from preview_advance() to apply.

    Returns:
        The state at the next station. A finished ride is returned as is.
    """
    if state.is_game_over():
        logger.warning("Ignoring advance on a finished ride (%s)", state.status.value)
        return state

    if preview is None:
        preview = preview_advance(state, rng)

    vacated = set(preview.vacated_seat_ids)
    seats = []
    for seat in state.seats:
        if seat.seat_id in vacated:
            seats.append(Seat(seat_id=seat.seat_id))
        else:
            seats.append(seat)

    competitors = list(state.standing_competitors)
    claim_message = None
    if preview.claiming_id is not None and preview.claimed_seat_id is not None:
        claimant = next(
            (c for c in competitors if c.competitor_id == preview.claiming_id), None
        )
        if claimant is not None:
            competitors.remove(claimant)
            seats[preview.claimed_seat_id] = Seat(
                seat_id=preview.claimed_seat_id,
                occupant=Occupant(
                    occupant_id=claimant.competitor_id,
                    destination_station_index=preview.claimant_destination,
                    destination_revealed=False,
                    visual_variant=claimant.visual_variant,
                ),
            )
            claim_message = (
                f"A standing passenger grabbed seat {preview.claimed_seat_id + 1}!"
            )
            logger.debug(
                "%s passively claimed seat %d", claimant.competitor_id, preview.claimed_seat_id
            )

    watches = dict(preview.watch_updates)
    competitors = [
        _with_watch(c, watches[c.competitor_id]) if c.competitor_id in watches else c
        for c in competitors
    ]
    competitors.extend(preview.boarders)
    if preview.boarders:
        logger.debug(
            "%d passengers boarded at station %d", len(preview.boarders), preview.new_station_index
        )

    if preview.status != GameStatus.PLAYING:
        logger.debug("Ride ended at station %d: %s", preview.new_station_index, preview.status.value)

    return state.replace(
        current_station_index=preview.new_station_index,
        seats=tuple(seats),
        standing_competitors=tuple(competitors),
        player_watched_seat_id=None,
        status=preview.status,
        last_claim_message=claim_message,
        last_boarding_message=preview.boarding_message,
    )


def _with_watch(competitor: StandingCompetitor, seat_id: Optional[int]) -> StandingCompetitor:
    return StandingCompetitor(
        competitor_id=competitor.competitor_id,
        watched_seat_id=seat_id,
        base_reaction_time_ms=competitor.base_reaction_time_ms,
        visual_variant=competitor.visual_variant,
        position_slot=competitor.position_slot,
    )


# -------------------------------------------------------------------------
# Player actions
# -------------------------------------------------------------------------


def reveal_destination(state: GameState, seat_id: int) -> GameState:
    """Ask the passenger in a seat where they get off.

    Empty or unknown seats, and already revealed passengers, leave the
    state unchanged.
    """
    seat = state.get_seat(seat_id)
    if seat is None or seat.occupant is None or seat.occupant.destination_revealed:
        return state

    occupant = seat.occupant
    revealed = Occupant(
        occupant_id=occupant.occupant_id,
        destination_station_index=occupant.destination_station_index,
        destination_revealed=True,
        visual_variant=occupant.visual_variant,
    )
    return state.with_seat(seat_id, revealed)


def claim_seat(state: GameState, seat_id: int) -> GameState:
    """Sit the player down on a seat.

    The seat is not checked; callers only pass seats they have
    verified are free.
    """
    return state.replace(
        player_seated=True,
        player_seat_id=seat_id,
        player_watched_seat_id=None,
    )


def set_watched_seat(state: GameState, seat_id: Optional[int]) -> GameState:
    """Set or clear the seat the player is watching.

    Only seats next to the player's standing spot can be watched; unknown
    or out-of-view seats leave the state unchanged.
    """
    if seat_id is not None:
        if state.get_seat(seat_id) is None:
            return state
        if not is_adjacent_to_seat(state.player_standing_slot, seat_id):
            return state
    if state.player_watched_seat_id == seat_id:
        return state
    return state.replace(player_watched_seat_id=seat_id)


def move_position(state: GameState, slot: int) -> GameState:
    """Move the standing player to another standing spot.

    The player moves at most MAX_MOVE_DISTANCE spots. A competitor
    standing on the target spot swaps places with the player. Moving
    to another column clears the player's watch.

    Returns:
        The updated state, or the input state when the move is not allowed.
    """
    if state.player_seated:
        return state
    if not 0 <= slot < TOTAL_STANDING_SPOTS:
        return state
    old_slot = state.player_standing_slot
    if slot == old_slot or abs(slot - old_slot) > MAX_MOVE_DISTANCE:
        return state

    competitors = tuple(
        StandingCompetitor(
            competitor_id=c.competitor_id,
            watched_seat_id=c.watched_seat_id,
            base_reaction_time_ms=c.base_reaction_time_ms,
            visual_variant=c.visual_variant,
            position_slot=old_slot,
        )
        if c.position_slot == slot
        else c
        for c in state.standing_competitors
    )

    watched = state.player_watched_seat_id
    if get_position_column(old_slot) != get_position_column(slot):
        watched = None

    return state.replace(
        player_standing_slot=slot,
        standing_competitors=competitors,
        player_watched_seat_id=watched,
    )


# -------------------------------------------------------------------------
# Grab window outcomes
# -------------------------------------------------------------------------


def npc_grabs_seat(
    state: GameState,
    competitor_id: str,
    seat_id: int,
    rng: Optional[np.random.Generator] = None,
) -> GameState:
    """Seat a standing competitor who won a grab.

    Unknown competitors, unavailable seats, and rides with no station
    left to travel to leave the state unchanged.
    """
    competitor = state.get_competitor(competitor_id)
    if competitor is None or not state.is_seat_available(seat_id):
        return state
    if state.current_station_index >= state.last_station_index:
        return state

    rng = get_rng(rng)
    occupant = Occupant(
        occupant_id=competitor.competitor_id,
        destination_station_index=draw_destination(
            rng, state.current_station_index, state.last_station_index
        ),
        destination_revealed=False,
        visual_variant=competitor.visual_variant,
    )
    remaining = tuple(
        c for c in state.standing_competitors if c.competitor_id != competitor_id
    )
    return state.with_seat(seat_id, occupant).replace(
        standing_competitors=remaining,
        last_claim_message=f"A standing passenger grabbed seat {seat_id + 1}!",
    )


def fill_empty_seats(
    state: GameState, rng: Optional[np.random.Generator] = None
) -> GameState:
    """Give every empty seat to a newly boarded passenger."""
    empty = state.empty_seat_ids()
    if not empty or state.current_station_index >= state.last_station_index:
        return state

    rng = get_rng(rng)
    station = state.current_station_index
    for seat_id in empty:
        occupant = Occupant(
            occupant_id=f"auto-fill-{seat_id}-{station}",
            destination_station_index=draw_destination(rng, station, state.last_station_index),
            destination_revealed=False,
            visual_variant=int(rng.integers(CHARACTER_COUNT)),
        )
        state = state.with_seat(seat_id, occupant)

    if len(empty) == 1:
        message = "A passenger rushed in and took the empty seat!"
    else:
        message = f"{len(empty)} passengers rushed in and took the empty seats!"
    logger.debug("Filled %d empty seats at station %d", len(empty), station)
    return state.replace(last_claim_message=message)


def apply_grab_results(
    state: GameState,
    results: Sequence[GrabResult],
    rng: Optional[np.random.Generator] = None,
) -> GameState:
    """Apply the outcome of a grab window, in result order.

    A player win seats the player; a competitor win seats that
    competitor. Results without a winner leave their seat empty.
    """
    rng = get_rng(rng)
    for result in results:
        if result.winner_id is None:
            continue
        if result.is_player_winner:
            state = claim_seat(state, result.seat_id).replace(
                last_claim_message=f"You grabbed seat {result.seat_id + 1}!"
            )
        else:
            state = npc_grabs_seat(state, result.winner_id, result.seat_id, rng)
    return state

