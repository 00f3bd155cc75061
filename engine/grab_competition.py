"""Grab competition resolver for the seat-rush game engine.

Decides who wins a freed seat during a grab window. Every standing
competitor competes for every open seat; the player competes only for
the seat they tapped. Reaction times are adjusted before comparison:

- Watching the seat: -WATCHING_BONUS_MS (head start)
- Standing next to the seat: -ADJACENT_BONUS_MS
- Standing elsewhere: +NON_ADJACENT_PENALTY_MS

Nobody resolves faster than MIN_EFFECTIVE_TIME_MS. The lowest adjusted
time wins; on a tie the competitor enumerated first keeps the seat.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from core.constants import (
    WATCHING_BONUS_MS,
    ADJACENT_BONUS_MS,
    NON_ADJACENT_PENALTY_MS,
    MIN_EFFECTIVE_TIME_MS,
    PLAYER_ID,
    is_adjacent_to_seat,
)
from core.game_state import StandingCompetitor


@dataclass(frozen=True)
class CompetitorTime:
    """A standing competitor's adjusted reaction time for one seat."""

    competitor_id: str
    effective_time_ms: float


@dataclass(frozen=True)
class GrabResult:
    """Outcome of the competition for a single seat.

    Attributes:
        seat_id: The seat competed for.
        winner_id: Winning competitor id, PLAYER_ID for the player, or
            None when nobody competed.
        is_player_winner: Whether the player won the seat.
        player_effective_time_ms: Player's adjusted time, None if the
            player did not tap this seat.
        competitor_times: Adjusted times of every standing competitor.
    """

    seat_id: int
    winner_id: Optional[str]
    is_player_winner: bool
    player_effective_time_ms: Optional[float] = None
    competitor_times: tuple[CompetitorTime, ...] = field(default_factory=tuple)


def effective_time(base_reaction_ms: float, is_watching: bool, is_adjacent: bool) -> float:
    """Adjust a reaction time for attention and position.

    Args:
        base_reaction_ms: Unadjusted reaction (or tap) time.
        is_watching: Whether the competitor was watching the seat.
        is_adjacent: Whether the competitor stands next to the seat.

    Returns:
        The adjusted time, never below MIN_EFFECTIVE_TIME_MS.
    """
    time_ms = float(base_reaction_ms)

    if is_watching:
        time_ms -= WATCHING_BONUS_MS

    if is_adjacent:
        time_ms -= ADJACENT_BONUS_MS
    else:
        time_ms += NON_ADJACENT_PENALTY_MS

    return max(float(MIN_EFFECTIVE_TIME_MS), time_ms)


def competitor_times(
    seat_id: int, competitors: Sequence[StandingCompetitor]
) -> tuple[CompetitorTime, ...]:
    """Adjusted times of all standing competitors for a seat, in queue order."""
    return tuple(
        CompetitorTime(
            competitor_id=c.competitor_id,
            effective_time_ms=effective_time(
                c.base_reaction_time_ms,
                c.watched_seat_id == seat_id,
                is_adjacent_to_seat(c.position_slot, seat_id),
            ),
        )
        for c in competitors
    )


def resolve_one(
    seat_id: int,
    player_tap_ms: Optional[float],
    player_slot: int,
    player_watched_seat_id: Optional[int],
    competitors: Sequence[StandingCompetitor],
) -> GrabResult:
    """Resolve the competition for one seat.

    Args:
        seat_id: The open seat.
        player_tap_ms: Time from window start to the player's tap on this
            seat, or None if the player did not tap it.
        player_slot: Player's standing spot.
        player_watched_seat_id: Seat the player was watching.
        competitors: Standing competitors still without a seat.

    Returns:
        GrabResult naming the winner.
    """
    times = competitor_times(seat_id, competitors)

    player_time: Optional[float] = None
    if player_tap_ms is not None:
        player_time = effective_time(
            player_tap_ms,
            player_watched_seat_id == seat_id,
            is_adjacent_to_seat(player_slot, seat_id),
        )

    winner_id: Optional[str] = None
    fastest = float("inf")
    for entry in times:
        if entry.effective_time_ms < fastest:
            fastest = entry.effective_time_ms
            winner_id = entry.competitor_id

    is_player_winner = False
    if player_time is not None and player_time < fastest:
        winner_id = PLAYER_ID
        is_player_winner = True

    if winner_id is None and times:
        winner_id = times[0].competitor_id

    return GrabResult(
        seat_id=seat_id,
        winner_id=winner_id,
        is_player_winner=is_player_winner,
        player_effective_time_ms=player_time,
        competitor_times=times,
    )


def resolve_many(
    open_seat_ids: Sequence[int],
    player_tap_ms: Optional[float],
    player_tapped_seat_id: Optional[int],
    player_slot: int,
    player_watched_seat_id: Optional[int],
    competitors: Sequence[StandingCompetitor],
) -> list[GrabResult]:
    """Resolve every open seat of a grab window, in order.

    A competitor who wins a seat drops out of the remaining contests.
    Resolution stops as soon as the player wins a seat, so fewer results
    than open seats may be returned.
    """
    results: list[GrabResult] = []
    remaining = list(competitors)

    for seat_id in open_seat_ids:
        tap = player_tap_ms if player_tapped_seat_id == seat_id else None
        result = resolve_one(seat_id, tap, player_slot, player_watched_seat_id, remaining)
        results.append(result)

        if result.is_player_winner:
            break

        if result.winner_id is not None:
            remaining = [c for c in remaining if c.competitor_id != result.winner_id]

    return results
