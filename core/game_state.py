"""Game state for the seat-rush game engine.

GameState is the single source of truth for a ride. It is immutable:
every transition in the engine returns a new GameState and never touches
a previously returned one. Helpers are provided for serialization,
hashing and invariant checks.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
from dataclasses import dataclass
from typing import Any, Optional

from .constants import (
    Difficulty,
    GameStatus,
    Line,
    TOTAL_SEATS,
    TOTAL_STANDING_SPOTS,
    DEFAULT_DIFFICULTY,
    DEFAULT_LINE,
)


@dataclass(frozen=True)
class Occupant:
    """A seated passenger.

    Attributes:
        occupant_id: Unique identifier for this passenger.
        destination_station_index: Station where the passenger gets off.
        destination_revealed: Whether the player has asked for the destination.
        visual_variant: Sprite index for the rendering layer.
    """

    occupant_id: str
    destination_station_index: int
    destination_revealed: bool = False
    visual_variant: int = 0


@dataclass(frozen=True)
class Seat:
    """A seat in the compartment. Seats keep their id for the whole ride."""

    seat_id: int
    occupant: Optional[Occupant] = None

    @property
    def is_empty(self) -> bool:
        return self.occupant is None


@dataclass(frozen=True)
class StandingCompetitor:
    """A standing passenger who competes for vacated seats.

    Attributes:
        competitor_id: Unique identifier.
        watched_seat_id: Seat this passenger keeps an eye on, if any.
        base_reaction_time_ms: Reaction time before watching/position modifiers.
        visual_variant: Sprite index for the rendering layer.
        position_slot: Standing spot (0-5).
    """

    competitor_id: str
    watched_seat_id: Optional[int]
    base_reaction_time_ms: float
    visual_variant: int
    position_slot: int


@dataclass(frozen=True)
class GameState:
    """The complete state of a ride - single source of truth.

    Attributes:
        current_station_index: Station the train is at.
        boarding_station_index: Station where the player boarded.
        destination_station_index: Station where the player gets off.
        last_station_index: Final station of the line.
        player_seated: Whether the player has a seat.
        player_seat_id: Seat the player occupies, if seated.
        player_standing_slot: Standing spot of the player while standing.
        seats: All seats, indexed by seat id.
        standing_competitors: Standing passengers in queue order.
        player_watched_seat_id: Seat the player is hovering over/watching.
        difficulty: Difficulty tag of this ride.
        line: Line being ridden.
        status: Playing, won or lost.
        last_claim_message: Message describing the most recent seat claim.
        last_boarding_message: Message describing the most recent boarding.
    """

    current_station_index: int
    boarding_station_index: int
    destination_station_index: int
    last_station_index: int
    seats: tuple[Seat, ...]
    standing_competitors: tuple[StandingCompetitor, ...] = ()
    player_seated: bool = False
    player_seat_id: Optional[int] = None
    player_standing_slot: int = 0
    player_watched_seat_id: Optional[int] = None
    difficulty: Difficulty = DEFAULT_DIFFICULTY
    line: Line = DEFAULT_LINE
    status: GameStatus = GameStatus.PLAYING
    last_claim_message: Optional[str] = None
    last_boarding_message: Optional[str] = None

    # -------------------------------------------------------------------------
    # Copy helpers
    # -------------------------------------------------------------------------

    def replace(self, **changes: Any) -> GameState:
        """Return a copy of this state with the given fields changed."""
        return dataclasses.replace(self, **changes)

    def with_seat(self, seat_id: int, occupant: Optional[Occupant]) -> GameState:
        """Return a copy with one seat's occupant replaced."""
        seats = tuple(
            Seat(seat_id=seat.seat_id, occupant=occupant) if seat.seat_id == seat_id else seat
            for seat in self.seats
        )
        return self.replace(seats=seats)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_seat(self, seat_id: int) -> Optional[Seat]:
        """Get a seat by id, or None if it does not exist."""
        if 0 <= seat_id < len(self.seats) and self.seats[seat_id].seat_id == seat_id:
            return self.seats[seat_id]
        for seat in self.seats:
            if seat.seat_id == seat_id:
                return seat
        return None

    def occupied_seats(self) -> list[Seat]:
        """Get all seats with a passenger on them."""
        return [seat for seat in self.seats if seat.occupant is not None]

    def is_seat_available(self, seat_id: int) -> bool:
        """Check if a seat exists, has no passenger and is not the player's."""
        seat = self.get_seat(seat_id)
        return seat is not None and seat.occupant is None and seat_id != self.player_seat_id

    def empty_seat_ids(self) -> list[int]:
        """Get ids of all seats nobody sits on, in id order."""
        return [
            seat.seat_id
            for seat in self.seats
            if seat.occupant is None and seat.seat_id != self.player_seat_id
        ]

    def get_competitor(self, competitor_id: str) -> Optional[StandingCompetitor]:
        """Get a standing competitor by id."""
        for competitor in self.standing_competitors:
            if competitor.competitor_id == competitor_id:
                return competitor
        return None

    def stops_remaining(self) -> int:
        """Number of stations left before the player's destination."""
        return max(0, self.destination_station_index - self.current_station_index)

    def is_game_over(self) -> bool:
        """Check if the ride has ended."""
        return self.status != GameStatus.PLAYING

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize the game state to a dictionary.

        Returns:
            Dictionary representation of the game state.
        """
        return {
            "current_station_index": self.current_station_index,
            "boarding_station_index": self.boarding_station_index,
            "destination_station_index": self.destination_station_index,
            "last_station_index": self.last_station_index,
            "player_seated": self.player_seated,
            "player_seat_id": self.player_seat_id,
            "player_standing_slot": self.player_standing_slot,
            "player_watched_seat_id": self.player_watched_seat_id,
            "difficulty": self.difficulty.value,
            "line": self.line.value,
            "status": self.status.value,
            "last_claim_message": self.last_claim_message,
            "last_boarding_message": self.last_boarding_message,
            "seats": [
                {
                    "seat_id": seat.seat_id,
                    "occupant": None
                    if seat.occupant is None
                    else {
                        "occupant_id": seat.occupant.occupant_id,
                        "destination_station_index": seat.occupant.destination_station_index,
                        "destination_revealed": seat.occupant.destination_revealed,
                        "visual_variant": seat.occupant.visual_variant,
                    },
                }
                for seat in self.seats
            ],
            "standing_competitors": [
                {
                    "competitor_id": c.competitor_id,
                    "watched_seat_id": c.watched_seat_id,
                    "base_reaction_time_ms": c.base_reaction_time_ms,
                    "visual_variant": c.visual_variant,
                    "position_slot": c.position_slot,
                }
                for c in self.standing_competitors
            ],
        }

    def state_hash(self) -> str:
        """Compute a hash of the game state.

        Returns:
            A hex string hash of the serialized state.
        """
        state_json = json.dumps(self.to_dict(), sort_keys=True)
        return hashlib.sha256(state_json.encode()).hexdigest()

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> list[str]:
        """Validate the game state for consistency.

        Returns:
            List of validation error messages (empty if valid).
        """
        errors: list[str] = []

        if len(self.seats) != TOTAL_SEATS:
            errors.append(f"Expected {TOTAL_SEATS} seats, got {len(self.seats)}")

        seat_ids = [seat.seat_id for seat in self.seats]
        if sorted(seat_ids) != list(range(len(self.seats))):
            errors.append(f"Seat ids must be 0..{len(self.seats) - 1} exactly once: {seat_ids}")

        if self.player_seated != (self.player_seat_id is not None):
            errors.append(
                f"player_seated={self.player_seated} disagrees with "
                f"player_seat_id={self.player_seat_id}"
            )
        elif self.player_seat_id is not None:
            seat = self.get_seat(self.player_seat_id)
            if seat is None:
                errors.append(f"Player sits on unknown seat {self.player_seat_id}")
            elif seat.occupant is not None:
                errors.append(
                    f"Player shares seat {self.player_seat_id} with {seat.occupant.occupant_id}"
                )

        if not 0 <= self.boarding_station_index < self.destination_station_index:
            errors.append(
                f"Boarding station {self.boarding_station_index} must be before "
                f"destination {self.destination_station_index}"
            )
        if self.destination_station_index > self.last_station_index:
            errors.append(
                f"Destination {self.destination_station_index} is past the last station "
                f"{self.last_station_index}"
            )

        if self.status == GameStatus.PLAYING and (
            self.current_station_index >= self.destination_station_index
        ):
            errors.append("Game still playing at or past the destination station")

        for seat in self.occupied_seats():
            occupant = seat.occupant
            if occupant.destination_station_index <= self.current_station_index:
                errors.append(
                    f"Occupant {occupant.occupant_id} in seat {seat.seat_id} should have "
                    f"left at station {occupant.destination_station_index}"
                )
            if occupant.destination_station_index > self.last_station_index:
                errors.append(
                    f"Occupant {occupant.occupant_id} rides past the last station"
                )

        slots = [c.position_slot for c in self.standing_competitors]
        if not self.player_seated:
            slots.append(self.player_standing_slot)
        if len(slots) != len(set(slots)):
            errors.append(f"Standing spots are shared: {slots}")
        for slot in slots:
            if not 0 <= slot < TOTAL_STANDING_SPOTS:
                errors.append(f"Invalid standing spot: {slot}")

        ids = [c.competitor_id for c in self.standing_competitors]
        ids.extend(seat.occupant.occupant_id for seat in self.occupied_seats())
        if len(ids) != len(set(ids)):
            errors.append(f"Passenger ids are not unique: {ids}")

        return errors

    # -------------------------------------------------------------------------
    # String representation
    # -------------------------------------------------------------------------

    def __str__(self) -> str:
        """Return a human-readable string representation."""
        where = (
            f"seat {self.player_seat_id}" if self.player_seated else f"spot {self.player_standing_slot}"
        )
        lines = [
            f"GameState(status={self.status.value}, station={self.current_station_index}, "
            f"destination={self.destination_station_index}, difficulty={self.difficulty.value})",
            f"  Player: {where}, watching={self.player_watched_seat_id}",
            "  Seats:",
        ]
        for seat in self.seats:
            if seat.seat_id == self.player_seat_id:
                lines.append(f"    [{seat.seat_id}] player")
            elif seat.occupant is None:
                lines.append(f"    [{seat.seat_id}] empty")
            else:
                dest = (
                    str(seat.occupant.destination_station_index)
                    if seat.occupant.destination_revealed
                    else "?"
                )
                lines.append(f"    [{seat.seat_id}] {seat.occupant.occupant_id} -> {dest}")
        lines.append(f"  Standing: {len(self.standing_competitors)}")
        return "\n".join(lines)


def make_empty_seats(count: int = TOTAL_SEATS) -> tuple[Seat, ...]:
    """Create a row of empty seats with ids 0..count-1."""
    return tuple(Seat(seat_id=i) for i in range(count))
