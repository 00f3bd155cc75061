"""Tests for the core data model.

Tests cover:
1. Compartment geometry helpers
2. Difficulty configuration lookup
3. GameState queries, serialization and validation
"""

import pytest

from core.constants import (
    Difficulty,
    Line,
    GameStatus,
    TOTAL_SEATS,
    get_seat_column,
    get_position_column,
    is_adjacent_to_seat,
    get_adjacent_seats,
)
from core.difficulty import (
    DIFFICULTY_CONFIGS,
    get_difficulty_config,
    get_difficulty_options,
    parse_difficulty,
)
from core.game_state import (
    GameState,
    Occupant,
    Seat,
    StandingCompetitor,
    make_empty_seats,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def state() -> GameState:
    """A ride at station 1 of 0..5 with two seated passengers."""
    seats = list(make_empty_seats())
    seats[0] = Seat(seat_id=0, occupant=Occupant("npc-0", destination_station_index=3))
    seats[4] = Seat(seat_id=4, occupant=Occupant("npc-1", destination_station_index=5))
    return GameState(
        current_station_index=1,
        boarding_station_index=1,
        destination_station_index=4,
        last_station_index=5,
        seats=tuple(seats),
        standing_competitors=(
            StandingCompetitor("standing-npc-0", None, 500.0, 1, position_slot=2),
        ),
        player_standing_slot=0,
    )


# =============================================================================
# Geometry
# =============================================================================


class TestGeometry:
    """Test seat and standing spot columns."""

    def test_columns(self):
        assert [get_seat_column(s) for s in range(TOTAL_SEATS)] == [0, 0, 1, 1, 2, 2]
        assert [get_position_column(s) for s in range(6)] == [0, 0, 1, 1, 2, 2]

    def test_adjacency(self):
        assert is_adjacent_to_seat(0, 1)
        assert is_adjacent_to_seat(3, 2)
        assert not is_adjacent_to_seat(0, 2)
        assert not is_adjacent_to_seat(5, 0)

    def test_adjacent_seats(self):
        assert get_adjacent_seats(0) == [0, 1]
        assert get_adjacent_seats(5) == [4, 5]


# =============================================================================
# Difficulty
# =============================================================================


class TestDifficulty:
    """Test difficulty parsing and config lookup."""

    def test_every_difficulty_has_config(self):
        assert set(DIFFICULTY_CONFIGS) == set(Difficulty)
        assert get_difficulty_options() == [Difficulty.EASY, Difficulty.NORMAL, Difficulty.RUSH]

    def test_parse_accepts_strings(self):
        assert parse_difficulty("rush") == Difficulty.RUSH
        assert parse_difficulty(" Easy ") == Difficulty.EASY
        assert parse_difficulty(Difficulty.RUSH) == Difficulty.RUSH

    def test_unknown_tag_falls_back_to_normal(self):
        """Unknown or missing tags are not an error."""
        assert parse_difficulty("nightmare") == Difficulty.NORMAL
        assert parse_difficulty(None) == Difficulty.NORMAL
        assert get_difficulty_config("bogus") is DIFFICULTY_CONFIGS[Difficulty.NORMAL]

    def test_rush_fills_every_seat(self):
        config = get_difficulty_config(Difficulty.RUSH)
        assert config.seated_npc_range == (6, 6)
        assert config.display_name == "Rush Hour"

    def test_claim_chance_grows_with_difficulty(self):
        chances = [get_difficulty_config(d).npc_claim_chance for d in get_difficulty_options()]
        assert chances == sorted(chances)


# =============================================================================
# GameState
# =============================================================================


class TestGameStateQueries:
    """Test GameState helper queries."""

    def test_get_seat(self, state: GameState):
        assert state.get_seat(0).occupant.occupant_id == "npc-0"
        assert state.get_seat(99) is None

    def test_empty_and_occupied(self, state: GameState):
        assert state.empty_seat_ids() == [1, 2, 3, 5]
        assert [s.seat_id for s in state.occupied_seats()] == [0, 4]

    def test_player_seat_is_not_empty(self, state: GameState):
        seated = state.replace(player_seated=True, player_seat_id=1)
        assert 1 not in seated.empty_seat_ids()
        assert not seated.is_seat_available(1)
        assert seated.is_seat_available(2)

    def test_occupied_seat_not_available(self, state: GameState):
        assert not state.is_seat_available(0)

    def test_with_seat_returns_new_state(self, state: GameState):
        updated = state.with_seat(0, None)
        assert updated.get_seat(0).is_empty
        assert not state.get_seat(0).is_empty

    def test_get_competitor(self, state: GameState):
        assert state.get_competitor("standing-npc-0").position_slot == 2
        assert state.get_competitor("nobody") is None

    def test_stops_remaining(self, state: GameState):
        assert state.stops_remaining() == 3
        assert state.replace(current_station_index=4).stops_remaining() == 0

    def test_is_game_over(self, state: GameState):
        assert not state.is_game_over()
        assert state.replace(status=GameStatus.LOST).is_game_over()

    def test_state_is_frozen(self, state: GameState):
        with pytest.raises(Exception):
            state.current_station_index = 3


class TestGameStateSerialization:
    """Test to_dict and state_hash."""

    def test_to_dict(self, state: GameState):
        data = state.to_dict()
        assert data["difficulty"] == "normal"
        assert data["line"] == Line.SHORT.value
        assert data["seats"][0]["occupant"]["occupant_id"] == "npc-0"
        assert data["seats"][1]["occupant"] is None
        assert data["standing_competitors"][0]["position_slot"] == 2

    def test_hash_is_stable(self, state: GameState):
        assert state.state_hash() == state.replace().state_hash()

    def test_hash_changes_with_state(self, state: GameState):
        assert state.state_hash() != state.replace(player_standing_slot=1).state_hash()

    def test_str_marks_player_seat(self, state: GameState):
        text = str(state.replace(player_seated=True, player_seat_id=1))
        assert "[1] player" in text
        assert "npc-0 -> ?" in text


class TestGameStateValidation:
    """Test validate() invariant checks."""

    def test_valid_state(self, state: GameState):
        assert state.validate() == []

    def test_seated_flag_mismatch(self, state: GameState):
        errors = state.replace(player_seated=True).validate()
        assert any("player_seated" in e for e in errors)

    def test_player_sharing_a_seat(self, state: GameState):
        errors = state.replace(player_seated=True, player_seat_id=0).validate()
        assert any("shares seat" in e for e in errors)

    def test_stations_out_of_order(self, state: GameState):
        errors = state.replace(boarding_station_index=4).validate()
        assert any("must be before" in e for e in errors)

    def test_overdue_occupant(self, state: GameState):
        errors = state.replace(current_station_index=3).validate()
        assert any("should have left" in e for e in errors)

    def test_shared_standing_spot(self, state: GameState):
        errors = state.replace(player_standing_slot=2).validate()
        assert any("Standing spots are shared" in e for e in errors)

    def test_playing_at_destination(self, state: GameState):
        seats = make_empty_seats()
        errors = state.replace(seats=seats, current_station_index=4).validate()
        assert any("still playing" in e for e in errors)
