"""Tests for the grab competition resolver."""

import pytest

from core.constants import PLAYER_ID, MIN_EFFECTIVE_TIME_MS
from core.game_state import StandingCompetitor
from engine.grab_competition import effective_time, resolve_one, resolve_many


def npc(name: str, slot: int, reaction: float, watched=None) -> StandingCompetitor:
    return StandingCompetitor(
        competitor_id=name,
        watched_seat_id=watched,
        base_reaction_time_ms=reaction,
        visual_variant=0,
        position_slot=slot,
    )


class TestEffectiveTime:
    """Test reaction time adjustments."""

    def test_watching_and_adjacent(self):
        assert effective_time(800, is_watching=True, is_adjacent=True) == 350

    def test_adjacent_only(self):
        assert effective_time(800, is_watching=False, is_adjacent=True) == 650

    def test_not_adjacent_penalty(self):
        assert effective_time(800, is_watching=False, is_adjacent=False) == 950

    def test_watching_from_afar(self):
        assert effective_time(800, is_watching=True, is_adjacent=False) == 650

    def test_floor(self):
        assert effective_time(100, is_watching=True, is_adjacent=True) == MIN_EFFECTIVE_TIME_MS
        assert effective_time(0, is_watching=False, is_adjacent=True) == MIN_EFFECTIVE_TIME_MS


class TestResolveOne:
    """Test the competition for a single seat."""

    def test_fast_watching_player_beats_competitor(self):
        result = resolve_one(
            seat_id=0,
            player_tap_ms=100,
            player_slot=0,
            player_watched_seat_id=0,
            competitors=[npc("a", slot=1, reaction=600)],
        )
        assert result.is_player_winner
        assert result.winner_id == PLAYER_ID
        assert result.player_effective_time_ms == MIN_EFFECTIVE_TIME_MS

    def test_no_tap_competitor_wins(self):
        result = resolve_one(0, None, 0, None, [npc("a", slot=4, reaction=900)])
        assert result.winner_id == "a"
        assert not result.is_player_winner
        assert result.player_effective_time_ms is None

    def test_fastest_competitor_wins(self):
        competitors = [npc("slow", 0, 700), npc("fast", 1, 400), npc("far", 5, 300)]
        result = resolve_one(0, None, 3, None, competitors)
        # fast: 400-150=250, far: 300+150=450
        assert result.winner_id == "fast"
        assert [t.effective_time_ms for t in result.competitor_times] == [550, 250, 450]

    def test_watching_competitor_gets_head_start(self):
        competitors = [npc("a", 0, 500), npc("b", 1, 700, watched=0)]
        result = resolve_one(0, None, 4, None, competitors)
        assert result.winner_id == "b"

    def test_tie_goes_to_competitor(self):
        result = resolve_one(0, 600, 0, None, [npc("a", 1, 600)])
        assert result.winner_id == "a"
        assert not result.is_player_winner

    def test_competitor_tie_keeps_first(self):
        result = resolve_one(2, None, 0, None, [npc("a", 2, 500), npc("b", 3, 500)])
        assert result.winner_id == "a"

    def test_player_alone(self):
        result = resolve_one(3, 1500, 0, None, [])
        assert result.is_player_winner

    def test_nobody_competes(self):
        result = resolve_one(3, None, 0, None, [])
        assert result.winner_id is None
        assert not result.is_player_winner


class TestResolveMany:
    """Test resolving a whole grab window."""

    def test_player_tap_only_counts_for_tapped_seat(self):
        competitors = [npc("a", 5, 900)]
        results = resolve_many([0, 4], 100, 4, 0, None, competitors)
        assert results[0].winner_id == "a"
        assert results[0].player_effective_time_ms is None
        # a already has seat 0, so the player takes seat 4 unopposed
        assert results[1].is_player_winner
        assert results[1].competitor_times == ()

    def test_winner_drops_out(self):
        competitors = [npc("a", 0, 300), npc("b", 1, 500)]
        results = resolve_many([0, 1], None, None, 4, None, competitors)
        assert [r.winner_id for r in results] == ["a", "b"]
        assert len(results[1].competitor_times) == 1

    def test_stops_after_player_wins(self):
        competitors = [npc("a", 5, 900), npc("b", 4, 900)]
        results = resolve_many([0, 2, 4], 100, 0, 0, 0, competitors)
        assert len(results) == 1
        assert results[0].is_player_winner

    def test_player_loses_then_later_seats_resolve(self):
        competitors = [npc("a", 0, 250, watched=0), npc("b", 5, 900)]
        results = resolve_many([0, 4], 1000, 0, 1, None, competitors)
        assert results[0].winner_id == "a"
        assert results[1].winner_id == "b"

    @pytest.mark.parametrize("open_seats", [[], [3]])
    def test_no_competitors(self, open_seats):
        results = resolve_many(open_seats, None, None, 0, None, [])
        assert len(results) == len(open_seats)
        assert all(r.winner_id is None for r in results)
