"""Scripted agents for SeatEnv baselines and smoke runs."""

from __future__ import annotations

from typing import Optional

import numpy as np

from core.constants import get_position_column, get_seat_column, is_adjacent_to_seat
from core.game_state import GameState
from .config import ActionSpaceConfig, DEFAULT_ACTION_CONFIG
from .seat_env import SeatEnv


class RandomAgent:
    """Samples uniformly among the legal actions."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = np.random.default_rng(seed)

    def act(self, env: SeatEnv) -> int:
        valid = np.flatnonzero(env.action_masks())
        return int(self._rng.choice(valid))


class HeuristicAgent:
    """Plays the way a careful commuter would.

    Taps the watched or nearest open seat, claims free seats outright,
    reveals everyone's stop, then watches and stands next to the seated
    passenger who leaves first before the player's own stop.
    """

    def __init__(self, config: ActionSpaceConfig = DEFAULT_ACTION_CONFIG):
        self.config = config

    def act(self, env: SeatEnv) -> int:
        cfg = self.config
        mask = env.action_masks()
        state = env.get_state()
        if state is None:
            raise RuntimeError("Environment not initialized. Call reset() first.")

        def valid(idx: int) -> bool:
            return bool(mask[idx])

        taps = [s for s in range(cfg.NUM_SEATS) if valid(cfg.tap_start + s)]
        if taps:
            return cfg.tap_start + self._pick_seat(state, taps)

        claims = [s for s in range(cfg.NUM_SEATS) if valid(cfg.claim_start + s)]
        if claims:
            return cfg.claim_start + self._pick_seat(state, claims)

        for seat_id in range(cfg.NUM_SEATS):
            if valid(cfg.reveal_start + seat_id):
                return cfg.reveal_start + seat_id

        target = self._target_seat(state)
        if target is not None and not state.player_seated:
            if state.player_watched_seat_id != target and valid(cfg.watch_start + target):
                return cfg.watch_start + target
            if not is_adjacent_to_seat(state.player_standing_slot, target):
                move = self._move_toward(state, target, mask)
                if move is not None:
                    return move

        if valid(cfg.advance_idx):
            return cfg.advance_idx
        if valid(cfg.wait_idx):
            return cfg.wait_idx
        return int(np.flatnonzero(mask)[0])

    def _pick_seat(self, state: GameState, seat_ids: list[int]) -> int:
        if state.player_watched_seat_id in seat_ids:
            return state.player_watched_seat_id
        for seat_id in seat_ids:
            if is_adjacent_to_seat(state.player_standing_slot, seat_id):
                return seat_id
        return seat_ids[0]

    def _target_seat(self, state: GameState) -> Optional[int]:
        """Seat whose revealed occupant leaves soonest before the player's stop."""
        best: Optional[tuple[int, int]] = None
        for seat in state.occupied_seats():
            occupant = seat.occupant
            if not occupant.destination_revealed:
                continue
            if occupant.destination_station_index >= state.destination_station_index:
                continue
            key = (occupant.destination_station_index, seat.seat_id)
            if best is None or key < best:
                best = key
        return best[1] if best is not None else None

    def _move_toward(self, state: GameState, seat_id: int, mask: np.ndarray) -> Optional[int]:
        """Legal move that gets closest to the seat's column, if any gets closer."""
        cfg = self.config
        column = get_seat_column(seat_id)
        here = state.player_standing_slot
        gap = abs(get_position_column(here) - column)
        candidates = [
            slot
            for slot in range(cfg.NUM_SPOTS)
            if mask[cfg.move_start + slot] and abs(get_position_column(slot) - column) < gap
        ]
        if not candidates:
            return None
        slot = min(candidates, key=lambda s: (abs(get_position_column(s) - column), abs(s - here)))
        return cfg.move_start + slot
