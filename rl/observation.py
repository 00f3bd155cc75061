"""Observation encoding for the seat-rush RL environment.

Encodes the GameState, plus the engine's grab window and animation
flags, into a flat numpy array suitable for neural network input.
"""

from __future__ import annotations

import numpy as np
from typing import Optional

from core.constants import Difficulty
from core.game_state import GameState
from engine.grab_timer import GrabSession
from .config import ObservationConfig, DEFAULT_OBS_CONFIG


class ObservationEncoder:
    """Encodes GameState into a flat observation tensor.

    The observation is structured as follows:
    1. Seat features [NUM_SEATS x SEAT_FEATURE_DIM]
    2. Standing spot features [NUM_SPOTS x SPOT_FEATURE_DIM]
    3. Watched seat one-hot [NUM_SEATS]
    4. Grab window [1 + NUM_SEATS + 2]
    5. Global state

    All features are normalized to [0, 1]. Hidden destinations encode
    as zeros so the agent only sees what the player has revealed.
    """

    def __init__(self, config: ObservationConfig = DEFAULT_OBS_CONFIG):
        self.config = config
        self._difficulties = list(Difficulty)

    @property
    def observation_dim(self) -> int:
        """Total dimension of the flat observation tensor."""
        return self.config.total_observation_dim

    def encode(
        self,
        state: GameState,
        grab_session: Optional[GrabSession] = None,
        animating: bool = False,
        grab_pending: bool = False,
    ) -> np.ndarray:
        """Encode the ride into a flat observation tensor.

        Args:
            state: The GameState to encode.
            grab_session: The engine's current grab session, if any.
            animating: Whether a station transition is playing.
            grab_pending: Whether a grab window is open or about to open.

        Returns:
            Flat numpy array of shape (total_observation_dim,) with dtype float32.
        """
        obs = np.zeros(self.config.total_observation_dim, dtype=np.float32)

        offset = 0
        offset = self._encode_seats(state, obs, offset)
        offset = self._encode_spots(state, obs, offset)
        offset = self._encode_watch(state, obs, offset)
        offset = self._encode_grab(grab_session, obs, offset)
        offset = self._encode_global(state, animating, grab_pending, obs, offset)

        return obs

    def _encode_seats(self, state: GameState, obs: np.ndarray, offset: int) -> int:
        """Encode seat features.

        Features per seat:
        - occupied (by a passenger or the player)
        - is the player's seat
        - destination revealed
        - revealed passenger leaves before the player's destination
        - revealed destination / last station
        """
        last = max(1, state.last_station_index)
        for seat in state.seats[: self.config.NUM_SEATS]:
            base = offset + seat.seat_id * self.config.SEAT_FEATURE_DIM
            is_player_seat = state.player_seated and state.player_seat_id == seat.seat_id
            occupant = seat.occupant

            obs[base] = 1.0 if (occupant is not None or is_player_seat) else 0.0
            obs[base + 1] = 1.0 if is_player_seat else 0.0
            if occupant is not None and occupant.destination_revealed:
                obs[base + 2] = 1.0
                if occupant.destination_station_index < state.destination_station_index:
                    obs[base + 3] = 1.0
                obs[base + 4] = occupant.destination_station_index / last

        return offset + self.config.seat_features_size

    def _encode_spots(self, state: GameState, obs: np.ndarray, offset: int) -> int:
        """Encode standing spot features: player here, competitor here, competitor speed."""
        dim = self.config.SPOT_FEATURE_DIM

        if not state.player_seated:
            obs[offset + state.player_standing_slot * dim] = 1.0

        for competitor in state.standing_competitors:
            slot = competitor.position_slot
            if not 0 <= slot < self.config.NUM_SPOTS:
                continue
            base = offset + slot * dim
            obs[base + 1] = 1.0
            obs[base + 2] = min(
                1.0, competitor.base_reaction_time_ms / self.config.REACTION_TIME_SCALE_MS
            )

        return offset + self.config.spot_features_size

    def _encode_watch(self, state: GameState, obs: np.ndarray, offset: int) -> int:
        watched = state.player_watched_seat_id
        if watched is not None and 0 <= watched < self.config.NUM_SEATS:
            obs[offset + watched] = 1.0
        return offset + self.config.watch_features_size

    def _encode_grab(
        self, session: Optional[GrabSession], obs: np.ndarray, offset: int
    ) -> int:
        if session is not None and session.is_active:
            obs[offset] = 1.0
            for seat_id in session.open_seat_ids:
                if 0 <= seat_id < self.config.NUM_SEATS:
                    obs[offset + 1 + seat_id] = 1.0
            if session.window_duration_ms > 0:
                fraction = session.remaining_ms / session.window_duration_ms
                obs[offset + 1 + self.config.NUM_SEATS] = float(np.clip(fraction, 0.0, 1.0))
            obs[offset + 2 + self.config.NUM_SEATS] = 1.0 if session.has_tapped else 0.0

        return offset + self.config.grab_features_size

    def _encode_global(
        self,
        state: GameState,
        animating: bool,
        grab_pending: bool,
        obs: np.ndarray,
        offset: int,
    ) -> int:
        """Encode ride progress, seated flag, difficulty and engine flags."""
        last = max(1, state.last_station_index)

        obs[offset] = state.current_station_index / last
        obs[offset + 1] = min(1.0, state.stops_remaining() / last)
        obs[offset + 2] = 1.0 if state.player_seated else 0.0

        difficulty_idx = self._difficulties.index(state.difficulty)
        obs[offset + 3 + difficulty_idx] = 1.0

        flags = offset + 3 + self.config.DIFFICULTIES
        obs[flags] = 1.0 if animating else 0.0
        obs[flags + 1] = 1.0 if grab_pending else 0.0

        return offset + self.config.global_features_size
