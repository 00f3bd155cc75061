"""Gymnasium environment for the seat-rush game.

Provides a single-agent interface for RL training with:
- A virtual clock, so animations and grab windows cost no wall time
- Decision points only where the player has a real choice
- Action masking for legal move enforcement
- Compatible with maskable policies via action_masks()
"""

from __future__ import annotations

import logging
from typing import Optional, Any, Tuple, SupportsFloat, Union

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from core.constants import Difficulty, Line
from core.game_state import GameState
from engine.clock import ManualClock
from engine.game_engine import GameEngine, ActionType

from .config import (
    ObservationConfig,
    ActionSpaceConfig,
    RewardConfig,
    EnvTimingConfig,
    DEFAULT_OBS_CONFIG,
    DEFAULT_ACTION_CONFIG,
    DEFAULT_REWARD_CONFIG,
    DEFAULT_TIMING_CONFIG,
)
from .observation import ObservationEncoder
from .action_space import ActionMapping
from .action_masking import ActionMaskGenerator
from .reward import RewardCalculator

logger = logging.getLogger(__name__)


class SeatEnv(gym.Env):
    """Gymnasium environment for one seat-rush ride.

    Each step the agent picks one action; the environment then runs the
    engine's virtual clock forward until the next decision point:
    - the ride is over
    - a grab window is open and the player may still tap
    - the train is idle at a station with no grab pending

    Tapping lands player_reaction_ms after the window opened. The wait
    action lets a grab window run out without tapping.

    Attributes:
        observation_space: Box space for flat observation tensor.
        action_space: Discrete space for all possible actions.
        metadata: Environment metadata including render modes.
    """

    metadata = {"render_modes": ["human", "ansi"], "render_fps": 1}

    def __init__(
        self,
        difficulty: Union[Difficulty, str, None] = None,
        line: Union[Line, str, None] = None,
        boarding_station_index: int = 0,
        destination_station_index: Optional[int] = None,
        render_mode: Optional[str] = None,
        obs_config: ObservationConfig = DEFAULT_OBS_CONFIG,
        action_config: ActionSpaceConfig = DEFAULT_ACTION_CONFIG,
        reward_config: RewardConfig = DEFAULT_REWARD_CONFIG,
        timing_config: EnvTimingConfig = DEFAULT_TIMING_CONFIG,
    ):
        """Initialize the environment.

        Args:
            difficulty: Difficulty of every ride (default: normal).
            line: Line to ride (default: short).
            boarding_station_index: Station where the player boards.
            destination_station_index: Station where the player gets off
                (default: last station of the line).
            render_mode: Rendering mode ("human", "ansi", or None).
            obs_config: Observation encoding configuration.
            action_config: Action space configuration.
            reward_config: Reward calculation configuration.
            timing_config: Virtual clock configuration.
        """
        super().__init__()

        self.difficulty = difficulty
        self.line = line
        self.boarding_station_index = boarding_station_index
        self.destination_station_index = destination_station_index
        self.render_mode = render_mode

        self._obs_config = obs_config
        self._action_config = action_config
        self._reward_config = reward_config
        self._timing = timing_config

        self._clock = ManualClock()
        self._engine = GameEngine(clock=self._clock)
        self._initialized = False
        self._obs_encoder = ObservationEncoder(obs_config)
        self._action_mapping = ActionMapping(action_config)
        self._mask_generator = ActionMaskGenerator(self._action_mapping, action_config)
        self._reward_calculator = RewardCalculator(reward_config)

        self._prev_state: Optional[GameState] = None
        self._step_count: int = 0

        self.observation_space = spaces.Box(
            low=0.0,
            high=1.0,
            shape=(obs_config.total_observation_dim,),
            dtype=np.float32,
        )
        self.action_space = spaces.Discrete(action_config.total_actions)

    @property
    def engine(self) -> GameEngine:
        return self._engine

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[dict] = None,
    ) -> Tuple[np.ndarray, dict]:
        """Reset the environment to a new ride.

        Args:
            seed: Random seed for reproducibility.
            options: May override 'boarding_station_index' and
                'destination_station_index' for this ride.

        Returns:
            Tuple of (observation, info).
        """
        super().reset(seed=seed)
        options = options or {}

        ride_seed = int(self.np_random.integers(0, 2**31 - 1))
        self._engine.reset(
            options.get("boarding_station_index", self.boarding_station_index),
            options.get("destination_station_index", self.destination_station_index),
            difficulty=self.difficulty,
            line=self.line,
            seed=ride_seed,
        )
        self._initialized = True
        self._step_count = 0
        self._prev_state = self._engine.state

        return self._get_observation(), self._build_info()

    def step(
        self,
        action: int,
    ) -> Tuple[np.ndarray, SupportsFloat, bool, bool, dict]:
        """Execute one step in the environment.

        Args:
            action: Flat action index (0 to total_actions-1).

        Returns:
            Tuple of (observation, reward, terminated, truncated, info).
        """
        if not self._initialized:
            raise RuntimeError("Environment not initialized. Call reset() first.")

        prev_state = self._prev_state
        action_obj = self._action_mapping.index_to_action(int(action))
        self._step_count += 1

        error: Optional[str] = None
        if action_obj is None:
            if self._engine.is_grab_pending():
                self._run_out_grab()
            elif not self._engine.is_game_over():
                error = "Nothing to wait for"
        else:
            if action_obj.action_type == ActionType.TAP_GRAB_SEAT:
                self._wait_for_reaction()
            result = self._engine.step(action_obj)
            if not result.success:
                error = result.info.get("error", "Unknown error")

        if error is None:
            self._run_until_decision()

        state = self._engine.state
        terminated = self._engine.is_game_over()
        truncated = not terminated and self._step_count >= self._timing.max_steps

        reward_info = self._reward_calculator.compute_reward_detailed(
            state, prev_state, terminated, action_valid=error is None
        )
        self._prev_state = state

        info = self._build_info()
        info["reward_breakdown"] = reward_info.__dict__
        if error is not None:
            info["error"] = error
            info["invalid_action"] = True

        return self._get_observation(), float(reward_info.total), terminated, truncated, info

    # -------------------------------------------------------------------------
    # Virtual clock
    # -------------------------------------------------------------------------

    def _tick(self) -> None:
        self._clock.advance(self._timing.frame_ms)
        self._engine.update()

    def _at_decision_point(self) -> bool:
        engine = self._engine
        if engine.is_animating():
            return False
        if engine.is_game_over():
            return True
        if engine.grab_session.is_active:
            return bool(engine.get_valid_actions())
        return not engine.is_grab_pending()

    def _run_until_decision(self) -> None:
        for _ in range(self._timing.max_frames_per_step):
            if self._at_decision_point():
                return
            self._tick()
        logger.warning("No decision point reached within %d frames", self._timing.max_frames_per_step)

    def _run_out_grab(self) -> None:
        for _ in range(self._timing.max_frames_per_step):
            if not self._engine.is_grab_pending():
                return
            self._tick()
        logger.warning("Grab window still open after %d frames", self._timing.max_frames_per_step)

    def _wait_for_reaction(self) -> None:
        session = self._engine.grab_session
        if not session.is_active:
            return
        target = session.started_at_ms + self._timing.player_reaction_ms
        if target > self._clock.now:
            self._clock.set(target)

    # -------------------------------------------------------------------------
    # Observation, masks and info
    # -------------------------------------------------------------------------

    def action_masks(self) -> np.ndarray:
        """Get action mask for maskable policies.

        Returns:
            Boolean array of shape (total_actions,) where True = valid action.
        """
        if not self._initialized:
            return np.zeros(self._action_config.total_actions, dtype=np.bool_)

        return self._mask_generator.generate_mask(
            self._engine.state,
            self._engine.get_valid_actions(),
            grab_pending=self._engine.is_grab_pending(),
        )

    def _get_observation(self) -> np.ndarray:
        if not self._initialized:
            return np.zeros(self._obs_config.total_observation_dim, dtype=np.float32)

        return self._obs_encoder.encode(
            self._engine.state,
            grab_session=self._engine.grab_session,
            animating=self._engine.is_animating(),
            grab_pending=self._engine.is_grab_pending(),
        )

    def _build_info(self) -> dict[str, Any]:
        if not self._initialized:
            return {}

        state = self._engine.state
        return {
            "station": state.current_station_index,
            "destination": state.destination_station_index,
            "status": state.status.value,
            "player_seated": state.player_seated,
            "grab_active": self._engine.grab_session.is_active,
            "valid_action_count": int(np.sum(self.action_masks())),
            "clock_ms": self._clock.now,
        }

    def render(self) -> Optional[str]:
        """Render the current state.

        Returns:
            String representation if render_mode is "ansi", None otherwise.
        """
        if not self._initialized:
            return None

        if self.render_mode == "human":
            print(self._engine.state)
            return None
        elif self.render_mode == "ansi":
            return str(self._engine.state)
        return None

    def close(self) -> None:
        self._engine.close()

    def get_state(self) -> Optional[GameState]:
        """Get the current game state (for debugging)."""
        if not self._initialized:
            return None
        return self._engine.state


def make_seat_env(
    difficulty: Union[Difficulty, str, None] = None,
    line: Union[Line, str, None] = None,
    render_mode: Optional[str] = None,
    **kwargs,
) -> SeatEnv:
    """Factory function to create a SeatEnv.

    Args:
        difficulty: Difficulty of every ride.
        line: Line to ride.
        render_mode: Rendering mode.
        **kwargs: Additional arguments passed to SeatEnv.

    Returns:
        Configured SeatEnv instance.
    """
    return SeatEnv(difficulty=difficulty, line=line, render_mode=render_mode, **kwargs)
