"""Configuration constants for the seat-rush RL environment.

This module defines all configuration values for observation encoding,
action space sizing, reward shaping and environment timing.
"""

from dataclasses import dataclass
from typing import ClassVar

from core.constants import TOTAL_SEATS, TOTAL_STANDING_SPOTS, Difficulty


@dataclass(frozen=True)
class ObservationConfig:
    """Configuration for observation vector dimensions.

    The observation is a flat float32 vector in [0, 1] made of per-seat,
    per-standing-spot, grab window and global features.
    """

    NUM_SEATS: int = TOTAL_SEATS
    NUM_SPOTS: int = TOTAL_STANDING_SPOTS
    DIFFICULTIES: int = len(Difficulty)

    # Reaction times are divided by this before encoding
    REACTION_TIME_SCALE_MS: float = 1000.0

    # Feature dimensions per component
    SEAT_FEATURE_DIM: ClassVar[int] = 5
    SPOT_FEATURE_DIM: ClassVar[int] = 3

    @property
    def seat_features_size(self) -> int:
        return self.NUM_SEATS * self.SEAT_FEATURE_DIM

    @property
    def spot_features_size(self) -> int:
        return self.NUM_SPOTS * self.SPOT_FEATURE_DIM

    @property
    def watch_features_size(self) -> int:
        """One-hot of the seat the player watches."""
        return self.NUM_SEATS

    @property
    def grab_features_size(self) -> int:
        """Active flag, open seats, remaining fraction, tapped flag."""
        return 1 + self.NUM_SEATS + 1 + 1

    @property
    def global_features_size(self) -> int:
        """Progress, stops left, seated, difficulty one-hot, animating, grab pending."""
        return 1 + 1 + 1 + self.DIFFICULTIES + 1 + 1

    @property
    def total_observation_dim(self) -> int:
        return (
            self.seat_features_size
            + self.spot_features_size
            + self.watch_features_size
            + self.grab_features_size
            + self.global_features_size
        )


@dataclass(frozen=True)
class ActionSpaceConfig:
    """Layout of the flat discrete action space.

    Index ranges, in order: advance, reveal per seat, watch per seat,
    unwatch, move per spot, claim per seat, tap per seat, wait.
    """

    NUM_SEATS: int = TOTAL_SEATS
    NUM_SPOTS: int = TOTAL_STANDING_SPOTS

    @property
    def advance_idx(self) -> int:
        return 0

    @property
    def reveal_start(self) -> int:
        return self.advance_idx + 1

    @property
    def watch_start(self) -> int:
        return self.reveal_start + self.NUM_SEATS

    @property
    def unwatch_idx(self) -> int:
        return self.watch_start + self.NUM_SEATS

    @property
    def move_start(self) -> int:
        return self.unwatch_idx + 1

    @property
    def claim_start(self) -> int:
        return self.move_start + self.NUM_SPOTS

    @property
    def tap_start(self) -> int:
        return self.claim_start + self.NUM_SEATS

    @property
    def wait_idx(self) -> int:
        return self.tap_start + self.NUM_SEATS

    @property
    def total_actions(self) -> int:
        """Total number of discrete actions in the unified action space."""
        return self.wait_idx + 1


@dataclass
class RewardConfig:
    """Configuration for reward calculation."""

    win_reward: float = 1.0
    loss_reward: float = -1.0
    seated_reward: float = 0.5
    step_penalty: float = -0.01
    invalid_action_penalty: float = -0.1


@dataclass(frozen=True)
class EnvTimingConfig:
    """How the environment drives the engine's virtual clock.

    Attributes:
        frame_ms: Clock step between engine updates.
        player_reaction_ms: Delay between a grab window opening and the
            agent's tap landing.
        max_steps: Episode truncation limit.
        max_frames_per_step: Frame budget for running out one step.
    """

    frame_ms: float = 16.0
    player_reaction_ms: float = 350.0
    max_steps: int = 500
    max_frames_per_step: int = 2000


# Default configuration instances
DEFAULT_OBS_CONFIG = ObservationConfig()
DEFAULT_ACTION_CONFIG = ActionSpaceConfig()
DEFAULT_REWARD_CONFIG = RewardConfig()
DEFAULT_TIMING_CONFIG = EnvTimingConfig()
