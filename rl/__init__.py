"""Reinforcement Learning module for the seat-rush game.

This module provides a Gymnasium-compatible environment for training
RL agents to win a seat, with action masking.

Key components:
- SeatEnv: Core Gymnasium environment on a virtual clock
- ObservationEncoder: Flat observation tensor
- ActionMapping / ActionMaskGenerator: Discrete action space and masks
- RewardCalculator: Reward shaping
"""

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
from .reward import RewardCalculator, StepRewardInfo
from .seat_env import SeatEnv, make_seat_env
from .agents import RandomAgent, HeuristicAgent

__all__ = [
    # Configuration
    "ObservationConfig",
    "ActionSpaceConfig",
    "RewardConfig",
    "EnvTimingConfig",
    "DEFAULT_OBS_CONFIG",
    "DEFAULT_ACTION_CONFIG",
    "DEFAULT_REWARD_CONFIG",
    "DEFAULT_TIMING_CONFIG",
    # Observation encoding
    "ObservationEncoder",
    # Action space
    "ActionMapping",
    # Action masking
    "ActionMaskGenerator",
    # Reward
    "RewardCalculator",
    "StepRewardInfo",
    # Environment
    "SeatEnv",
    "make_seat_env",
    # Scripted agents
    "RandomAgent",
    "HeuristicAgent",
]
