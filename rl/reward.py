"""Reward calculation for the seat-rush RL environment.

- +0.5 the first time the player sits down
- small per-step penalty so dawdling costs something
- penalty for actions the engine rejects
- Terminal: +1 for arriving seated, -1 for arriving standing
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.constants import GameStatus
from .config import RewardConfig, DEFAULT_REWARD_CONFIG

if TYPE_CHECKING:
    from core.game_state import GameState


@dataclass
class StepRewardInfo:
    """Detailed breakdown of rewards for a single step."""

    step_penalty: float = 0.0
    seated_reward: float = 0.0
    invalid_action_penalty: float = 0.0
    terminal_reward: float = 0.0

    @property
    def total(self) -> float:
        """Total reward for this step."""
        return (
            self.step_penalty
            + self.seated_reward
            + self.invalid_action_penalty
            + self.terminal_reward
        )


class RewardCalculator:
    """Calculates rewards for RL training."""

    def __init__(self, config: RewardConfig = DEFAULT_REWARD_CONFIG):
        self.config = config

    def compute_reward(
        self,
        state: "GameState",
        prev_state: "GameState",
        done: bool,
        action_valid: bool = True,
    ) -> float:
        """Compute the reward for one environment step.

        Args:
            state: Game state after the step.
            prev_state: Game state before the step.
            done: Whether the ride has ended.
            action_valid: Whether the engine accepted the action.

        Returns:
            Total reward for this step.
        """
        return self.compute_reward_detailed(state, prev_state, done, action_valid).total

    def compute_reward_detailed(
        self,
        state: "GameState",
        prev_state: "GameState",
        done: bool,
        action_valid: bool = True,
    ) -> StepRewardInfo:
        info = StepRewardInfo(step_penalty=self.config.step_penalty)

        if state.player_seated and not prev_state.player_seated:
            info.seated_reward = self.config.seated_reward

        if not action_valid:
            info.invalid_action_penalty = self.config.invalid_action_penalty

        if done:
            info.terminal_reward = self._compute_terminal_reward(state)

        return info

    def _compute_terminal_reward(self, state: "GameState") -> float:
        if state.status == GameStatus.WON:
            return self.config.win_reward
        if state.status == GameStatus.LOST:
            return self.config.loss_reward
        return 0.0
