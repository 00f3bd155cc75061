"""Action masking for the seat-rush RL environment.

Generates boolean masks indicating which actions are valid in the current
game state, so maskable policies only sample legal actions.
"""

from __future__ import annotations

import numpy as np
from typing import TYPE_CHECKING

from engine.game_engine import Action
from .config import ActionSpaceConfig, DEFAULT_ACTION_CONFIG

if TYPE_CHECKING:
    from core.game_state import GameState
    from .action_space import ActionMapping


class ActionMaskGenerator:
    """Generates action masks from valid actions.

    The mask is a boolean array of shape (total_actions,) where True
    indicates the action at that index is valid in the current state.
    """

    def __init__(
        self,
        action_mapping: "ActionMapping",
        config: ActionSpaceConfig = DEFAULT_ACTION_CONFIG,
    ):
        self.action_mapping = action_mapping
        self.config = config

    def generate_mask(
        self,
        state: "GameState",
        valid_actions: list[Action],
        grab_pending: bool = False,
    ) -> np.ndarray:
        """Generate boolean mask for valid actions.

        Args:
            state: Current game state.
            valid_actions: Valid Action objects from engine.get_valid_actions().
            grab_pending: Whether a grab window is open or about to open.
                Waiting it out is always legal.

        Returns:
            Boolean numpy array of shape (total_actions,) where True = valid.

        Raises:
            RuntimeError: If a valid action has no index, or a live ride
                produced no legal action at all.
        """
        mask = np.zeros(self.config.total_actions, dtype=np.bool_)

        for action in valid_actions:
            try:
                idx = self.action_mapping.action_to_index(action)
            except ValueError as e:
                raise RuntimeError(
                    f"Valid engine action {action} has no ActionMapping entry"
                ) from e
            mask[idx] = True

        if grab_pending:
            mask[self.config.wait_idx] = True

        if not mask.any():
            if state.is_game_over():
                mask[self.config.wait_idx] = True
            else:
                raise RuntimeError("No valid actions produced for a ride still in progress")

        return mask

    def get_valid_action_indices(self, mask: np.ndarray) -> np.ndarray:
        return np.where(mask)[0]

    def count_valid_actions(self, mask: np.ndarray) -> int:
        return int(mask.sum())

    def is_action_valid(self, action_idx: int, mask: np.ndarray) -> bool:
        return 0 <= action_idx < len(mask) and bool(mask[action_idx])
