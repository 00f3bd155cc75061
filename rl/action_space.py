"""Action space mapping for the seat-rush RL environment.

Provides bidirectional mapping between flat action indices (for neural networks)
and structured Action objects (for the game engine).
"""

from __future__ import annotations

from typing import Optional

from engine.game_engine import Action, ActionType
from .config import ActionSpaceConfig, DEFAULT_ACTION_CONFIG


class ActionMapping:
    """Bidirectional mapping between flat action indices and Action objects.

    The layout is fixed, so the same index always means the same action
    regardless of the ride. The wait index maps to None: it hands the
    clock back to the environment without sending anything to the engine.
    """

    def __init__(self, config: ActionSpaceConfig = DEFAULT_ACTION_CONFIG):
        self.config = config

    @property
    def total_actions(self) -> int:
        return self.config.total_actions

    def index_to_action(self, action_idx: int) -> Optional[Action]:
        """Convert flat action index to structured Action object.

        Args:
            action_idx: Flat action index (0 to total_actions-1).

        Returns:
            Structured Action object, or None for the wait action.

        Raises:
            ValueError: If action_idx is out of range.
        """
        cfg = self.config
        if not 0 <= action_idx < cfg.total_actions:
            raise ValueError(f"Action index {action_idx} out of range [0, {cfg.total_actions})")

        if action_idx == cfg.advance_idx:
            return Action(ActionType.ADVANCE_STATION)

        if cfg.reveal_start <= action_idx < cfg.watch_start:
            return Action(
                ActionType.REVEAL_DESTINATION, {"seat_id": action_idx - cfg.reveal_start}
            )

        if cfg.watch_start <= action_idx < cfg.unwatch_idx:
            return Action(ActionType.SET_WATCHED_SEAT, {"seat_id": action_idx - cfg.watch_start})

        if action_idx == cfg.unwatch_idx:
            return Action(ActionType.SET_WATCHED_SEAT, {"seat_id": None})

        if cfg.move_start <= action_idx < cfg.claim_start:
            return Action(ActionType.MOVE_POSITION, {"slot": action_idx - cfg.move_start})

        if cfg.claim_start <= action_idx < cfg.tap_start:
            return Action(ActionType.CLAIM_SEAT, {"seat_id": action_idx - cfg.claim_start})

        if cfg.tap_start <= action_idx < cfg.wait_idx:
            return Action(ActionType.TAP_GRAB_SEAT, {"seat_id": action_idx - cfg.tap_start})

        # wait
        return None

    def action_to_index(self, action: Optional[Action]) -> int:
        """Convert structured Action object to flat action index.

        Args:
            action: Structured Action object, or None for wait.

        Returns:
            Flat action index (0 to total_actions-1).

        Raises:
            ValueError: If action cannot be mapped to an index.
        """
        cfg = self.config
        if action is None:
            return cfg.wait_idx

        action_type = action.action_type
        params = action.params

        if action_type == ActionType.ADVANCE_STATION:
            return cfg.advance_idx

        if action_type == ActionType.MOVE_POSITION:
            slot = params.get("slot")
            if slot is None or not 0 <= slot < cfg.NUM_SPOTS:
                raise ValueError(f"Cannot map move to slot {slot}")
            return cfg.move_start + slot

        seat_id = params.get("seat_id")
        if action_type == ActionType.SET_WATCHED_SEAT and seat_id is None:
            return cfg.unwatch_idx
        if seat_id is None or not 0 <= seat_id < cfg.NUM_SEATS:
            raise ValueError(f"Cannot map {action} to an index")

        starts = {
            ActionType.REVEAL_DESTINATION: cfg.reveal_start,
            ActionType.SET_WATCHED_SEAT: cfg.watch_start,
            ActionType.CLAIM_SEAT: cfg.claim_start,
            ActionType.TAP_GRAB_SEAT: cfg.tap_start,
        }
        if action_type not in starts:
            raise ValueError(f"Unknown action type: {action_type}")
        return starts[action_type] + seat_id

    def get_action_range(self, action_type: ActionType) -> tuple[int, int]:
        """Get the [start, end) index range covered by an action type."""
        cfg = self.config
        ranges = {
            ActionType.ADVANCE_STATION: (cfg.advance_idx, cfg.advance_idx + 1),
            ActionType.REVEAL_DESTINATION: (cfg.reveal_start, cfg.watch_start),
            ActionType.SET_WATCHED_SEAT: (cfg.watch_start, cfg.unwatch_idx + 1),
            ActionType.MOVE_POSITION: (cfg.move_start, cfg.claim_start),
            ActionType.CLAIM_SEAT: (cfg.claim_start, cfg.tap_start),
            ActionType.TAP_GRAB_SEAT: (cfg.tap_start, cfg.wait_idx),
        }
        return ranges[action_type]
