"""Qt integration for the seat-rush game engine.

Provides a controller that runs the engine on the Qt event loop and
publishes its state to a view through signals.
"""

from .game_controller import GameController, FRAME_INTERVAL_MS

__all__ = [
    "GameController",
    "FRAME_INTERVAL_MS",
]
