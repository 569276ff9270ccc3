"""
Landlord: a turn-based property-trading board game engine.

Deterministic rules engine with a text console session around it.
"""

from .board import Board
from .config import GameConfig
from .controller import GameController
from .game import GameState, create_game
from .persistence import SaveStore
from .player import PlayerState
from .turn import TurnEngine, TurnOutcome

__all__ = [
    "Board",
    "GameConfig",
    "GameController",
    "GameState",
    "create_game",
    "SaveStore",
    "PlayerState",
    "TurnEngine",
    "TurnOutcome",
]
