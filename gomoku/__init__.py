"""
Gomoku service - five-in-a-row with an external move oracle.

The package holds the game state machine and the turn orchestration that
makes delegating automated moves to an untrusted oracle safe.
"""

from .board_manager import BoardManager
from .game_engine import GameEngine
from .models import (
    BOARD_SIZE,
    DIFFICULTIES,
    WIN_STREAK,
    Board,
    Difficulty,
    GameConfig,
    GameMode,
    GameState,
    GameStatus,
    GameView,
    Mark,
    Move,
    OracleRequest,
)
from .orchestrator import GameSession, reconcile_move

__version__ = "1.0.0"
__all__ = [
    "BOARD_SIZE",
    "DIFFICULTIES",
    "WIN_STREAK",
    "Board",
    "BoardManager",
    "Difficulty",
    "GameConfig",
    "GameEngine",
    "GameMode",
    "GameSession",
    "GameState",
    "GameStatus",
    "GameView",
    "Mark",
    "Move",
    "OracleRequest",
    "reconcile_move",
]
