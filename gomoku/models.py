"""
Pydantic Models for Gomoku Game State
Board snapshots, moves, game state, session configuration and render views
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


BOARD_SIZE = 15
WIN_STREAK = 5


class Mark(int, Enum):
    """Cell occupancy. BLACK moves first."""
    EMPTY = 0
    BLACK = 1
    WHITE = 2

    @property
    def opponent(self) -> "Mark":
        if self is Mark.BLACK:
            return Mark.WHITE
        if self is Mark.WHITE:
            return Mark.BLACK
        raise ValueError("EMPTY has no opponent")

    @property
    def symbol(self) -> str:
        return {Mark.EMPTY: ".", Mark.BLACK: "X", Mark.WHITE: "O"}[self]

    @property
    def label(self) -> str:
        return {Mark.EMPTY: "Empty", Mark.BLACK: "Black", Mark.WHITE: "White"}[self]

    @staticmethod
    def for_ply(index: int) -> "Mark":
        """Mark that makes the move at ``index`` in the history."""
        return Mark.BLACK if index % 2 == 0 else Mark.WHITE


class GameStatus(str, Enum):
    """Game status enumeration"""
    IN_PROGRESS = "in_progress"
    WON = "won"
    DRAW = "draw"


class GameMode(str, Enum):
    """Human vs human or human vs oracle"""
    PVP = "pvp"
    PVE = "pve"


class Move(BaseModel):
    """Board coordinate, 0-indexed.

    Range is not constrained here: an out-of-range coordinate is a
    legality problem handled by the rules engine.
    """
    model_config = ConfigDict(frozen=True)

    row: int
    col: int


class Board(BaseModel):
    """Immutable square grid of marks"""
    model_config = ConfigDict(frozen=True)

    size: int = Field(gt=0)
    cells: Tuple[Tuple[Mark, ...], ...]

    @model_validator(mode="after")
    def _check_square(self) -> "Board":
        if len(self.cells) != self.size or any(
            len(row) != self.size for row in self.cells
        ):
            raise ValueError(f"board must be {self.size}x{self.size}")
        return self

    def to_lists(self) -> list[list[int]]:
        """Plain nested-list form (0 empty, 1 black, 2 white)."""
        return [[int(cell) for cell in row] for row in self.cells]


class GameState(BaseModel):
    """Board, history and status; always replayable from history"""
    model_config = ConfigDict(frozen=True)

    board: Board
    history: Tuple[Move, ...] = ()
    status: GameStatus = GameStatus.IN_PROGRESS
    winner: Optional[Mark] = None

    @property
    def current_player(self) -> Mark:
        """Side to move; frozen on the last mover once the game ends."""
        if self.status != GameStatus.IN_PROGRESS and self.history:
            return Mark.for_ply(len(self.history) - 1)
        return Mark.for_ply(len(self.history))

    @property
    def last_move(self) -> Optional[Move]:
        return self.history[-1] if self.history else None

    @property
    def is_terminal(self) -> bool:
        return self.status != GameStatus.IN_PROGRESS


class Difficulty(BaseModel):
    """Oracle behaviour preset"""
    model_config = ConfigDict(frozen=True)

    name: str
    label: str
    model: str
    thinking_budget: int = Field(0, ge=0)


DIFFICULTIES: Tuple[Difficulty, ...] = (
    Difficulty(name="flash", label="Easy (Flash)", model="gemini-2.5-flash", thinking_budget=0),
    # Thinking budget makes the harder preset slower but stronger.
    Difficulty(name="pro", label="Hard (Pro)", model="gemini-3-pro-preview", thinking_budget=4096),
)
DEFAULT_DIFFICULTY = DIFFICULTIES[0]


def get_difficulty(name: str) -> Optional[Difficulty]:
    """Look up a preset by name."""
    for difficulty in DIFFICULTIES:
        if difficulty.name == name:
            return difficulty
    return None


class GameConfig(BaseModel):
    """Session configuration; any change starts a fresh game"""
    model_config = ConfigDict(frozen=True)

    mode: GameMode = GameMode.PVE
    difficulty: Difficulty = DEFAULT_DIFFICULTY
    ai_mark: Mark = Mark.WHITE
    board_size: int = Field(BOARD_SIZE, ge=WIN_STREAK)

    @model_validator(mode="after")
    def _check_ai_mark(self) -> "GameConfig":
        if self.ai_mark == Mark.EMPTY:
            raise ValueError("ai_mark must be BLACK or WHITE")
        return self


class OracleRequest(BaseModel):
    """Everything the oracle needs for one automated move"""
    model_config = ConfigDict(frozen=True)

    board: Board
    ai_mark: Mark
    opponent_mark: Mark
    board_size: int
    model: str
    thinking_budget: int = 0


class GameView(BaseModel):
    """Render snapshot consumed by an external board renderer"""

    board: list[list[int]]
    board_size: int
    current_player: Mark
    status: GameStatus
    winner: Optional[Mark] = None
    last_move: Optional[Move] = None
    winning_line: list[Move] = Field(default_factory=list)
    input_disabled: bool
    ai_thinking: bool
    message: str
    error_message: Optional[str] = None
    notice: Optional[str] = None
    mode: GameMode
    difficulty: str
    ai_mark: Mark
    move_count: int
    generation: int
