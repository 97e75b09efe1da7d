"""Board-level helpers for the Gomoku service.

Boards are immutable snapshots. Every placement returns a new
:class:`Board` that shares all untouched rows with its parent, so older
snapshots stay valid for history inspection and replay.
"""
from __future__ import annotations

from typing import Iterable, Iterator, Optional

from .errors import IllegalMoveError
from .models import BOARD_SIZE, Board, Mark, Move

__all__ = ["BoardManager"]


class BoardManager:
    """Construction and inspection of board snapshots."""

    @staticmethod
    def create_board(size: int = BOARD_SIZE) -> Board:
        """Return an all-empty ``size`` x ``size`` board."""
        row = (Mark.EMPTY,) * size
        return Board(size=size, cells=(row,) * size)

    @staticmethod
    def in_bounds(board: Board, move: Move) -> bool:
        return 0 <= move.row < board.size and 0 <= move.col < board.size

    @staticmethod
    def get_mark(board: Board, move: Move) -> Mark:
        return board.cells[move.row][move.col]

    @staticmethod
    def place(board: Board, move: Move, mark: Mark) -> Board:
        """Return a new board with ``mark`` at ``move``.

        Raises:
            IllegalMoveError: if the cell is off the board or not empty.
                Callers are expected to check legality first; reaching
                this is a precondition violation.
        """
        if mark == Mark.EMPTY:
            raise ValueError("cannot place an EMPTY mark")
        if not BoardManager.in_bounds(board, move):
            raise IllegalMoveError(
                "Move is off the board", row=move.row, col=move.col
            )
        if BoardManager.get_mark(board, move) != Mark.EMPTY:
            raise IllegalMoveError(
                "Cell is already occupied", row=move.row, col=move.col
            )

        row = list(board.cells[move.row])
        row[move.col] = mark
        cells = list(board.cells)
        cells[move.row] = tuple(row)
        # Rows are already validated tuples of Mark; skip re-validation.
        return Board.model_construct(size=board.size, cells=tuple(cells))

    @staticmethod
    def iter_empty_cells(board: Board) -> Iterator[Move]:
        """Yield empty cells in row-major order."""
        for r, row in enumerate(board.cells):
            for c, cell in enumerate(row):
                if cell == Mark.EMPTY:
                    yield Move(row=r, col=c)

    @staticmethod
    def first_empty_cell(board: Board) -> Optional[Move]:
        return next(BoardManager.iter_empty_cells(board), None)

    @staticmethod
    def is_full(board: Board) -> bool:
        return all(cell != Mark.EMPTY for row in board.cells for cell in row)

    @staticmethod
    def from_moves(moves: Iterable[Move], size: int = BOARD_SIZE) -> Board:
        """Build a board by placing ``moves`` with alternating marks.

        No rules are checked besides occupancy; use
        :meth:`GameEngine.replay` when win/draw tracking matters.
        """
        board = BoardManager.create_board(size)
        for i, move in enumerate(moves):
            board = BoardManager.place(board, move, Mark.for_ply(i))
        return board

    @staticmethod
    def render(board: Board) -> str:
        """Text grid with ``index % 10`` headers for rows and columns.

        Example for a 3x3 board with one black stone::

               0 1 2
            0  . . .
            1  . X .
            2  . . .
        """
        lines = ["   " + "".join(f"{i % 10} " for i in range(board.size))]
        for r, row in enumerate(board.cells):
            lines.append(f"{r % 10}  " + "".join(f"{cell.symbol} " for cell in row))
        return "\n".join(lines) + "\n"
