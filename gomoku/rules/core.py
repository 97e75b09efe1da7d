"""Stateless five-in-a-row rules.

Win detection is incremental: it only inspects the four axes through the
most recently placed stone. It must be called once per placement, right
after that placement, with the placed stone's own mark. Draw detection
must only run after the win check failed for the same move, so that a
winning move on the last empty cell counts as a win.
"""

from __future__ import annotations

from typing import Tuple

from ..board_manager import BoardManager
from ..models import WIN_STREAK, Board, Mark, Move

# (d_row, d_col): horizontal, vertical, diagonal \, diagonal /
DIRECTIONS: Tuple[Tuple[int, int], ...] = ((0, 1), (1, 0), (1, 1), (1, -1))


def is_legal(board: Board, move: Move) -> bool:
    """True iff ``move`` is on the board and its cell is empty."""
    if not BoardManager.in_bounds(board, move):
        return False
    return BoardManager.get_mark(board, move) == Mark.EMPTY


def _walk(
    board: Board, move: Move, mark: Mark, d_row: int, d_col: int
) -> list[Move]:
    """Cells holding ``mark`` beyond ``move`` in one direction, nearest first."""
    cells: list[Move] = []
    r, c = move.row + d_row, move.col + d_col
    while 0 <= r < board.size and 0 <= c < board.size and board.cells[r][c] == mark:
        cells.append(Move(row=r, col=c))
        r += d_row
        c += d_col
    return cells


def count_run(
    board: Board, move: Move, mark: Mark, direction: Tuple[int, int]
) -> int:
    """Length of the contiguous ``mark`` run through ``move`` along one axis.

    The forward and backward halves are summed together with the stone
    at ``move`` itself.
    """
    d_row, d_col = direction
    forward = _walk(board, move, mark, d_row, d_col)
    backward = _walk(board, move, mark, -d_row, -d_col)
    return 1 + len(forward) + len(backward)


def check_win(
    board: Board, last_move: Move, mark: Mark, win_streak: int = WIN_STREAK
) -> bool:
    """True iff the stone at ``last_move`` completes ``win_streak`` in a row."""
    return any(
        count_run(board, last_move, mark, direction) >= win_streak
        for direction in DIRECTIONS
    )


def winning_line(
    board: Board, last_move: Move, mark: Mark, win_streak: int = WIN_STREAK
) -> Tuple[Move, ...]:
    """Cells of the first winning axis through ``last_move``, in board order.

    Returns an empty tuple when the move did not win.
    """
    for d_row, d_col in DIRECTIONS:
        forward = _walk(board, last_move, mark, d_row, d_col)
        backward = _walk(board, last_move, mark, -d_row, -d_col)
        if 1 + len(forward) + len(backward) >= win_streak:
            return tuple(reversed(backward)) + (last_move,) + tuple(forward)
    return ()


def check_draw(board: Board) -> bool:
    """True iff no empty cell remains."""
    return BoardManager.is_full(board)
