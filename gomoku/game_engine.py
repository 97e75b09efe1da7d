"""Core game engine for the Gomoku service.

The engine is a set of pure transitions over frozen :class:`GameState`
values. A transition either returns a new, fully consistent state or
raises; the input state is never touched. At every observable point the
board equals the board obtained by replaying ``history`` on an empty
board, and ``history[i]`` was played by BLACK iff ``i`` is even.

Status machine::

    IN_PROGRESS --win--> WON     (terminal)
    IN_PROGRESS --full-> DRAW    (terminal)
    any         --reset-> IN_PROGRESS (fresh game)
"""

from __future__ import annotations

import logging
from typing import Iterable

from .board_manager import BoardManager
from .errors import (
    GameOverError,
    IllegalMoveError,
    NotYourTurnError,
    UndoNotAllowedError,
)
from .models import (
    BOARD_SIZE,
    GameConfig,
    GameMode,
    GameState,
    GameStatus,
    Mark,
    Move,
)
from .rules import check_draw, check_win, is_legal, winning_line

logger = logging.getLogger(__name__)

__all__ = ["GameEngine"]


class GameEngine:
    """State transitions for a single five-in-a-row game.

    - ``apply_move`` is the only way stones reach the board, for human and
      automated players alike.
    - ``undo`` rebuilds state from a truncated history instead of editing
      the board in place.
    """

    @staticmethod
    def create_initial_state(board_size: int = BOARD_SIZE) -> GameState:
        """Empty board, empty history, BLACK to move."""
        return GameState(board=BoardManager.create_board(board_size))

    @staticmethod
    def reset(config: GameConfig) -> GameState:
        """Fresh game for ``config``. Never partial."""
        return GameEngine.create_initial_state(config.board_size)

    @staticmethod
    def apply_move(game_state: GameState, move: Move, mark: Mark) -> GameState:
        """
        Place ``mark`` at ``move`` and return the resulting state.

        Win is checked before draw, so filling the last cell with a
        winning stone is a win.

        Args:
            game_state: The current game state.
            move: Target cell.
            mark: Mark of the player making the move.

        Raises:
            GameOverError: the game already ended.
            NotYourTurnError: ``mark`` is not the side to move.
            IllegalMoveError: the cell is off the board or occupied.
        """
        if game_state.status != GameStatus.IN_PROGRESS:
            raise GameOverError(
                "Game is over",
                context={"status": game_state.status.value},
            )

        if mark != game_state.current_player:
            raise NotYourTurnError(
                "Not this player's turn",
                expected=game_state.current_player.label,
                actual=mark.label,
            )

        if not is_legal(game_state.board, move):
            reason = (
                "Move is off the board"
                if not BoardManager.in_bounds(game_state.board, move)
                else "Cell is already occupied"
            )
            raise IllegalMoveError(reason, row=move.row, col=move.col)

        board = BoardManager.place(game_state.board, move, mark)
        history = game_state.history + (move,)

        if check_win(board, move, mark):
            logger.info(
                "%s wins with move (%d, %d) after %d moves",
                mark.label, move.row, move.col, len(history),
            )
            return GameState(
                board=board,
                history=history,
                status=GameStatus.WON,
                winner=mark,
            )

        if check_draw(board):
            logger.info("Board full after %d moves; draw", len(history))
            return GameState(board=board, history=history, status=GameStatus.DRAW)

        return GameState(board=board, history=history)

    @staticmethod
    def replay(moves: Iterable[Move], board_size: int = BOARD_SIZE) -> GameState:
        """Rebuild a state by applying ``moves`` in order from an empty board."""
        state = GameEngine.create_initial_state(board_size)
        for i, move in enumerate(moves):
            state = GameEngine.apply_move(state, move, Mark.for_ply(i))
        return state

    @staticmethod
    def undo_steps(mode: GameMode, history_length: int) -> int:
        """Number of moves one undo removes.

        PvP takes back the last move. PvE takes back the automated reply
        and the human move before it, or everything when fewer than two
        moves exist, so that control returns to the human.
        """
        if mode == GameMode.PVE:
            return min(2, history_length)
        return min(1, history_length)

    @staticmethod
    def undo(game_state: GameState, mode: GameMode) -> GameState:
        """
        Take back moves according to ``mode`` and return the rebuilt state.

        Raises:
            UndoNotAllowedError: the game is over or nothing was played.
        """
        if game_state.status != GameStatus.IN_PROGRESS:
            raise UndoNotAllowedError(
                "Cannot undo a finished game",
                context={"status": game_state.status.value},
            )
        if not game_state.history:
            raise UndoNotAllowedError("Nothing to undo")

        steps = GameEngine.undo_steps(mode, len(game_state.history))
        kept = game_state.history[: len(game_state.history) - steps]
        # Replaying also resets status and winner.
        return GameEngine.replay(kept, game_state.board.size)

    @staticmethod
    def winning_line(game_state: GameState) -> tuple[Move, ...]:
        """Cells of the winning run, or empty when nobody has won."""
        if game_state.status != GameStatus.WON or game_state.last_move is None:
            return ()
        return winning_line(
            game_state.board, game_state.last_move, game_state.winner
        )
