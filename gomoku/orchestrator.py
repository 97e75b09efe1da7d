"""Turn orchestration for a single Gomoku game.

:class:`GameSession` owns the game state together with the session
configuration and drives automated turns through a move oracle.

Automated turn protocol:

1. Enter the pending sub-state; human moves and undo are refused.
2. Ask the oracle with a board snapshot, the AI mark and the difficulty.
3. Validate the answer with the same legality check as human moves.
4. Replace an off-board or occupied answer with the first empty cell in
   row-major order.
5. Apply through :meth:`GameEngine.apply_move` like any other move.
6. Leave the pending sub-state, whether the call succeeded or not.
7. On oracle failure apply nothing and surface a recoverable error.

The oracle call is the only suspension point. Each call is tied to the
session generation; ``reset`` and every configuration change bump the
generation, so a result that arrives afterwards is discarded instead of
being applied to the unrelated new game.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional, Union

from .board_manager import BoardManager
from .config import DEFAULT_AI_MOVE_DELAY_MS
from .errors import (
    ConfigurationError,
    GomokuError,
    InvalidMoveError,
    OracleError,
    RulesViolationError,
    UndoNotAllowedError,
)
from .ai.base import BaseOracle
from .game_engine import GameEngine
from .metrics import GAME_OUTCOMES, MOVES_REJECTED, observe_oracle_result
from .models import (
    Board,
    Difficulty,
    GameConfig,
    GameMode,
    GameStatus,
    GameView,
    Mark,
    Move,
    OracleRequest,
    get_difficulty,
)
from .rules import is_legal

logger = logging.getLogger(__name__)

__all__ = ["AI_FAILURE_MESSAGE", "GameSession", "reconcile_move"]

AI_FAILURE_MESSAGE = "AI move failed. Retry or undo."


def reconcile_move(board: Board, move: Move) -> tuple[Optional[Move], bool]:
    """Turn an untrusted oracle answer into a playable move.

    Returns:
        ``(move, used_fallback)``. ``move`` is None only on a full board.
    """
    if is_legal(board, move):
        return move, False

    fallback = BoardManager.first_empty_cell(board)
    logger.warning(
        "Oracle chose unplayable cell (%d, %d); falling back to %s",
        move.row,
        move.col,
        f"({fallback.row}, {fallback.col})" if fallback else "nothing",
    )
    return fallback, True


class GameSession:
    """One game plus its mode, difficulty and AI side.

    Every public action returns True when applied and False when it was
    rejected as a no-op. Rejections never change the game state.
    """

    def __init__(
        self,
        oracle: BaseOracle,
        config: Optional[GameConfig] = None,
        ai_move_delay_ms: int = DEFAULT_AI_MOVE_DELAY_MS,
        preflight_message: Optional[str] = None,
    ):
        self.oracle = oracle
        self.config = config or GameConfig()
        self.ai_move_delay_ms = ai_move_delay_ms
        self.state = GameEngine.reset(self.config)
        self.generation = 0
        self.error_message: Optional[str] = None
        self.notice: Optional[str] = None
        self._preflight_message = preflight_message
        self._pending = False
        self._ai_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_pending(self) -> bool:
        """True while an automated move is outstanding."""
        return self._pending

    @property
    def input_disabled(self) -> bool:
        return self.state.is_terminal or self._pending

    def is_ai_turn(self) -> bool:
        return (
            self.config.mode == GameMode.PVE
            and not self.state.is_terminal
            and self.state.current_player == self.config.ai_mark
        )

    def status_message(self) -> str:
        state = self.state
        pve = self.config.mode == GameMode.PVE
        if state.status == GameStatus.WON:
            if pve and state.winner == self.config.ai_mark:
                return "You lost!"
            return f"{state.winner.label} wins!"
        if state.status == GameStatus.DRAW:
            return "Draw!"
        if pve:
            return "Waiting for AI" if self.is_ai_turn() else "Your turn"
        return f"{state.current_player.label} to move"

    def view(self) -> GameView:
        """Snapshot for the renderer."""
        state = self.state
        return GameView(
            board=state.board.to_lists(),
            board_size=state.board.size,
            current_player=state.current_player,
            status=state.status,
            winner=state.winner,
            last_move=state.last_move,
            winning_line=list(GameEngine.winning_line(state)),
            input_disabled=self.input_disabled,
            ai_thinking=self._pending,
            message=self.status_message(),
            error_message=self.error_message or self._preflight_message,
            notice=self.notice,
            mode=self.config.mode,
            difficulty=self.config.difficulty.name,
            ai_mark=self.config.ai_mark,
            move_count=len(state.history),
            generation=self.generation,
        )

    # ------------------------------------------------------------------
    # Human actions
    # ------------------------------------------------------------------

    def click_cell(self, row: int, col: int) -> bool:
        """Play the side to move at (row, col)."""
        self.notice = None
        if self._pending:
            return self._reject("ai_pending", "Wait for the AI to move")
        if self.is_ai_turn():
            return self._reject("ai_turn", "It is the AI's turn")

        try:
            self.state = GameEngine.apply_move(
                self.state, Move(row=row, col=col), self.state.current_player
            )
        except (RulesViolationError, InvalidMoveError) as e:
            return self._reject(e.code.lower(), e.message)

        self._after_transition()
        return True

    def undo(self) -> bool:
        """Take back one move (PvP) or the last exchange (PvE)."""
        self.notice = None
        if self._pending:
            return self._reject("ai_pending", "Cannot undo while the AI is thinking")

        try:
            self.state = GameEngine.undo(self.state, self.config.mode)
        except UndoNotAllowedError as e:
            return self._reject(e.code.lower(), e.message)

        self.error_message = None
        self._after_transition()
        return True

    def reset(self) -> bool:
        """Start a fresh game with the current configuration."""
        self._new_generation()
        self.state = GameEngine.reset(self.config)
        self.error_message = None
        self.notice = None
        logger.info(
            "New game: mode=%s, difficulty=%s, ai=%s",
            self.config.mode.value,
            self.config.difficulty.name,
            self.config.ai_mark.label,
        )
        self._after_transition()
        return True

    def retry_ai_turn(self) -> bool:
        """Re-trigger the automated turn after a failed oracle call."""
        self.notice = None
        if self._pending:
            return self._reject("ai_pending", "The AI is already thinking")
        if not self.is_ai_turn():
            return self._reject("not_ai_turn", "It is not the AI's turn")
        if not self._maybe_start_ai_turn():
            return self._reject("no_event_loop", "The AI cannot run right now")
        self.error_message = None
        return True

    # ------------------------------------------------------------------
    # Configuration (each change starts a fresh game)
    # ------------------------------------------------------------------

    def set_mode(self, mode: GameMode) -> bool:
        mode = GameMode(mode)
        if mode == self.config.mode:
            return False
        return self._reconfigure(mode=mode)

    def set_difficulty(self, difficulty: Union[Difficulty, str]) -> bool:
        if isinstance(difficulty, str):
            resolved = get_difficulty(difficulty)
            if resolved is None:
                raise ConfigurationError(
                    f"Unknown difficulty '{difficulty}'",
                    context={"difficulty": difficulty},
                )
            difficulty = resolved
        if difficulty == self.config.difficulty:
            return False
        return self._reconfigure(difficulty=difficulty)

    def set_ai_mark(self, mark: Mark) -> bool:
        mark = Mark(mark)
        if mark == Mark.EMPTY:
            raise ConfigurationError("The AI must play BLACK or WHITE")
        if mark == self.config.ai_mark:
            return False
        return self._reconfigure(ai_mark=mark)

    def _reconfigure(self, **changes) -> bool:
        self.config = self.config.model_copy(update=changes)
        return self.reset()

    # ------------------------------------------------------------------
    # Automated turns
    # ------------------------------------------------------------------

    async def play_ai_turn(self) -> bool:
        """Run one automated turn inline. Returns True if a move was applied."""
        if self._pending or not self.is_ai_turn():
            return False
        self._pending = True
        return await self._run_ai_turn(self.generation)

    async def wait_idle(self) -> None:
        """Wait until no automated turn is outstanding."""
        while self._ai_task is not None:
            task = self._ai_task
            await asyncio.gather(task, return_exceptions=True)
            if self._ai_task is task:
                self._ai_task = None

    async def close(self) -> None:
        task = self._ai_task
        self._new_generation()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        await self.oracle.close()

    def _maybe_start_ai_turn(self) -> bool:
        if self._pending or not self.is_ai_turn():
            return False
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; automated turn not scheduled")
            return False

        # Pending is entered before the task first runs so that input is
        # refused immediately.
        self._pending = True
        self._ai_task = loop.create_task(self._run_ai_turn(self.generation))
        return True

    async def _run_ai_turn(self, generation: int) -> bool:
        config = self.config
        model = config.difficulty.model
        self.error_message = None
        start_time = time.time()

        try:
            if self.ai_move_delay_ms > 0:
                await asyncio.sleep(self.ai_move_delay_ms / 1000.0)
            if generation != self.generation:
                return False

            request = OracleRequest(
                board=self.state.board,
                ai_mark=config.ai_mark,
                opponent_mark=config.ai_mark.opponent,
                board_size=self.state.board.size,
                model=model,
                thinking_budget=config.difficulty.thinking_budget,
            )

            try:
                suggested = await self.oracle.suggest_move(request)
            except OracleError as e:
                return self._oracle_failed(generation, model, start_time, e)
            except Exception as e:
                logger.error("Unexpected oracle failure", exc_info=True)
                return self._oracle_failed(generation, model, start_time, e)

            if generation != self.generation:
                logger.info(
                    "Discarding oracle answer from generation %d (now %d)",
                    generation, self.generation,
                )
                observe_oracle_result(model, "discarded", time.time() - start_time)
                return False

            move, used_fallback = reconcile_move(self.state.board, suggested)
            if move is None:
                # A full board already ended the game, so this is unreachable
                # through is_ai_turn().
                self.error_message = AI_FAILURE_MESSAGE
                return False

            try:
                self.state = GameEngine.apply_move(self.state, move, config.ai_mark)
            except GomokuError as e:
                logger.error("Reconciled oracle move was rejected: %s", e)
                self.error_message = AI_FAILURE_MESSAGE
                return False

            duration = time.time() - start_time
            observe_oracle_result(
                model, "fallback" if used_fallback else "success", duration
            )
            logger.info(
                "AI move: model=%s, mark=%s, move=(%d, %d), time=%dms%s",
                model,
                config.ai_mark.label,
                move.row,
                move.col,
                int(duration * 1000),
                ", fallback" if used_fallback else "",
            )
        finally:
            if generation == self.generation:
                self._pending = False
                if self._ai_task is asyncio.current_task():
                    self._ai_task = None

        self._after_transition()
        return True

    def _oracle_failed(
        self, generation: int, model: str, start_time: float, error: Exception
    ) -> bool:
        duration = time.time() - start_time
        if generation != self.generation:
            logger.info("Ignoring oracle failure from stale generation %d", generation)
            observe_oracle_result(model, "discarded", duration)
            return False
        logger.error("AI move failed: %s", error)
        observe_oracle_result(model, "error", duration)
        self.error_message = AI_FAILURE_MESSAGE
        return False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _after_transition(self) -> None:
        if self.state.is_terminal:
            outcome = (
                self.state.winner.label.lower()
                if self.state.status == GameStatus.WON
                else "draw"
            )
            GAME_OUTCOMES.labels(self.config.mode.value, outcome).inc()
            return
        self._maybe_start_ai_turn()

    def _new_generation(self) -> None:
        self.generation += 1
        task = self._ai_task
        if task is not None and not task.done():
            task.cancel()
        self._ai_task = None
        self._pending = False

    def _reject(self, reason: str, text: str) -> bool:
        logger.debug("Rejected action: %s (%s)", text, reason)
        MOVES_REJECTED.labels(reason).inc()
        self.notice = text
        return False
