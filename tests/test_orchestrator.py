"""Tests for GameSession turn orchestration and the oracle round-trip."""

from __future__ import annotations

import asyncio

import pytest

from gomoku.errors import ConfigurationError, OracleResponseError, OracleUnavailableError
from gomoku.game_engine import GameEngine
from gomoku.models import (
    DIFFICULTIES,
    GameConfig,
    GameMode,
    GameStatus,
    Mark,
    Move,
)
from gomoku.board_manager import BoardManager
from gomoku.orchestrator import AI_FAILURE_MESSAGE, GameSession, reconcile_move

from tests.conftest import FakeOracle


def _m(row: int, col: int) -> Move:
    return Move(row=row, col=col)


def _session(oracle: FakeOracle, **config) -> GameSession:
    return GameSession(oracle=oracle, config=GameConfig(**config), ai_move_delay_ms=0)


class TestReconcileMove:
    def test_legal_answer_is_kept(self):
        board = BoardManager.create_board()
        assert reconcile_move(board, _m(7, 7)) == (_m(7, 7), False)

    def test_occupied_answer_falls_back_to_first_empty_cell(self):
        board = BoardManager.from_moves([_m(0, 0), _m(7, 7)])
        assert reconcile_move(board, _m(7, 7)) == (_m(0, 1), True)

    def test_out_of_range_answer_falls_back(self):
        board = BoardManager.create_board()
        assert reconcile_move(board, _m(15, 3)) == (_m(0, 0), True)
        assert reconcile_move(board, _m(-1, 3)) == (_m(0, 0), True)

    def test_full_board_has_no_fallback(self):
        board = BoardManager.from_moves([_m(r, c) for r in range(5) for c in range(5)], size=5)
        assert reconcile_move(board, _m(0, 0)) == (None, True)


class TestPvP:
    def test_pvp_never_calls_the_oracle(self, fake_oracle):
        session = _session(fake_oracle, mode=GameMode.PVP)
        assert session.click_cell(7, 7)
        assert session.click_cell(8, 8)
        assert fake_oracle.requests == []
        assert session.state.current_player == Mark.BLACK
        assert session.view().message == "Black to move"

    def test_rejected_click_is_a_no_op(self, fake_oracle):
        session = _session(fake_oracle, mode=GameMode.PVP)
        session.click_cell(7, 7)
        before = session.state

        assert not session.click_cell(7, 7)
        assert not session.click_cell(15, 15)
        assert session.state is before
        assert session.view().notice == "Move is off the board"

    def test_undo_takes_back_one_move(self, fake_oracle):
        session = _session(fake_oracle, mode=GameMode.PVP)
        session.click_cell(7, 7)
        session.click_cell(8, 8)
        assert session.undo()
        assert session.state.history == (_m(7, 7),)
        assert session.state.current_player == Mark.WHITE

    def test_undo_with_empty_history_is_rejected(self, fake_oracle):
        session = _session(fake_oracle, mode=GameMode.PVP)
        assert not session.undo()
        assert session.notice == "Nothing to undo"

    def test_win_disables_input_and_blocks_undo(self, fake_oracle):
        session = _session(fake_oracle, mode=GameMode.PVP)
        for r, c in [(7, 7), (8, 7), (7, 8), (8, 8), (7, 9), (8, 9), (7, 10), (8, 10), (7, 11)]:
            assert session.click_cell(r, c)

        view = session.view()
        assert view.status == GameStatus.WON
        assert view.winner == Mark.BLACK
        assert view.input_disabled
        assert view.message == "Black wins!"
        assert view.winning_line == [_m(7, c) for c in range(7, 12)]
        assert not session.click_cell(0, 0)
        assert not session.undo()
        assert len(session.state.history) == 9

    def test_retry_is_rejected_in_pvp(self, fake_oracle):
        session = _session(fake_oracle, mode=GameMode.PVP)
        assert not session.retry_ai_turn()


class TestAutomatedTurn:
    @pytest.mark.asyncio
    async def test_ai_replies_after_human_move(self):
        oracle = FakeOracle([_m(8, 8)])
        session = _session(oracle)

        assert session.click_cell(7, 7)
        assert session.is_pending
        await session.wait_idle()

        assert not session.is_pending
        assert session.state.history == (_m(7, 7), _m(8, 8))
        assert session.state.board.cells[8][8] == Mark.WHITE
        assert session.view().message == "Your turn"
        assert session.error_message is None

    @pytest.mark.asyncio
    async def test_oracle_request_carries_snapshot_and_settings(self):
        oracle = FakeOracle([_m(8, 8)])
        session = _session(oracle, difficulty=DIFFICULTIES[1])

        session.click_cell(7, 7)
        await session.wait_idle()

        request = oracle.requests[0]
        assert request.ai_mark == Mark.WHITE
        assert request.opponent_mark == Mark.BLACK
        assert request.board_size == 15
        assert request.model == "gemini-3-pro-preview"
        assert request.thinking_budget == 4096
        assert request.board.cells[7][7] == Mark.BLACK

    @pytest.mark.asyncio
    async def test_occupied_answer_uses_row_major_fallback(self):
        oracle = FakeOracle([_m(7, 7)])
        session = _session(oracle)

        session.click_cell(7, 7)
        await session.wait_idle()

        assert session.state.history == (_m(7, 7), _m(0, 0))
        assert session.state.board.cells[0][0] == Mark.WHITE
        assert session.error_message is None

    @pytest.mark.asyncio
    async def test_out_of_range_answer_uses_fallback(self):
        oracle = FakeOracle([_m(0, 0), _m(42, -3)])
        session = _session(oracle, ai_mark=Mark.BLACK)

        # AI is BLACK, so the first automated turn starts on reset.
        session.reset()
        await session.wait_idle()
        assert session.state.history == (_m(0, 0),)

        session.click_cell(7, 7)
        await session.wait_idle()
        assert session.state.history == (_m(0, 0), _m(7, 7), _m(0, 1))

    @pytest.mark.asyncio
    async def test_oracle_failure_leaves_state_untouched(self):
        oracle = FakeOracle([OracleUnavailableError("connection refused", model="m")])
        session = _session(oracle)

        session.click_cell(7, 7)
        before = session.state
        await session.wait_idle()

        assert session.state is before
        assert not session.is_pending
        assert session.error_message == AI_FAILURE_MESSAGE
        assert session.view().error_message == AI_FAILURE_MESSAGE
        assert not session.view().input_disabled

    @pytest.mark.asyncio
    async def test_human_cannot_play_for_the_ai_after_failure(self):
        oracle = FakeOracle([OracleResponseError("Empty response from oracle")])
        session = _session(oracle)

        session.click_cell(7, 7)
        await session.wait_idle()

        assert not session.click_cell(8, 8)
        assert session.notice == "It is the AI's turn"
        assert session.state.history == (_m(7, 7),)

    @pytest.mark.asyncio
    async def test_retry_after_failure_applies_the_move(self):
        oracle = FakeOracle([OracleUnavailableError("boom"), _m(8, 8)])
        session = _session(oracle)

        session.click_cell(7, 7)
        await session.wait_idle()
        assert session.error_message == AI_FAILURE_MESSAGE

        assert session.retry_ai_turn()
        assert session.error_message is None
        await session.wait_idle()
        assert session.state.history == (_m(7, 7), _m(8, 8))

    @pytest.mark.asyncio
    async def test_unexpected_oracle_exception_is_recoverable(self):
        oracle = FakeOracle([RuntimeError("bug in oracle")])
        session = _session(oracle)

        session.click_cell(7, 7)
        await session.wait_idle()

        assert session.error_message == AI_FAILURE_MESSAGE
        assert not session.is_pending

    @pytest.mark.asyncio
    async def test_undo_after_failure_clears_error_and_replays_ai_turn(self):
        oracle = FakeOracle([_m(8, 8), OracleUnavailableError("boom"), _m(9, 9)])
        session = _session(oracle)

        session.click_cell(7, 7)
        await session.wait_idle()
        session.click_cell(7, 8)
        await session.wait_idle()
        assert session.error_message == AI_FAILURE_MESSAGE

        # Two plies back leaves the AI to move again.
        assert session.undo()
        assert session.error_message is None
        assert session.state.history == (_m(7, 7),)
        assert session.is_pending
        await session.wait_idle()
        assert session.state.history == (_m(7, 7), _m(9, 9))

    @pytest.mark.asyncio
    async def test_ai_winning_move_ends_game(self):
        answers = [_m(0, c) for c in range(5)]
        oracle = FakeOracle(answers)
        session = _session(oracle)

        for c in range(5):
            session.click_cell(10, c * 2)
            await session.wait_idle()

        view = session.view()
        assert view.status == GameStatus.WON
        assert view.winner == Mark.WHITE
        assert view.message == "You lost!"
        assert not session.is_pending


class TestPendingState:
    @pytest.mark.asyncio
    async def test_pending_blocks_moves_and_undo(self):
        gate = asyncio.Event()
        oracle = FakeOracle([_m(8, 8)], gate=gate)
        session = _session(oracle)

        session.click_cell(7, 7)
        await asyncio.sleep(0)
        view = session.view()
        assert view.ai_thinking
        assert view.input_disabled
        assert view.message == "Waiting for AI"

        assert not session.click_cell(0, 0)
        assert not session.undo()
        assert not session.retry_ai_turn()
        assert session.state.history == (_m(7, 7),)

        gate.set()
        await session.wait_idle()
        assert session.state.history == (_m(7, 7), _m(8, 8))

    @pytest.mark.asyncio
    async def test_only_one_oracle_call_outstanding(self):
        gate = asyncio.Event()
        oracle = FakeOracle([_m(8, 8)], gate=gate)
        session = _session(oracle)

        session.click_cell(7, 7)
        assert not await session.play_ai_turn()
        assert not session._maybe_start_ai_turn()
        await asyncio.sleep(0)
        assert len(oracle.requests) == 1

        gate.set()
        await session.wait_idle()

    @pytest.mark.asyncio
    async def test_reset_during_pending_discards_result(self):
        gate = asyncio.Event()
        oracle = FakeOracle([_m(8, 8)], gate=gate)
        session = _session(oracle)

        session.click_cell(7, 7)
        await asyncio.sleep(0)
        generation = session.generation

        assert session.reset()
        assert session.generation == generation + 1
        assert not session.is_pending
        gate.set()
        await session.wait_idle()

        assert session.state.history == ()
        assert session.state.status == GameStatus.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_stale_generation_result_is_not_applied(self):
        # Inline turn: nothing to cancel, so only the generation guard
        # stands between the late answer and the new game.
        gate = asyncio.Event()
        oracle = FakeOracle([_m(8, 8)], gate=gate)
        session = _session(oracle, mode=GameMode.PVP)
        session.click_cell(7, 7)
        session.config = session.config.model_copy(update={"mode": GameMode.PVE})

        turn = asyncio.ensure_future(session.play_ai_turn())
        await asyncio.sleep(0)
        assert session.is_pending

        session.set_mode(GameMode.PVP)
        gate.set()
        applied = await turn

        assert applied is False
        assert session.state.history == ()
        assert not session.is_pending

    @pytest.mark.asyncio
    async def test_config_change_during_pending_discards_result(self):
        gate = asyncio.Event()
        oracle = FakeOracle([_m(8, 8)], gate=gate)
        session = _session(oracle)

        session.click_cell(7, 7)
        await asyncio.sleep(0)
        assert session.set_difficulty("pro")
        gate.set()
        await session.wait_idle()

        assert session.state.history == ()
        assert session.config.difficulty.name == "pro"


class TestConfiguration:
    @pytest.mark.asyncio
    async def test_ai_as_black_moves_first(self):
        oracle = FakeOracle([_m(7, 7)])
        session = _session(oracle)

        assert session.set_ai_mark(Mark.BLACK)
        assert session.is_pending
        await session.wait_idle()

        assert session.state.history == (_m(7, 7),)
        assert session.state.current_player == Mark.WHITE
        assert oracle.requests[0].ai_mark == Mark.BLACK

    @pytest.mark.asyncio
    async def test_pve_undo_removes_exchange(self):
        oracle = FakeOracle([_m(8, 8), _m(8, 9)])
        session = _session(oracle)

        session.click_cell(7, 7)
        await session.wait_idle()
        session.click_cell(7, 8)
        await session.wait_idle()
        assert len(session.state.history) == 4

        assert session.undo()
        assert session.state.history == (_m(7, 7), _m(8, 8))
        assert session.state.current_player == Mark.BLACK
        assert session.state.status == GameStatus.IN_PROGRESS
        assert not session.is_pending

    def test_same_mode_is_a_no_op(self, fake_oracle):
        session = _session(fake_oracle, mode=GameMode.PVP)
        session.click_cell(7, 7)
        assert not session.set_mode(GameMode.PVP)
        assert len(session.state.history) == 1

    def test_mode_change_resets_game(self, fake_oracle):
        session = _session(fake_oracle, mode=GameMode.PVP)
        session.click_cell(7, 7)
        assert session.set_mode(GameMode.PVE)
        assert session.state.history == ()
        assert session.config.mode == GameMode.PVE
        assert session.generation == 1

    def test_unknown_difficulty_raises(self, fake_oracle):
        session = _session(fake_oracle)
        with pytest.raises(ConfigurationError):
            session.set_difficulty("impossible")

    def test_same_difficulty_is_a_no_op(self, fake_oracle):
        session = _session(fake_oracle)
        assert not session.set_difficulty("flash")

    def test_empty_ai_mark_raises(self, fake_oracle):
        session = _session(fake_oracle)
        with pytest.raises(ConfigurationError):
            session.set_ai_mark(Mark.EMPTY)

    def test_preflight_message_is_reported(self, fake_oracle):
        session = GameSession(
            oracle=fake_oracle,
            config=GameConfig(mode=GameMode.PVP),
            preflight_message="Missing API key. The AI cannot run.",
        )
        assert session.view().error_message == "Missing API key. The AI cannot run."
        assert session.click_cell(7, 7)

    def test_without_event_loop_ai_turn_is_not_scheduled(self, fake_oracle):
        session = GameSession(oracle=fake_oracle, config=GameConfig(ai_mark=Mark.BLACK))
        assert session.is_ai_turn()
        assert not session.is_pending
        assert not session.click_cell(7, 7)

    @pytest.mark.asyncio
    async def test_play_ai_turn_inline(self, fake_oracle):
        fake_oracle.answers = [_m(7, 7)]
        session = GameSession(
            oracle=fake_oracle,
            config=GameConfig(ai_mark=Mark.BLACK),
            ai_move_delay_ms=0,
        )
        assert await session.play_ai_turn()
        assert session.state.history == (_m(7, 7),)

    @pytest.mark.asyncio
    async def test_close_cancels_and_closes_oracle(self):
        gate = asyncio.Event()
        oracle = FakeOracle([_m(8, 8)], gate=gate)
        session = _session(oracle)
        session.click_cell(7, 7)
        await asyncio.sleep(0)
        task = session._ai_task

        await session.close()
        assert task.done()
        assert oracle.closed
        assert not session.is_pending
        assert session.state == GameEngine.apply_move(
            GameEngine.create_initial_state(), _m(7, 7), Mark.BLACK
        )

    def test_retry_without_event_loop_keeps_failure_message(self, fake_oracle):
        session = GameSession(oracle=fake_oracle, config=GameConfig(ai_mark=Mark.BLACK))
        session.error_message = AI_FAILURE_MESSAGE

        assert not session.retry_ai_turn()
        assert session.error_message == AI_FAILURE_MESSAGE
        assert session.notice == "The AI cannot run right now"
        assert not session.is_pending
