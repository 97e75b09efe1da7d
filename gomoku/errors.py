"""
Gomoku Error Hierarchy

Unified exception hierarchy for consistent error handling across the service.
All custom exceptions inherit from GomokuError for easy catching and filtering.

Usage:
    from gomoku.errors import IllegalMoveError, OracleError

    try:
        state = GameEngine.apply_move(state, move, mark)
    except IllegalMoveError as e:
        logger.debug("Rejected move: %s", e.message)
"""

from typing import Any

__all__ = [
    # AI errors
    "AIError",
    "ConfigurationError",
    "GameOverError",
    # Base error
    "GomokuError",
    "IllegalMoveError",
    "InvalidMoveError",
    "InvalidStateError",
    "NotYourTurnError",
    "OracleConfigurationError",
    "OracleError",
    "OracleResponseError",
    "OracleTimeoutError",
    "OracleUnavailableError",
    # Game rules errors
    "RulesViolationError",
    "UndoNotAllowedError",
    # Validation errors
    "ValidationError",
]


class GomokuError(Exception):
    """Base exception for all Gomoku errors.

    Attributes:
        code: Machine-readable error code for categorization
        message: Human-readable error description
        context: Additional context for debugging
    """
    code: str = "GOMOKU_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Game Rules Errors
# =============================================================================


class RulesViolationError(GomokuError):
    """Move rejected by the rules engine."""
    code: str = "RULES_VIOLATION"


class IllegalMoveError(RulesViolationError):
    """Move targets a cell that is off the board or already occupied.

    Attributes:
        row: Requested row
        col: Requested column
    """
    code: str = "ILLEGAL_MOVE"

    def __init__(
        self,
        message: str,
        row: int | None = None,
        col: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.row = row
        self.col = col
        if row is not None:
            self.context["row"] = row
        if col is not None:
            self.context["col"] = col


class InvalidMoveError(GomokuError):
    """Move that cannot be applied to the current state.

    Raised when a move is legal on the board but the game state does
    not accept it (wrong player, finished game).
    """
    code: str = "INVALID_MOVE"


class NotYourTurnError(InvalidMoveError):
    """Move submitted by the player who is not on turn."""
    code: str = "NOT_YOUR_TURN"

    def __init__(
        self,
        message: str,
        expected: str | None = None,
        actual: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        if expected:
            self.context["expected"] = expected
        if actual:
            self.context["actual"] = actual


class GameOverError(InvalidMoveError):
    """Move submitted after the game reached a terminal status."""
    code: str = "GAME_OVER"


class InvalidStateError(GomokuError):
    """Operation not permitted in the current game or session state."""
    code: str = "INVALID_STATE"


class UndoNotAllowedError(InvalidStateError):
    """Undo requested on a finished game or an empty history."""
    code: str = "UNDO_NOT_ALLOWED"


# =============================================================================
# AI Errors
# =============================================================================


class AIError(GomokuError):
    """Base class for AI-related errors."""
    code: str = "AI_ERROR"


class OracleError(AIError):
    """The move oracle could not produce a usable answer.

    Every oracle error is recoverable: the game state stays valid and
    the user may retry the automated turn or undo.

    Attributes:
        model: Model identity the request was sent to
    """
    code: str = "ORACLE_ERROR"

    def __init__(
        self,
        message: str,
        model: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.model = model
        if model:
            self.context["model"] = model


class OracleUnavailableError(OracleError):
    """Transport failure or non-success HTTP status from the oracle."""
    code: str = "ORACLE_UNAVAILABLE"

    def __init__(
        self,
        message: str,
        model: str | None = None,
        status: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, model=model, context=context)
        self.status = status
        if status is not None:
            self.context["status"] = status


class OracleTimeoutError(OracleError):
    """Oracle call exceeded its time limit."""
    code: str = "ORACLE_TIMEOUT"

    def __init__(
        self,
        message: str,
        model: str | None = None,
        timeout_sec: float | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, model=model, context=context)
        if timeout_sec:
            self.context["timeout_sec"] = timeout_sec


class OracleResponseError(OracleError):
    """Oracle answered with an empty, unparseable or off-schema body."""
    code: str = "ORACLE_BAD_RESPONSE"


class OracleConfigurationError(OracleError):
    """Oracle cannot be called because its credential is missing."""
    code: str = "ORACLE_NOT_CONFIGURED"


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(GomokuError):
    """Base class for validation errors."""
    code: str = "VALIDATION_ERROR"


class ConfigurationError(ValidationError):
    """Invalid configuration."""
    code: str = "CONFIGURATION_ERROR"
