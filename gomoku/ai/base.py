"""
Base oracle class for Gomoku
Abstract base class for external move-suggestion services
"""

from abc import ABC, abstractmethod

from ..models import Move, OracleRequest


class BaseOracle(ABC):
    """Abstract base class for move oracles.

    An oracle is untrusted: the move it returns may be off the board or
    on an occupied cell. Callers reconcile the answer against the rules
    engine before applying it.
    """

    name: str = "oracle"

    @abstractmethod
    async def suggest_move(self, request: OracleRequest) -> Move:
        """
        Ask the oracle for a move.

        Args:
            request: Board snapshot, marks and model settings

        Returns:
            Suggested move (not yet validated)

        Raises:
            OracleError: transport, timeout, configuration or schema failure
        """
        pass

    async def close(self) -> None:
        """Release any held resources. Default is a no-op."""
        return None
