"""Move oracles for Gomoku.

The service never chooses moves itself; automated turns are delegated to
an external oracle:

    from gomoku.ai import create_oracle

    oracle = create_oracle()
    move = await oracle.suggest_move(request)

- base.py: BaseOracle abstract base class
- prompt.py: prompt text and JSON response schema
- gemini_oracle.py: Gemini over the Generative Language REST API
- factory.py: create_oracle from Settings
"""

from .base import BaseOracle
from .factory import create_oracle
from .gemini_oracle import GeminiOracle

__all__ = [
    "BaseOracle",
    "GeminiOracle",
    "create_oracle",
]
