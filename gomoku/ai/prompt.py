"""Prompt and response schema for language-model oracles."""

from __future__ import annotations

from typing import Any

from ..board_manager import BoardManager
from ..models import OracleRequest

# Generative Language API schema types are upper-case names.
RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "row": {"type": "INTEGER"},
        "col": {"type": "INTEGER"},
    },
    "required": ["row", "col"],
}


def build_prompt(request: OracleRequest) -> str:
    """Natural-language move request for one automated turn."""
    size = request.board_size
    me = request.ai_mark.symbol
    them = request.opponent_mark.symbol
    board_str = BoardManager.render(request.board)
    center = size // 2

    return (
        "You are an expert Gomoku (Five-in-a-Row) player.\n"
        f"The board size is {size}x{size}.\n"
        "\n"
        "Current Board State:\n"
        f"{board_str}\n"
        f"You are playing as '{me}'. The opponent is '{them}'.\n"
        f"The goal is to get 5 of your stones ('{me}') in a row horizontally, "
        "vertically, or diagonally.\n"
        f"You must also block the opponent ('{them}') if they are about to win.\n"
        "\n"
        "Analyze the board carefully.\n"
        "Return ONLY a JSON object with the coordinates of your next move.\n"
        f"The coordinates must be within 0 to {size - 1}.\n"
        f"If the board is empty, start near the center ({center}, {center}).\n"
    )
