"""Rules engine: legality, win and draw detection."""

from .core import (
    DIRECTIONS,
    check_draw,
    check_win,
    count_run,
    is_legal,
    winning_line,
)

__all__ = [
    "DIRECTIONS",
    "check_draw",
    "check_win",
    "count_run",
    "is_legal",
    "winning_line",
]
