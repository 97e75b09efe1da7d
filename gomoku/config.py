"""Environment-driven settings for the Gomoku service.

Environment Variables:
    GEMINI_API_KEY: Oracle credential (``API_KEY`` is accepted as a fallback)
    GOMOKU_ORACLE_BASE_URL: Generative Language API root
    GOMOKU_ORACLE_TIMEOUT_SEC: Total time allowed for one oracle call (default: 60)
    GOMOKU_AI_MOVE_DELAY_MS: Pause before each oracle call (default: 500, 0 disables)
    GOMOKU_SERVICE_PORT: Port for ``python -m gomoku.main`` (default: 8001)
    CORS_ORIGINS: Comma-separated allowed origins (default: ``*``)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_ORACLE_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_ORACLE_TIMEOUT_SEC = 60.0
DEFAULT_AI_MOVE_DELAY_MS = 500
DEFAULT_SERVICE_PORT = 8001

MISSING_API_KEY_MESSAGE = "Missing API key. The AI cannot run."


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r; using %s", name, raw, default)
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r; using %s", name, raw, default)
        return default


@dataclass
class Settings:
    """Process-level configuration for the oracle and the HTTP surface."""
    api_key: Optional[str] = None
    oracle_base_url: str = DEFAULT_ORACLE_BASE_URL
    oracle_timeout_sec: float = DEFAULT_ORACLE_TIMEOUT_SEC
    ai_move_delay_ms: int = DEFAULT_AI_MOVE_DELAY_MS
    service_port: int = DEFAULT_SERVICE_PORT
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)


def load_settings() -> Settings:
    """Read :class:`Settings` from the environment."""
    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or None
    return Settings(
        api_key=api_key,
        oracle_base_url=os.getenv(
            "GOMOKU_ORACLE_BASE_URL", DEFAULT_ORACLE_BASE_URL
        ).rstrip("/"),
        oracle_timeout_sec=_env_float(
            "GOMOKU_ORACLE_TIMEOUT_SEC", DEFAULT_ORACLE_TIMEOUT_SEC
        ),
        ai_move_delay_ms=max(
            0, _env_int("GOMOKU_AI_MOVE_DELAY_MS", DEFAULT_AI_MOVE_DELAY_MS)
        ),
        service_port=_env_int("GOMOKU_SERVICE_PORT", DEFAULT_SERVICE_PORT),
        cors_origins=[
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ],
    )


def preflight_check(settings: Settings) -> Optional[str]:
    """Return a user-facing problem report, or None when the oracle is usable."""
    if not settings.has_api_key:
        return MISSING_API_KEY_MESSAGE
    return None
