"""Oracle factory.

Usage:
    from gomoku.ai import create_oracle
    from gomoku.config import load_settings

    oracle = create_oracle(load_settings())
"""

from __future__ import annotations

import logging
from typing import Optional

from ..config import Settings, load_settings
from .base import BaseOracle
from .gemini_oracle import GeminiOracle

logger = logging.getLogger(__name__)


def create_oracle(settings: Optional[Settings] = None) -> BaseOracle:
    """Build the oracle described by ``settings`` (environment when omitted).

    A missing credential does not fail here; the oracle reports it on
    each call and the session surfaces it as a pre-flight message.
    """
    settings = settings or load_settings()
    if not settings.has_api_key:
        logger.warning("No oracle API key configured; automated turns will fail")
    return GeminiOracle(
        api_key=settings.api_key,
        base_url=settings.oracle_base_url,
        timeout_sec=settings.oracle_timeout_sec,
    )
