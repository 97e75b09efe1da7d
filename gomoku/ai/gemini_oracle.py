"""Gemini move oracle over the Generative Language REST API.

One ``generateContent`` call per automated turn, asking for a JSON object
``{"row": int, "col": int}`` via a response schema. The client validates
the *shape* of the answer only; whether the cell is playable is decided
by the caller against the rules engine.

No retries are performed here. A failed call surfaces as an
:class:`~gomoku.errors.OracleError` and the user decides whether to retry.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import aiohttp
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from ..config import DEFAULT_ORACLE_BASE_URL, DEFAULT_ORACLE_TIMEOUT_SEC
from ..errors import (
    OracleConfigurationError,
    OracleError,
    OracleResponseError,
    OracleTimeoutError,
    OracleUnavailableError,
)
from ..models import Move, OracleRequest
from .base import BaseOracle
from .prompt import RESPONSE_SCHEMA, build_prompt

logger = logging.getLogger(__name__)

__all__ = [
    "GeminiOracle",
    "OracleMove",
    "build_request_body",
    "extract_text",
    "parse_move",
]


class OracleMove(BaseModel):
    """Wire shape of an oracle answer. Strict: no string or float coercion."""
    model_config = ConfigDict(strict=True, extra="ignore")

    row: int
    col: int


def build_request_body(request: OracleRequest) -> dict[str, Any]:
    """``generateContent`` request body for ``request``."""
    generation_config: dict[str, Any] = {
        "responseMimeType": "application/json",
        "responseSchema": RESPONSE_SCHEMA,
    }
    if request.thinking_budget > 0:
        generation_config["thinkingConfig"] = {
            "thinkingBudget": request.thinking_budget,
        }
    return {
        "contents": [
            {"role": "user", "parts": [{"text": build_prompt(request)}]},
        ],
        "generationConfig": generation_config,
    }


def extract_text(payload: Any, model: Optional[str] = None) -> str:
    """Concatenate the answer text of the first candidate.

    Thought-summary parts are skipped.

    Raises:
        OracleResponseError: unexpected body shape, no candidate or no
            answer text.
    """
    if not isinstance(payload, dict):
        raise OracleResponseError("Oracle response is not a JSON object", model=model)

    candidates = payload.get("candidates") or []
    if not isinstance(candidates, list):
        raise OracleResponseError("Oracle response has malformed candidates", model=model)
    if not candidates:
        feedback = payload.get("promptFeedback") or {}
        if not isinstance(feedback, dict):
            raise OracleResponseError(
                "Oracle response has malformed prompt feedback", model=model
            )
        block_reason = feedback.get("blockReason")
        raise OracleResponseError(
            "Empty response from oracle",
            model=model,
            context={"block_reason": block_reason} if block_reason else None,
        )

    candidate = candidates[0]
    content = (candidate.get("content") or {}) if isinstance(candidate, dict) else None
    parts = (content.get("parts") or []) if isinstance(content, dict) else None
    if not isinstance(parts, list):
        raise OracleResponseError("Oracle response has a malformed candidate", model=model)

    texts = [
        part["text"]
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str) and not part.get("thought")
    ]
    text = "".join(texts).strip()
    if not text:
        raise OracleResponseError(
            "Empty response from oracle",
            model=model,
            context={"finish_reason": candidate.get("finishReason")},
        )
    return text


def parse_move(text: str, model: Optional[str] = None) -> Move:
    """Parse the answer text into a :class:`Move`.

    Raises:
        OracleResponseError: not JSON, or not ``{"row": int, "col": int}``.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise OracleResponseError(
            "Oracle answer is not valid JSON",
            model=model,
            context={"text": text[:200]},
        ) from exc

    try:
        answer = OracleMove.model_validate(data)
    except PydanticValidationError as exc:
        raise OracleResponseError(
            "Oracle answer does not match the move schema",
            model=model,
            context={"text": text[:200]},
        ) from exc

    return Move(row=answer.row, col=answer.col)


class GeminiOracle(BaseOracle):
    """Move oracle backed by a Gemini model."""

    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_ORACLE_BASE_URL,
        timeout_sec: float = DEFAULT_ORACLE_TIMEOUT_SEC,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec

    def endpoint(self, model: str) -> str:
        return f"{self.base_url}/models/{model}:generateContent"

    async def _post(self, url: str, body: dict[str, Any], model: str) -> Any:
        """POST ``body`` and return the decoded JSON payload."""
        headers = {
            "x-goog-api-key": self.api_key or "",
            "Content-Type": "application/json",
        }
        timeout = aiohttp.ClientTimeout(total=self.timeout_sec)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(url, json=body, headers=headers) as resp:
                if resp.status >= 400:
                    detail = await resp.text()
                    raise OracleUnavailableError(
                        f"Oracle returned HTTP {resp.status}",
                        model=model,
                        status=resp.status,
                        context={"detail": detail[:200]},
                    )
                try:
                    return await resp.json(content_type=None)
                except ValueError as exc:
                    raise OracleResponseError(
                        "Oracle response body is not JSON", model=model
                    ) from exc

    async def suggest_move(self, request: OracleRequest) -> Move:
        model = request.model
        if not self.api_key:
            raise OracleConfigurationError("Missing API key", model=model)

        body = build_request_body(request)
        try:
            payload = await self._post(self.endpoint(model), body, model)
        except OracleError:
            raise
        except asyncio.TimeoutError as exc:
            raise OracleTimeoutError(
                "Oracle call timed out", model=model, timeout_sec=self.timeout_sec
            ) from exc
        except aiohttp.ClientError as exc:
            raise OracleUnavailableError(
                f"Oracle transport error: {exc}", model=model
            ) from exc

        move = parse_move(extract_text(payload, model), model)
        logger.debug(
            "Oracle %s suggested (%d, %d) for %s",
            model, move.row, move.col, request.ai_mark.label,
        )
        return move
