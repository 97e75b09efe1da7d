"""Shared fixtures and fakes for the Gomoku tests."""

from __future__ import annotations

import asyncio
import os
import sys
from typing import List, Optional, Union

import pytest

# Ensure the package is importable when running from a source checkout
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from gomoku.ai.base import BaseOracle  # noqa: E402
from gomoku.models import Move, OracleRequest  # noqa: E402


class FakeOracle(BaseOracle):
    """Scripted oracle.

    Answers are consumed in order; an exception instance is raised instead
    of returned. When ``gate`` is set, every call waits for it first.
    """

    name = "fake"

    def __init__(
        self,
        answers: Optional[List[Union[Move, Exception]]] = None,
        gate: Optional[asyncio.Event] = None,
    ):
        self.answers = list(answers or [])
        self.gate = gate
        self.requests: List[OracleRequest] = []
        self.closed = False

    async def suggest_move(self, request: OracleRequest) -> Move:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if not self.answers:
            raise AssertionError("FakeOracle ran out of scripted answers")
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_oracle() -> FakeOracle:
    return FakeOracle()
