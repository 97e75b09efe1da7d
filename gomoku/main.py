"""
Gomoku Service - FastAPI Application
Exposes the game session to an external board renderer
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .ai import create_oracle
from .config import load_settings, preflight_check
from .errors import ConfigurationError
from .models import DIFFICULTIES, Difficulty, GameMode, GameView, Mark
from .orchestrator import GameSession

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

settings = load_settings()

_session: Optional[GameSession] = None


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    if _session is not None:
        await _session.close()


# Create FastAPI app
app = FastAPI(
    title="Gomoku Service",
    description="Five-in-a-row game state machine with an AI move oracle",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_session() -> GameSession:
    """Process-wide game session, created on first use."""
    global _session
    if _session is None:
        preflight = preflight_check(settings)
        if preflight:
            logger.warning("Pre-flight: %s", preflight)
        _session = GameSession(
            oracle=create_oracle(settings),
            ai_move_delay_ms=settings.ai_move_delay_ms,
            preflight_message=preflight,
        )
    return _session


class MoveRequest(BaseModel):
    """Cell click from the renderer"""
    row: int
    col: int


class ModeRequest(BaseModel):
    mode: GameMode


class DifficultyRequest(BaseModel):
    name: str


class AISideRequest(BaseModel):
    mark: Mark


class ActionResponse(BaseModel):
    """Result of a renderer action; rejected actions leave the game unchanged"""
    accepted: bool
    view: GameView


def _respond(session: GameSession, accepted: bool) -> ActionResponse:
    return ActionResponse(accepted=accepted, view=session.view())


@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "service": "Gomoku Service",
        "status": "running",
        "version": "1.0.0"
    }


@app.get("/health")
async def health_check():
    """Health check for container orchestration"""
    return {"status": "healthy"}


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)


@app.get("/difficulties", response_model=list[Difficulty])
async def list_difficulties():
    return list(DIFFICULTIES)


@app.get("/game", response_model=GameView)
async def get_game(session: GameSession = Depends(get_session)):
    """Current render snapshot."""
    return session.view()


@app.post("/game/move", response_model=ActionResponse)
async def play_move(
    request: MoveRequest, session: GameSession = Depends(get_session)
):
    """Place a stone for the side to move.

    An automated reply, if any, runs in the background; poll ``/game``
    until ``ai_thinking`` is false.
    """
    accepted = session.click_cell(request.row, request.col)
    return _respond(session, accepted)


@app.post("/game/reset", response_model=ActionResponse)
async def reset_game(session: GameSession = Depends(get_session)):
    return _respond(session, session.reset())


@app.post("/game/undo", response_model=ActionResponse)
async def undo_move(session: GameSession = Depends(get_session)):
    return _respond(session, session.undo())


@app.post("/game/retry", response_model=ActionResponse)
async def retry_ai_move(session: GameSession = Depends(get_session)):
    """Re-trigger the automated turn after an oracle failure."""
    return _respond(session, session.retry_ai_turn())


@app.put("/game/mode", response_model=ActionResponse)
async def set_mode(
    request: ModeRequest, session: GameSession = Depends(get_session)
):
    return _respond(session, session.set_mode(request.mode))


@app.put("/game/difficulty", response_model=ActionResponse)
async def set_difficulty(
    request: DifficultyRequest, session: GameSession = Depends(get_session)
):
    try:
        accepted = session.set_difficulty(request.name)
    except ConfigurationError as e:
        raise HTTPException(status_code=404, detail=e.to_dict())
    return _respond(session, accepted)


@app.put("/game/ai-side", response_model=ActionResponse)
async def set_ai_side(
    request: AISideRequest, session: GameSession = Depends(get_session)
):
    try:
        accepted = session.set_ai_mark(request.mark)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=e.to_dict())
    return _respond(session, accepted)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.service_port)
