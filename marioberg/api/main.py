"""
FastAPI backend for the house race game mode.
Runs matches on the simulated host so the win condition can be driven over HTTP.
All matches live in memory and are gone when the process exits.
"""

import logging
import traceback
import uuid
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from marioberg.config import CORS_ORIGINS, DEBUG, LOG_LEVEL
from marioberg.engine.definitions import ECONOMY_SECTION, RESOURCE_AMOUNT_OPTION, load_static_definitions
from marioberg.engine.lifecycle import HouseRaceGameMode
from marioberg.engine.queries import get_allies_and_enemies, get_match_summary
from marioberg.engine.simulation import SimulatedHost
from marioberg.engine.utils import initialize_match

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Marioberg API",
    description="Backend API for the Marioberg house race game mode",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log each request with its status; server errors at ERROR, the rest at DEBUG."""
    response = await call_next(request)
    level = logging.ERROR if response.status_code >= 500 else logging.DEBUG
    logger.log(level, "%s %s -> %d", request.method, request.url.path, response.status_code)
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Turn an unexpected error into a 500 the browser can read.
    The exception and traceback are only included when DEBUG is set.
    """
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    content: dict[str, Any] = {"detail": "Internal server error"}
    if DEBUG:
        content["error"] = f"{type(exc).__name__}: {exc}"
        content["traceback"] = traceback.format_exception(exc)
    origin = request.headers.get("origin")
    allow_origin = origin if origin in CORS_ORIGINS else CORS_ORIGINS[0]
    # Errors bypass CORSMiddleware, so the headers are set here.
    return JSONResponse(
        status_code=500,
        content=content,
        headers={
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Credentials": "true",
        },
    )


definitions = load_static_definitions()

# match_id -> (host, game_mode)
matches: dict[str, tuple[SimulatedHost, HouseRaceGameMode]] = {}


# ===== Pydantic Models =====

class Seat(BaseModel):
    name: str | None = None
    civilization: str
    team: int | None = None  # None = a team of its own
    is_local: bool = False


class CreateMatchRequest(BaseModel):
    seats: list[Seat] = Field(min_length=1)
    """Preset id from GET /options (e.g. 'resource_200'). Omitted = default from marioberg.config."""
    economy_option: str | None = None


class ConstructionRequest(BaseModel):
    player_id: int | None = None  # None = placed by script
    blueprint: str


class AdvanceRequest(BaseModel):
    seconds: float = Field(ge=0)


class EliminateRequest(BaseModel):
    player_id: int
    reason: str = "annihilation"


# ===== Helper Functions =====

def get_match(match_id: str) -> tuple[SimulatedHost, HouseRaceGameMode]:
    """Get a match; raise 404 if not found."""
    match = matches.get(match_id)
    if match is None:
        raise HTTPException(status_code=404, detail=f"Match {match_id} not found")
    return match


def _require_live(host: SimulatedHost, match_id: str) -> None:
    if host.torn_down:
        raise HTTPException(status_code=409, detail=f"Match {match_id} has been torn down")


def match_to_dict(match_id: str, host: SimulatedHost, game_mode: HouseRaceGameMode) -> dict[str, Any]:
    summary = get_match_summary(game_mode, host)
    summary["match_id"] = match_id
    summary["clock"] = host.clock
    summary["torn_down"] = host.torn_down
    return summary


# ===== Endpoints =====

@app.get("/")
def root():
    return {"status": "ok", "matches": len(matches)}


@app.get("/civilizations")
def list_civilizations():
    return {civ_id: asdict(civ) for civ_id, civ in definitions.civilizations.items()}


@app.get("/options")
def list_options():
    return {
        ECONOMY_SECTION: {
            RESOURCE_AMOUNT_OPTION: {pid: asdict(p) for pid, p in definitions.economy_presets.items()},
        },
    }


@app.post("/matches")
def create_match(request: CreateMatchRequest):
    seats = [seat.model_dump(exclude_none=True) for seat in request.seats]
    options = None
    if request.economy_option is not None:
        options = {ECONOMY_SECTION: {RESOURCE_AMOUNT_OPTION: request.economy_option}}
    try:
        host, game_mode = initialize_match(seats, options, definitions)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    match_id = str(uuid.uuid4())
    matches[match_id] = (host, game_mode)
    logger.info("Match %s created with %d players", match_id, len(seats))
    return match_to_dict(match_id, host, game_mode)


@app.get("/matches")
def list_matches():
    return [
        {"match_id": match_id, "clock": host.clock, "game_over": host.decided, "torn_down": host.torn_down}
        for match_id, (host, _) in matches.items()
    ]


@app.get("/matches/{match_id}")
def get_match_state(match_id: str):
    host, game_mode = get_match(match_id)
    return match_to_dict(match_id, host, game_mode)


@app.get("/matches/{match_id}/events")
def get_match_events(match_id: str, since: int = 0):
    _, game_mode = get_match(match_id)
    return game_mode.log.to_list()[max(0, since):]


@app.get("/matches/{match_id}/players/{player_id}/relations")
def get_relations(match_id: str, player_id: int):
    host, _ = get_match(match_id)
    if host.get_player(player_id) is None:
        raise HTTPException(status_code=404, detail=f"Player {player_id} not found")
    return get_allies_and_enemies(host, player_id)


@app.post("/matches/{match_id}/construction")
def complete_construction(match_id: str, request: ConstructionRequest):
    host, game_mode = get_match(match_id)
    _require_live(host, match_id)
    if request.player_id is not None and host.get_player(request.player_id) is None:
        raise HTTPException(status_code=404, detail=f"Player {request.player_id} not found")
    first_new = len(game_mode.log.entries)
    try:
        entity_id = host.complete_construction(request.player_id, request.blueprint)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "entity_id": entity_id,
        "events": game_mode.log.to_list()[first_new:],
        "match": match_to_dict(match_id, host, game_mode),
    }


@app.post("/matches/{match_id}/advance")
def advance_clock(match_id: str, request: AdvanceRequest):
    host, game_mode = get_match(match_id)
    _require_live(host, match_id)
    first_new = len(game_mode.log.entries)
    host.advance(request.seconds)
    return {
        "events": game_mode.log.to_list()[first_new:],
        "match": match_to_dict(match_id, host, game_mode),
    }


@app.post("/matches/{match_id}/eliminate")
def eliminate_player(match_id: str, request: EliminateRequest):
    host, game_mode = get_match(match_id)
    _require_live(host, match_id)
    if host.get_player(request.player_id) is None:
        raise HTTPException(status_code=404, detail=f"Player {request.player_id} not found")
    host.eliminate(request.player_id, request.reason)
    return match_to_dict(match_id, host, game_mode)


@app.delete("/matches/{match_id}")
def delete_match(match_id: str):
    host, _ = get_match(match_id)
    host.teardown()
    logger.info("Match %s torn down", match_id)
    return {"status": "torn_down", "match_id": match_id}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
