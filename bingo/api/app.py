"""
FastAPI Application - REST API for bingo games.

Endpoints:
    GET    /api/v1/games                           List games
    GET    /api/v1/games/{game_id}/state           Game state snapshot
    POST   /api/v1/games/{game_id}/cards           Purchase a card (join)
    GET    /api/v1/games/{game_id}/cards/{player}  Get a player's card
    POST   /api/v1/games/{game_id}/claims          Claim a win
    GET    /api/v1/games/{game_id}/draws           Drawn numbers
    POST   /api/v1/games/{game_id}/draws           Draw a number (operator)
    GET    /api/v1/games/{game_id}/players         Player counts
    GET    /api/v1/games/{game_id}/players/{player}  Has a player joined
    POST   /api/v1/games/{game_id}/end             End the round (operator)
    POST   /api/v1/games/{game_id}/reset           Reset the game (operator)
    POST   /api/v1/games/{game_id}/pause           Pause (operator)
    POST   /api/v1/games/{game_id}/unpause         Unpause (operator)
    WS     /api/v1/games/{game_id}/ws              Event stream

Operator endpoints require the X-Operator-Token header when an operator
token is configured.

Background drawing:
    Self-draw games get a random number every BINGO_DRAW_INTERVAL seconds
    while a round is active. Drawn numbers are pushed to WebSocket clients.

All responses are JSON with explicit Pydantic schemas.
"""

from contextlib import asynccontextmanager
from typing import Annotated, Optional
import json
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Header, Request, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings
from ..engine_core.errors import (
    BingoException,
    SessionNotFound,
    NoCard,
    UnauthorizedCaller,
    GameAlreadyInProgress,
    GameNotInProgress,
    GamePaused,
    DuplicateCard,
    AlreadyDrawn,
    InsufficientPlayers,
    InvalidDrawInterval,
)
from ..session import AutoDrawer
from .service import APIService
from .schemas import (
    # Request models
    PurchaseCardRequest,
    ClaimWinRequest,
    DrawRequest,
    # Response models
    GameStateResponse,
    CardResponse,
    DrawResponse,
    DrawnNumbersResponse,
    ClaimResponse,
    PlayerCountResponse,
    PlayerStatusResponse,
    GameListResponse,
    ActionResponse,
    ErrorResponse,
    HealthResponse,
    # Enums
    ErrorCode,
)

logger = logging.getLogger(__name__)

# Checked in order; anything else is a 422
ERROR_STATUS = [
    (SessionNotFound, 404),
    (NoCard, 404),
    (UnauthorizedCaller, 403),
    (InvalidDrawInterval, 429),
    (GameAlreadyInProgress, 409),
    (GameNotInProgress, 409),
    (GamePaused, 409),
    (DuplicateCard, 409),
    (AlreadyDrawn, 409),
    (InsufficientPlayers, 409),
]

OperatorToken = Annotated[
    Optional[str], Header(description="Operator credential for operator endpoints")
]


def status_for(exc: BingoException) -> int:
    for exc_type, status_code in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status_code
    return 422


def create_app(service: APIService | None = None, settings: Settings | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (built from settings if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    settings = settings or Settings.from_env()
    api_service = service or APIService.from_settings(settings)
    manager = api_service.session_manager

    # WebSocket connections per game
    ws_connections: dict[str, list[WebSocket]] = {}

    async def broadcast_to_game(game_id: str, message: dict):
        """Broadcast a message to all WebSocket connections for a game."""
        if game_id in ws_connections:
            dead_connections = []
            for ws in ws_connections[game_id]:
                try:
                    await ws.send_json(message)
                except (WebSocketDisconnect, RuntimeError) as e:
                    logger.debug("Dropping WebSocket for game %s: %s", game_id, e)
                    dead_connections.append(ws)
            for ws in dead_connections:
                ws_connections[game_id].remove(ws)

    async def flush_events(game_id: str):
        """Send the game's buffered events to its WebSocket clients."""
        if game_id not in manager:
            return
        for event in manager.drain_events(game_id):
            await broadcast_to_game(game_id, {"type": "event", "payload": event.to_dict()})

    async def on_auto_draw(drawn: list[tuple[str, int]]):
        for game_id, _ in drawn:
            await flush_events(game_id)

    drawer = AutoDrawer(manager, settings.draw_interval, on_draw=on_auto_draw)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        scheduler = AsyncIOScheduler()
        app.state.scheduler = scheduler
        if drawer.schedule(scheduler):
            scheduler.start()
        try:
            yield
        finally:
            if scheduler.running:
                scheduler.shutdown(wait=False)
            logger.info("Bingo API stopped")

    app = FastAPI(
        title="Bingo Engine API",
        description="""
Multiplayer bingo: seeded 5x5 cards, sequential draws from 1-99, and
verified row/column/diagonal wins.

## Round lifecycle

1. Players `POST /cards` until the player threshold is met; the round starts
2. Numbers are drawn (`POST /draws` by the operator, or automatically)
3. A player `POST /claims`; a verified line ends the round
4. The round also ends after 99 draws or an operator `POST /end`

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Game does not exist |
| `GAME_ALREADY_IN_PROGRESS` | Cards can't be assigned once a round is active |
| `GAME_NOT_IN_PROGRESS` | The round has ended |
| `INSUFFICIENT_PLAYERS` | The round has not started yet |
| `ALREADY_DRAWN` | Number was drawn before |
| `INVALID_NUMBER` | Number outside 1-99 |
| `INVALID_WIN` | No complete line, or already won |
| `UNAUTHORIZED_CALLER` | Operator token missing or wrong |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = api_service
    app.state.settings = settings
    app.state.drawer = drawer

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(BingoException)
    async def bingo_exception_handler(request: Request, exc: BingoException):
        status_code = status_for(exc)
        logger.debug("Request %s rejected (%d): %s", request.url.path, status_code, exc)
        return make_error_response(ErrorCode(exc.code), str(exc), status_code=status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return make_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Invalid request",
            status_code=422,
            details={"errors": jsonable_encoder(exc.errors())},
        )

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/games",
        response_model=GameListResponse,
        tags=["Games"],
        summary="List games",
    )
    async def list_games() -> GameListResponse:
        return api_service.list_games()

    @app.get(
        "/api/v1/games/{game_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Get the current game state",
    )
    async def get_game_state(game_id: str) -> GameStateResponse:
        """Snapshot of start/last-draw time, drawn numbers, players and outcome."""
        return api_service.get_game_state(game_id)

    @app.get(
        "/api/v1/games/{game_id}/players",
        response_model=PlayerCountResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Get player counts",
    )
    async def get_player_counts(game_id: str) -> PlayerCountResponse:
        return api_service.get_player_counts(game_id)

    @app.get(
        "/api/v1/games/{game_id}/players/{player}",
        response_model=PlayerStatusResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Check whether a player joined",
    )
    async def get_player_status(game_id: str, player: str) -> PlayerStatusResponse:
        return api_service.get_player_status(game_id, player)

    # =========================================================================
    # Card Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games/{game_id}/cards",
        response_model=CardResponse,
        responses={
            404: {"model": ErrorResponse, "description": "Game not found"},
            409: {"model": ErrorResponse, "description": "Round active or duplicate card"},
            422: {"model": ErrorResponse, "description": "Invalid player"},
        },
        tags=["Cards"],
        summary="Purchase a card",
    )
    async def purchase_card(game_id: str, body: PurchaseCardRequest) -> CardResponse:
        """
        Join the next round and receive a card.

        The round starts as soon as the player threshold is met; after that
        no more cards are handed out until the round ends.
        """
        try:
            return api_service.purchase_card(game_id, body)
        finally:
            await flush_events(game_id)

    @app.get(
        "/api/v1/games/{game_id}/cards/{player}",
        response_model=CardResponse,
        responses={404: {"model": ErrorResponse, "description": "Game or card not found"}},
        tags=["Cards"],
        summary="Get a player's card",
    )
    async def get_card(game_id: str, player: str) -> CardResponse:
        return api_service.get_card(game_id, player)

    @app.post(
        "/api/v1/games/{game_id}/claims",
        response_model=ClaimResponse,
        responses={
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse},
            422: {"model": ErrorResponse, "description": "Invalid win"},
        },
        tags=["Cards"],
        summary="Claim a win",
    )
    async def claim_win(game_id: str, body: ClaimWinRequest) -> ClaimResponse:
        """Verify the player's card; a complete line ends the round."""
        try:
            return api_service.claim_win(game_id, body)
        finally:
            await flush_events(game_id)

    # =========================================================================
    # Draw Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/games/{game_id}/draws",
        response_model=DrawnNumbersResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Draws"],
        summary="Get drawn numbers",
    )
    async def get_drawn_numbers(game_id: str) -> DrawnNumbersResponse:
        return api_service.get_drawn_numbers(game_id)

    @app.post(
        "/api/v1/games/{game_id}/draws",
        response_model=DrawResponse,
        responses={
            403: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse},
            422: {"model": ErrorResponse},
            429: {"model": ErrorResponse},
        },
        tags=["Draws"],
        summary="Draw a number (operator)",
    )
    async def draw_number(
        game_id: str,
        body: DrawRequest,
        x_operator_token: OperatorToken = None,
    ) -> DrawResponse:
        """Draw the given number, or a random unused one if `number` is omitted."""
        try:
            return api_service.draw(game_id, body, operator_token=x_operator_token)
        finally:
            await flush_events(game_id)

    # =========================================================================
    # Operator Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games/{game_id}/end",
        response_model=ActionResponse,
        responses={403: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Operator"],
        summary="End the active round",
    )
    async def end_game(game_id: str, x_operator_token: OperatorToken = None) -> ActionResponse:
        try:
            return api_service.end_game(game_id, operator_token=x_operator_token)
        finally:
            await flush_events(game_id)

    @app.post(
        "/api/v1/games/{game_id}/reset",
        response_model=ActionResponse,
        responses={403: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Operator"],
        summary="Reset the game for a new round",
    )
    async def reset_game(game_id: str, x_operator_token: OperatorToken = None) -> ActionResponse:
        return api_service.reset_game(game_id, operator_token=x_operator_token)

    @app.post(
        "/api/v1/games/{game_id}/pause",
        response_model=ActionResponse,
        responses={403: {"model": ErrorResponse}},
        tags=["Operator"],
        summary="Pause joins, draws and claims",
    )
    async def pause_game(game_id: str, x_operator_token: OperatorToken = None) -> ActionResponse:
        return api_service.pause_game(game_id, operator_token=x_operator_token)

    @app.post(
        "/api/v1/games/{game_id}/unpause",
        response_model=ActionResponse,
        responses={403: {"model": ErrorResponse}},
        tags=["Operator"],
        summary="Resume a paused game",
    )
    async def unpause_game(game_id: str, x_operator_token: OperatorToken = None) -> ActionResponse:
        return api_service.unpause_game(game_id, operator_token=x_operator_token)

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/games/{game_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, game_id: str):
        """
        WebSocket for real-time updates.

        Messages from server:
        - state_update: Current game state (sent on connect)
        - event: GameStarted, CardPurchased, NumberDrawn, WinClaimed, GameEnded
        - error: Error occurred

        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()

        if game_id not in manager:
            await websocket.send_json({
                "type": "error",
                "payload": {"message": f"Game {game_id} not found"},
            })
            await websocket.close(code=4404)
            return

        ws_connections.setdefault(game_id, []).append(websocket)

        try:
            await websocket.send_json({
                "type": "state_update",
                "payload": api_service.get_game_state(game_id).model_dump(mode="json"),
            })

            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })
                    continue
                if isinstance(message, dict) and message.get("type") == "ping":
                    await websocket.send_json({"type": "pong"})

        except WebSocketDisconnect:
            logger.debug("WebSocket for game %s disconnected", game_id)
        finally:
            if websocket in ws_connections.get(game_id, []):
                ws_connections[game_id].remove(websocket)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(status="healthy", service="bingo-engine", version=__version__)

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Bingo Engine API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app
