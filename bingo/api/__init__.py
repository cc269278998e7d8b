"""
API Module - HTTP interface for bingo games.

Clients:
1. Purchase cards for a game (joining its next round)
2. Poll the game state or subscribe over WebSocket
3. Claim wins

The operator draws numbers (or lets the background drawer do it),
ends, resets and pauses games.

Run with: uvicorn bingo.api.app:create_app --factory
"""

from .schemas import (
    # Requests
    PurchaseCardRequest,
    ClaimWinRequest,
    DrawRequest,
    # Responses
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
    # Shared
    LineInfo,
    GameStatus,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "PurchaseCardRequest",
    "ClaimWinRequest",
    "DrawRequest",
    # Responses
    "GameStateResponse",
    "CardResponse",
    "DrawResponse",
    "DrawnNumbersResponse",
    "ClaimResponse",
    "PlayerCountResponse",
    "PlayerStatusResponse",
    "GameListResponse",
    "ActionResponse",
    "ErrorResponse",
    "HealthResponse",
    # Shared
    "LineInfo",
    "GameStatus",
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
