"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between clients and the engine.

Error Codes:
- SESSION_NOT_FOUND: Game id does not exist
- GAME_ALREADY_IN_PROGRESS / GAME_NOT_IN_PROGRESS / GAME_PAUSED: lifecycle conflicts
- INVALID_CARD_PURCHASE / DUPLICATE_CARD / NO_CARD: card problems
- INVALID_NUMBER / OUT_OF_RANGE / ALREADY_DRAWN / INVALID_DRAW_INTERVAL: draw problems
- INSUFFICIENT_PLAYERS: threshold not met yet
- UNAUTHORIZED_CALLER: operator token missing or wrong
- INVALID_WIN: claim rejected
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class GameStatus(str, Enum):
    """Round phase values."""
    IDLE = "idle"
    ACTIVE = "active"
    ENDED = "ended"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    GAME_ALREADY_IN_PROGRESS = "GAME_ALREADY_IN_PROGRESS"
    GAME_NOT_IN_PROGRESS = "GAME_NOT_IN_PROGRESS"
    GAME_PAUSED = "GAME_PAUSED"
    INVALID_CARD_PURCHASE = "INVALID_CARD_PURCHASE"
    DUPLICATE_CARD = "DUPLICATE_CARD"
    NO_CARD = "NO_CARD"
    INVALID_DRAW_INTERVAL = "INVALID_DRAW_INTERVAL"
    INVALID_NUMBER = "INVALID_NUMBER"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    ALREADY_DRAWN = "ALREADY_DRAWN"
    INSUFFICIENT_PLAYERS = "INSUFFICIENT_PLAYERS"
    UNAUTHORIZED_CALLER = "UNAUTHORIZED_CALLER"
    INVALID_WIN = "INVALID_WIN"
    VALIDATION_ERROR = "VALIDATION_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class LineInfo(BaseModel):
    """A completed line on a card."""
    kind: str = Field(description="row, column or diagonal")
    index: int = Field(description="0-based row/column; diagonal 0 = main, 1 = anti")
    slots: list[int] = Field(description="Indices into the 25-slot card")
    description: str


# =============================================================================
# Request Models
# =============================================================================

class PurchaseCardRequest(BaseModel):
    """Request a card for a player."""
    player: str = Field(..., description="Player identity (e.g. wallet address)")
    seed: Optional[int] = Field(
        None, ge=0, description="Card seed; a random 256-bit seed is used if omitted"
    )


class ClaimWinRequest(BaseModel):
    """Claim a win for a player."""
    player: str = Field(..., description="Player identity")


class DrawRequest(BaseModel):
    """Draw a number. Omit `number` for a random unused number."""
    number: Optional[int] = Field(None, description="Number to draw (1-99)")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class GameStateResponse(BaseModel):
    """Full state snapshot of a game."""
    game_id: str
    status: GameStatus
    message: str
    start_time: Optional[float] = None
    last_draw_time: Optional[float] = None
    drawn_numbers_count: int = 0
    drawn_numbers: list[int] = Field(default_factory=list)
    is_ended: bool = False
    is_started: bool = False
    player_count: int = 0
    min_players: int
    remaining_players: int
    paused: bool = False
    winner: Optional[str] = None
    end_reason: Optional[str] = None
    winning_line: Optional[LineInfo] = None


class CardResponse(BaseModel):
    """A player's card."""
    game_id: str
    player: str
    numbers: list[int] = Field(description="25 values, row-major; 0 is the free cell")
    grid: list[list[int]] = Field(description="The same values as 5 rows")
    free_index: int = 12
    has_won: bool = False


class DrawResponse(BaseModel):
    """Result of drawing a number."""
    game_id: str
    number: int
    drawn_numbers_count: int
    is_ended: bool


class DrawnNumbersResponse(BaseModel):
    """Numbers drawn so far, in draw order."""
    game_id: str
    drawn_numbers: list[int]
    count: int


class ClaimResponse(BaseModel):
    """Result of an accepted win claim."""
    game_id: str
    player: str
    success: bool
    message: str
    line: LineInfo
    draw_count: int


class PlayerCountResponse(BaseModel):
    """Player counts against the start threshold."""
    game_id: str
    player_count: int
    min_players: int
    remaining_players: int


class PlayerStatusResponse(BaseModel):
    """Whether an identity has joined the current round."""
    game_id: str
    player: str
    has_joined: bool
    has_card: bool


class GameListResponse(BaseModel):
    """Configured games."""
    games: list[str]
    count: int


class ActionResponse(BaseModel):
    """Result of an operator action (end, reset, pause, unpause)."""
    success: bool
    game_id: str
    message: str
    status: GameStatus
    paused: bool


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    service: str = "bingo-engine"
    version: str = "0.1.0"
    api_version: str = "v1"
