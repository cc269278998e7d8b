"""
Engine Core - Game-agnostic bingo primitives.

This module contains:
- Card: a player's 25-slot board
- ShuffleEngine: deterministic card generation from a seed
- NumberPool: which numbers have been drawn
- CardStore: player -> card assignment
- WinVerifier: line completion checks
- Errors: the typed failures raised by every operation
"""

from .card import Card, CARD_SIZE, GRID_SIZE, FREE_INDEX, FREE_VALUE, MAX_NUMBER
from .shuffle import ShuffleEngine, generate_card, SEED_BITS
from .number_pool import NumberPool
from .card_store import CardStore
from .win_verifier import WinVerifier, Line, LineKind, WINNING_LINES
from .errors import (
    BingoException,
    GameAlreadyInProgress,
    GameNotInProgress,
    GamePaused,
    InvalidCardPurchase,
    DuplicateCard,
    NoCard,
    InvalidDrawInterval,
    InvalidNumber,
    OutOfRange,
    AlreadyDrawn,
    InsufficientPlayers,
    UnauthorizedCaller,
    InvalidWin,
    SessionNotFound,
)

__all__ = [
    # Card
    "Card",
    "CARD_SIZE",
    "GRID_SIZE",
    "FREE_INDEX",
    "FREE_VALUE",
    "MAX_NUMBER",
    # Components
    "ShuffleEngine",
    "generate_card",
    "SEED_BITS",
    "NumberPool",
    "CardStore",
    "WinVerifier",
    "Line",
    "LineKind",
    "WINNING_LINES",
    # Errors
    "BingoException",
    "GameAlreadyInProgress",
    "GameNotInProgress",
    "GamePaused",
    "InvalidCardPurchase",
    "DuplicateCard",
    "NoCard",
    "InvalidDrawInterval",
    "InvalidNumber",
    "OutOfRange",
    "AlreadyDrawn",
    "InsufficientPlayers",
    "UnauthorizedCaller",
    "InvalidWin",
    "SessionNotFound",
]
