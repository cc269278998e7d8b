"""
Session Module - Game sessions and their lifecycle.

A session is one named bingo game:
- Players join and receive cards until the threshold is met
- Numbers are drawn (by an operator or the background drawer)
- A valid claim, exhaustion, or termination ends the round
- A reset (or the next join) opens a new round

Sessions are in-memory and isolated from each other.
"""

from .events import EventBus, EventType, GameEvent, ALL_EVENTS
from .game import (
    GameSession,
    GamePhase,
    GameSnapshot,
    SessionConfig,
    ResetPolicy,
    EndReason,
    PlayerRegistry,
    WinClaim,
)
from .manager import SessionManager
from .drawer import AutoDrawer

__all__ = [
    "EventBus",
    "EventType",
    "GameEvent",
    "ALL_EVENTS",
    "GameSession",
    "GamePhase",
    "GameSnapshot",
    "SessionConfig",
    "ResetPolicy",
    "EndReason",
    "PlayerRegistry",
    "WinClaim",
    "SessionManager",
    "AutoDrawer",
]
