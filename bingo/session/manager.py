"""
Session Manager - Owns the named game sessions.

Each game id maps to one independent GameSession: its own lock, pool,
cards and players. Nothing is shared between sessions.

PERSISTENCE RULES:
- Sessions live in memory only
- A session's round state is cleared by reset, never carried across games

Every session's events are also recorded in a per-game outbox so the
API layer can forward them to WebSocket clients after each request.
"""

from __future__ import annotations
from collections import deque
from threading import RLock
from typing import Callable
import logging

from ..engine_core.errors import SessionNotFound
from .events import ALL_EVENTS, GameEvent
from .game import GamePhase, GameSession, SessionConfig

logger = logging.getLogger(__name__)

MAX_OUTBOX = 1000


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions under unique game ids
    - Look sessions up for the API and the background drawer
    - Buffer emitted events per game

    Usage:
        manager = SessionManager()
        manager.create_session("main", SessionConfig(min_players=3))
        session = manager.get_session("main")
    """

    def __init__(self, session_factory: Callable[..., GameSession] = GameSession):
        self._sessions: dict[str, GameSession] = {}
        self._outboxes: dict[str, deque[GameEvent]] = {}
        self._session_factory = session_factory
        self._lock = RLock()

    def create_session(
        self,
        game_id: str,
        config: SessionConfig | None = None,
        **session_kwargs,
    ) -> GameSession:
        """
        Create and register a new game session.

        Args:
            game_id: Unique name for the game
            config: Session options (defaults apply if omitted)
            **session_kwargs: Passed through to the session (seed_source, clock...)

        Raises:
            ValueError: game_id is blank or already registered
        """
        if not game_id or not game_id.strip():
            raise ValueError("game_id must not be blank")

        with self._lock:
            if game_id in self._sessions:
                raise ValueError(f"Game {game_id} already exists")

            session = self._session_factory(game_id, config, **session_kwargs)
            outbox: deque[GameEvent] = deque(maxlen=MAX_OUTBOX)
            session.events.subscribe(ALL_EVENTS, outbox.append)

            self._sessions[game_id] = session
            self._outboxes[game_id] = outbox

        logger.info(
            "Created game %s (min_players=%d, reset_policy=%s, self_draw=%s)",
            game_id,
            session.config.min_players,
            session.config.reset_policy.value,
            session.config.self_draw,
        )
        return session

    def get_session(self, game_id: str) -> GameSession:
        with self._lock:
            session = self._sessions.get(game_id)
        if session is None:
            raise SessionNotFound(game_id)
        return session

    def end_session(self, game_id: str) -> bool:
        """Remove a game. Returns False if it did not exist."""
        with self._lock:
            session = self._sessions.pop(game_id, None)
            self._outboxes.pop(game_id, None)
        if session is None:
            return False
        session.events.clear()
        logger.info("Removed game %s", game_id)
        return True

    def list_sessions(self) -> list[str]:
        with self._lock:
            return sorted(self._sessions)

    def active_sessions(self) -> list[GameSession]:
        """Sessions currently drawing numbers."""
        with self._lock:
            sessions = list(self._sessions.values())
        return [s for s in sessions if s.phase == GamePhase.ACTIVE]

    def drain_events(self, game_id: str) -> list[GameEvent]:
        """Return and clear the buffered events for a game."""
        with self._lock:
            outbox = self._outboxes.get(game_id)
            if outbox is None:
                raise SessionNotFound(game_id)
        events = []
        while outbox:
            events.append(outbox.popleft())
        return events

    def __contains__(self, game_id: str) -> bool:
        with self._lock:
            return game_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
