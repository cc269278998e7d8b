from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from threading import RLock
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Notifications fired by game sessions, once per successful transition."""
    GAME_STARTED = "GameStarted"
    CARD_PURCHASED = "CardPurchased"
    NUMBER_DRAWN = "NumberDrawn"
    WIN_CLAIMED = "WinClaimed"
    GAME_ENDED = "GameEnded"


ALL_EVENTS = "*"


@dataclass(frozen=True)
class GameEvent:
    """An observable side effect of a game transition."""
    event_type: EventType
    game_id: str
    timestamp: float
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.event_type.value,
            "game_id": self.game_id,
            "timestamp": self.timestamp,
            "payload": dict(self.payload),
        }


Handler = Callable[[GameEvent], Any]


class EventBus:
    """Threadsafe publish/subscribe bus for game events.

    Handlers are called synchronously in emit order. Subscribe to a single
    EventType or to ``ALL_EVENTS``.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Handler]] = {}
        self._lock = RLock()

    def subscribe(self, event: EventType | str, handler: Handler) -> None:
        """Subscribe a handler to an event type (or ``ALL_EVENTS``)."""
        key = _channel(event)
        with self._lock:
            handlers = self._handlers.setdefault(key, [])
            if handler not in handlers:
                handlers.append(handler)
                logger.debug("Subscribed handler %s to '%s'", handler, key)

    def unsubscribe(self, event: EventType | str, handler: Handler) -> None:
        key = _channel(event)
        with self._lock:
            handlers = self._handlers.get(key)
            if not handlers:
                return
            if handler in handlers:
                handlers.remove(handler)
            if not handlers:
                del self._handlers[key]

    def clear(self) -> None:
        """Remove all handlers (useful in tests)."""
        with self._lock:
            self._handlers.clear()

    def emit(self, event: GameEvent) -> List[Any]:
        """Deliver an event to its subscribers and return their results.

        A failing handler is logged and the remaining handlers still run.
        """
        with self._lock:
            handlers = list(self._handlers.get(event.event_type.value, []))
            handlers += self._handlers.get(ALL_EVENTS, [])
        if not handlers:
            logger.debug("Emitting %s with no subscribers", event.event_type.value)
            return []
        results: List[Any] = []
        for handler in handlers:
            try:
                results.append(handler(event))
            except Exception as exc:
                logger.exception(
                    "Error in handler %s for event '%s': %s",
                    handler, event.event_type.value, exc,
                )
        return results


def _channel(event: EventType | str) -> str:
    return event.value if isinstance(event, EventType) else event
