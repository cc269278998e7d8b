"""
Pytest fixtures for Bingo tests.
"""

import pytest

from ..engine_core.card import Card
from ..engine_core.number_pool import NumberPool
from ..engine_core.win_verifier import WinVerifier
from ..session import GameSession, SessionConfig, EventBus, ALL_EVENTS


# Seed 0 leaves the pool unshuffled: 1..12, free, 13..24
ZERO_SEED_NUMBERS = tuple(list(range(1, 13)) + [0] + list(range(13, 25)))

# Seed 98 swaps slot 0 with 99: 99, 2..12, free, 13..24
SEED_98_NUMBERS = (99,) + ZERO_SEED_NUMBERS[1:]


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def pool() -> NumberPool:
    return NumberPool()


@pytest.fixture
def verifier() -> WinVerifier:
    return WinVerifier()


@pytest.fixture
def zero_card() -> Card:
    """The card generated from seed 0."""
    return Card(owner="alice", numbers=ZERO_SEED_NUMBERS)


@pytest.fixture
def make_session(clock):
    """Factory for sessions with a fake clock and a deterministic draw RNG."""
    def _make(game_id="test_game", **config_kwargs) -> GameSession:
        config_kwargs.setdefault("rng_seed", 7)
        return GameSession(game_id, SessionConfig(**config_kwargs), clock=clock)
    return _make


@pytest.fixture
def session(make_session) -> GameSession:
    """An IDLE two-player session."""
    return make_session(min_players=2)


@pytest.fixture
def active_session(session) -> GameSession:
    """A started session: alice holds the seed-0 card, bob the seed-98 card."""
    session.join("alice", seed=0)
    session.join("bob", seed=98)
    return session


@pytest.fixture
def recorded_events():
    """Attach to a session's bus and collect every event."""
    def _attach(target: GameSession) -> list:
        events = []
        target.events.subscribe(ALL_EVENTS, events.append)
        return events
    return _attach


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()
