"""
Game Session - The bingo round state machine.

LIFECYCLE:
    IDLE --join (threshold met)--> ACTIVE --win / 99 draws / end_game--> ENDED
    ENDED --reset (or next join)--> IDLE

RULES:
- Cards are handed out only while IDLE; the window closes the moment the
  player threshold is met.
- Numbers 1..99 are drawn without repetition; the 99th draw ends the round.
- A claim succeeds only when the claimant's card has a complete line.
- Every operation runs under the session lock and validates everything
  before mutating anything. A raised error means nothing changed.

RESET POLICY:
- ON_JOIN: an ended round stays readable until the next join resets it.
- ON_END: ending a round clears cards, pool and history immediately.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from threading import RLock
from typing import Callable
import logging
import random
import secrets
import time

from ..engine_core.card import Card, MAX_NUMBER
from ..engine_core.card_store import CardStore
from ..engine_core.number_pool import NumberPool
from ..engine_core.shuffle import ShuffleEngine
from ..engine_core.win_verifier import Line, WinVerifier
from ..engine_core.errors import (
    AlreadyDrawn,
    DuplicateCard,
    GameAlreadyInProgress,
    GameNotInProgress,
    GamePaused,
    InsufficientPlayers,
    InvalidCardPurchase,
    InvalidDrawInterval,
    InvalidNumber,
    InvalidWin,
)
from .events import EventBus, EventType, GameEvent

logger = logging.getLogger(__name__)

DEFAULT_SEED_BITS = 256


class GamePhase(Enum):
    """Phase of a bingo round."""
    IDLE = "idle"  # Waiting for players
    ACTIVE = "active"  # Drawing numbers
    ENDED = "ended"  # Won, exhausted or terminated


class ResetPolicy(Enum):
    """When an ended round's cards and draws are cleared."""
    ON_JOIN = "on_join"
    ON_END = "on_end"


class EndReason(Enum):
    WIN = "win"
    EXHAUSTED = "exhausted"
    TERMINATED = "terminated"


@dataclass
class SessionConfig:
    """
    Per-session options.

    min_players: distinct players needed to start a round
    reset_policy: see ResetPolicy
    self_draw: whether the background drawer draws for this session
    min_draw_interval: seconds required between two draws (0 disables)
    rng_seed: seed for the self-draw RNG (None = system entropy)
    """
    min_players: int = 2
    reset_policy: ResetPolicy = ResetPolicy.ON_JOIN
    self_draw: bool = True
    min_draw_interval: float = 0.0
    rng_seed: int | None = None

    def __post_init__(self):
        if self.min_players < 1:
            raise ValueError(f"min_players must be >= 1, got {self.min_players}")
        if self.min_draw_interval < 0:
            raise ValueError("min_draw_interval must be >= 0")


@dataclass
class GameSnapshot:
    """Read-only view of a session at one instant."""
    game_id: str
    phase: GamePhase
    start_time: float | None
    last_draw_time: float | None
    number_count: int
    drawn_numbers: list[int]
    is_ended: bool
    is_started: bool
    player_count: int
    min_players: int
    paused: bool
    winner: str | None = None
    end_reason: EndReason | None = None
    winning_line: Line | None = None

    @property
    def remaining_players(self) -> int:
        return max(0, self.min_players - self.player_count)

    def status_message(self) -> str:
        if not self.is_started:
            return "Game has not started yet"
        if self.is_ended:
            return "Game has ended"
        return (
            f"Game is active with {self.player_count} players. "
            f"{self.number_count} numbers drawn so far"
        )


@dataclass
class WinClaim:
    """Result of an accepted claim."""
    player: str
    card: Card
    line: Line
    draw_count: int


class PlayerRegistry:
    """Identities that joined the current round."""

    def __init__(self):
        self._players: set[str] = set()

    def add(self, player: str) -> bool:
        """Register a player; returns False if already present."""
        if player in self._players:
            return False
        self._players.add(player)
        return True

    def clear(self) -> None:
        self._players.clear()

    def __contains__(self, player: str) -> bool:
        return player in self._players

    def __len__(self) -> int:
        return len(self._players)


class GameSession:
    """
    One bingo game: a sequence of rounds sharing a game id and config.

    The session exclusively owns its number pool, draw history, card store
    and player registry. All public methods are serialized by one lock.

    Usage:
        session = GameSession("main", SessionConfig(min_players=2))
        session.join("alice")
        session.join("bob")          # round starts
        session.draw(37)
        session.claim_win("alice")   # raises InvalidWin until a line is full
    """

    def __init__(
        self,
        game_id: str,
        config: SessionConfig | None = None,
        *,
        event_bus: EventBus | None = None,
        seed_source: Callable[[], int] | None = None,
        clock: Callable[[], float] = time.time,
        shuffle_engine: ShuffleEngine | None = None,
        verifier: WinVerifier | None = None,
    ):
        self.game_id = game_id
        self.config = config or SessionConfig()
        self.events = event_bus or EventBus()

        self._seed_source = seed_source or (lambda: secrets.randbits(DEFAULT_SEED_BITS))
        self._clock = clock
        self._shuffle = shuffle_engine or ShuffleEngine()
        self._verifier = verifier or WinVerifier()
        self._rng = random.Random(self.config.rng_seed)
        self._lock = RLock()

        # Round state
        self._phase = GamePhase.IDLE
        self._pool = NumberPool()
        self._drawn: list[int] = []
        self._cards = CardStore()
        self._players = PlayerRegistry()
        self._start_time: float | None = None
        self._last_draw_time: float | None = None

        # Outcome of the last round
        self._winner: str | None = None
        self._winning_line: Line | None = None
        self._end_reason: EndReason | None = None

        self._paused = False

    # =========================================================================
    # Transitions
    # =========================================================================

    def join(self, player: str, seed: int | bytes | None = None) -> Card:
        """
        Give a player a card for the next round.

        Joining an ENDED session starts a fresh round first. When the
        player count reaches the threshold the round becomes ACTIVE.

        Raises:
            GamePaused, InvalidCardPurchase, GameAlreadyInProgress,
            DuplicateCard
        """
        with self._lock:
            self._ensure_not_paused()
            if not isinstance(player, str) or not player.strip():
                raise InvalidCardPurchase("Player identity must not be blank")
            if self._phase == GamePhase.ACTIVE:
                raise GameAlreadyInProgress(
                    f"Game {self.game_id} is in progress; cards are no longer assigned"
                )
            if self._phase == GamePhase.IDLE and self._cards.has_card(player):
                raise DuplicateCard(player)

            if seed is None:
                seed = self._seed_source()
            numbers = self._shuffle.generate_card(seed)

            if self._phase == GamePhase.ENDED:
                self._clear_round()
                self._clear_outcome()
                self._phase = GamePhase.IDLE
                logger.info("Game %s: new round opened by %s", self.game_id, player)

            now = self._clock()
            card = self._cards.assign(
                player, Card(owner=player, numbers=numbers, created_at=now)
            )
            self._players.add(player)
            logger.debug(
                "Game %s: card assigned to %s (%d/%d players)",
                self.game_id, player, len(self._players), self.config.min_players,
            )

            pending = [self._event(
                EventType.CARD_PURCHASED,
                now,
                player=player,
                numbers=list(card.numbers),
                player_count=len(self._players),
            )]
            if len(self._players) >= self.config.min_players:
                self._start(now)
                pending.append(self._event(
                    EventType.GAME_STARTED,
                    now,
                    start_time=now,
                    player_count=len(self._players),
                ))
            self._publish(pending)
            return replace(card)

    def draw(self, number: int) -> int:
        """
        Draw a specific number (operator-supplied).

        Raises:
            GamePaused, GameNotInProgress, InsufficientPlayers,
            InvalidNumber, AlreadyDrawn, InvalidDrawInterval
        """
        with self._lock:
            self._ensure_not_paused()
            self._ensure_drawable()
            return self._draw(number)

    def draw_next(self) -> int:
        """Draw a uniformly random unused number (self-draw variant)."""
        with self._lock:
            self._ensure_not_paused()
            self._ensure_drawable()
            number = self._rng.choice(self._pool.remaining())
            return self._draw(number)

    def claim_win(self, player: str) -> WinClaim:
        """
        Verify a player's card and end the round on success.

        Raises:
            GamePaused, GameNotInProgress, InsufficientPlayers,
            NoCard (via CardStore), InvalidWin
        """
        with self._lock:
            self._ensure_not_paused()
            if self._phase == GamePhase.ENDED:
                raise GameNotInProgress(f"Game {self.game_id} has ended")
            if self._phase == GamePhase.IDLE:
                raise InsufficientPlayers(len(self._players), self.config.min_players)

            card = self._cards.get(player)
            if card.has_won:
                raise InvalidWin(f"Player {player} has already won")
            line = self._verifier.winning_line(card, self._pool)
            if line is None:
                raise InvalidWin(f"Card of {player} has no complete line")

            card.has_won = True
            self._winner = player
            self._winning_line = line
            claim = WinClaim(
                player=player, card=replace(card), line=line, draw_count=len(self._drawn),
            )
            logger.info(
                "Game %s: %s wins on %s after %d draws",
                self.game_id, player, line.describe(), len(self._drawn),
            )

            now = self._clock()
            self._publish([self._event(
                EventType.WIN_CLAIMED,
                now,
                player=player,
                line_kind=line.kind.value,
                line_index=line.index,
                draw_count=len(self._drawn),
            )])
            self._end(EndReason.WIN, now)
            return claim

    def end_game(self) -> None:
        """Terminate the active round. A second call fails, changing nothing."""
        with self._lock:
            if self._phase != GamePhase.ACTIVE:
                raise GameNotInProgress(f"Game {self.game_id} is not in progress")
            self._end(EndReason.TERMINATED, self._clock())

    def reset(self) -> None:
        """Clear cards, players, pool and history, and return to IDLE."""
        with self._lock:
            if self._phase == GamePhase.ACTIVE:
                raise GameAlreadyInProgress(
                    f"Game {self.game_id} is in progress; end it before resetting"
                )
            self._clear_round()
            self._clear_outcome()
            self._phase = GamePhase.IDLE
            logger.info("Game %s reset", self.game_id)

    def pause(self) -> None:
        with self._lock:
            if not self._paused:
                self._paused = True
                logger.info("Game %s paused", self.game_id)

    def unpause(self) -> None:
        with self._lock:
            if self._paused:
                self._paused = False
                logger.info("Game %s unpaused", self.game_id)

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def phase(self) -> GamePhase:
        with self._lock:
            return self._phase

    @property
    def paused(self) -> bool:
        with self._lock:
            return self._paused

    @property
    def player_count(self) -> int:
        with self._lock:
            return len(self._players)

    @property
    def remaining_players(self) -> int:
        with self._lock:
            return max(0, self.config.min_players - len(self._players))

    def drawn_numbers(self) -> list[int]:
        with self._lock:
            return list(self._drawn)

    def is_drawn(self, number: int) -> bool:
        with self._lock:
            return self._pool.is_used(number)

    def get_card(self, player: str) -> Card:
        """A copy of the player's card; the session keeps the original."""
        with self._lock:
            return replace(self._cards.get(player))

    def has_card(self, player: str) -> bool:
        with self._lock:
            return self._cards.has_card(player)

    def has_joined(self, player: str) -> bool:
        with self._lock:
            return player in self._players

    def snapshot(self) -> GameSnapshot:
        with self._lock:
            return GameSnapshot(
                game_id=self.game_id,
                phase=self._phase,
                start_time=self._start_time,
                last_draw_time=self._last_draw_time,
                number_count=len(self._drawn),
                drawn_numbers=list(self._drawn),
                is_ended=self._phase == GamePhase.ENDED,
                is_started=self._phase != GamePhase.IDLE,
                player_count=len(self._players),
                min_players=self.config.min_players,
                paused=self._paused,
                winner=self._winner,
                end_reason=self._end_reason,
                winning_line=self._winning_line,
            )

    # =========================================================================
    # Internals (callers hold the lock)
    # =========================================================================

    def _ensure_not_paused(self) -> None:
        if self._paused:
            raise GamePaused(f"Game {self.game_id} is paused")

    def _ensure_drawable(self) -> None:
        if self._phase == GamePhase.ENDED:
            raise GameNotInProgress(f"Game {self.game_id} has ended")
        if self._phase == GamePhase.IDLE or len(self._players) < self.config.min_players:
            raise InsufficientPlayers(len(self._players), self.config.min_players)

    def _draw(self, number: int) -> int:
        if isinstance(number, bool) or not isinstance(number, int):
            raise InvalidNumber(number, f"Number must be an integer, got {number!r}")
        if not 1 <= number <= MAX_NUMBER:
            raise InvalidNumber(number)
        if self._pool.is_used(number):
            raise AlreadyDrawn(number)

        now = self._clock()
        interval = self.config.min_draw_interval
        if interval and self._last_draw_time is not None:
            elapsed = now - self._last_draw_time
            if elapsed < interval:
                raise InvalidDrawInterval(
                    f"Draws must be {interval}s apart; only {elapsed:.1f}s elapsed"
                )

        self._pool.mark_used(number)
        self._drawn.append(number)
        self._last_draw_time = now
        logger.debug(
            "Game %s: drew %d (%d/%d)", self.game_id, number, len(self._drawn), MAX_NUMBER
        )

        self._publish([self._event(
            EventType.NUMBER_DRAWN,
            now,
            number=number,
            draw_count=len(self._drawn),
        )])
        if len(self._drawn) >= MAX_NUMBER:
            self._end(EndReason.EXHAUSTED, now)
        return number

    def _start(self, now: float) -> None:
        self._pool.reset()
        self._drawn.clear()
        self._start_time = now
        self._last_draw_time = now
        self._winner = None
        self._winning_line = None
        self._end_reason = None
        self._phase = GamePhase.ACTIVE
        logger.info(
            "Game %s started with %d players", self.game_id, len(self._players)
        )

    def _end(self, reason: EndReason, now: float) -> None:
        self._phase = GamePhase.ENDED
        self._end_reason = reason
        draw_count = len(self._drawn)
        logger.info(
            "Game %s ended (%s) after %d draws", self.game_id, reason.value, draw_count
        )
        self._publish([self._event(
            EventType.GAME_ENDED,
            now,
            reason=reason.value,
            winner=self._winner,
            draw_count=draw_count,
        )])
        if self.config.reset_policy == ResetPolicy.ON_END:
            self._clear_round()

    def _clear_round(self) -> None:
        self._cards.clear_all()
        self._players.clear()
        self._pool.reset()
        self._drawn.clear()

    def _clear_outcome(self) -> None:
        self._start_time = None
        self._last_draw_time = None
        self._winner = None
        self._winning_line = None
        self._end_reason = None

    def _event(self, event_type: EventType, now: float, **payload) -> GameEvent:
        return GameEvent(
            event_type=event_type,
            game_id=self.game_id,
            timestamp=now,
            payload=payload,
        )

    def _publish(self, events: list[GameEvent]) -> None:
        for event in events:
            self.events.emit(event)
