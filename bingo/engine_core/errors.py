"""
Typed failures for every bingo operation.

Each exception carries a machine-readable ``code`` so the API layer can
report it without string matching. A failed operation never leaves partial
state behind: validation always runs before the first mutation.
"""

from __future__ import annotations


class BingoException(Exception):
    """Base class for all bingo engine failures."""
    code = "BINGO_ERROR"


# ============ Lifecycle ============

class GameAlreadyInProgress(BingoException):
    """A round is active; cards can no longer be assigned."""
    code = "GAME_ALREADY_IN_PROGRESS"


class GameNotInProgress(BingoException):
    """The operation needs an active round."""
    code = "GAME_NOT_IN_PROGRESS"


class GamePaused(BingoException):
    """Mutating operations are disabled while the game is paused."""
    code = "GAME_PAUSED"


class InsufficientPlayers(BingoException):
    """Fewer players than the start threshold have joined."""
    code = "INSUFFICIENT_PLAYERS"

    def __init__(self, player_count: int, min_players: int):
        self.player_count = player_count
        self.min_players = min_players
        super().__init__(
            f"Need {min_players} players to play, got {player_count}"
        )


# ============ Cards ============

class InvalidCardPurchase(BingoException):
    """The card request itself is unacceptable (e.g. blank identity)."""
    code = "INVALID_CARD_PURCHASE"


class DuplicateCard(BingoException):
    """The player already holds a card in this round."""
    code = "DUPLICATE_CARD"

    def __init__(self, player: str):
        self.player = player
        super().__init__(f"Player {player} already has a card")


class NoCard(BingoException):
    """The player has no card in this round."""
    code = "NO_CARD"

    def __init__(self, player: str):
        self.player = player
        super().__init__(f"Player {player} has no card")


# ============ Draws ============

class InvalidDrawInterval(BingoException):
    """A draw arrived before the minimum interval elapsed."""
    code = "INVALID_DRAW_INTERVAL"


class InvalidNumber(BingoException):
    """The number is not a legal draw (must be 1..99)."""
    code = "INVALID_NUMBER"

    def __init__(self, number: int, message: str | None = None):
        self.number = number
        super().__init__(message or f"Invalid number {number}: must be between 1 and 99")


class OutOfRange(InvalidNumber):
    """Raised by the number pool for values outside 1..99."""
    code = "OUT_OF_RANGE"


class AlreadyDrawn(BingoException):
    """The number was drawn earlier in this round."""
    code = "ALREADY_DRAWN"

    def __init__(self, number: int):
        self.number = number
        super().__init__(f"Number {number} already drawn")


# ============ Access & claims ============

class UnauthorizedCaller(BingoException):
    """The caller is not allowed to perform this operation."""
    code = "UNAUTHORIZED_CALLER"


class InvalidWin(BingoException):
    """The claim was rejected: already won, or no complete line."""
    code = "INVALID_WIN"


# ============ Sessions ============

class SessionNotFound(BingoException):
    """No game is registered under the given id."""
    code = "SESSION_NOT_FOUND"

    def __init__(self, game_id: str):
        self.game_id = game_id
        super().__init__(f"Game {game_id} not found")
