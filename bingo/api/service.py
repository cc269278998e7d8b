"""
API Service - Business logic layer between API and engine.

The service:
1. Checks operator authorization before any session call
2. Translates requests to session operations
3. Formats session state as response schemas

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
Engine failures propagate as BingoException subclasses.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import secrets

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
    # Shared
    LineInfo,
    GameStatus,
)
from ..config import Settings
from ..engine_core.card import Card, FREE_INDEX
from ..engine_core.errors import UnauthorizedCaller
from ..engine_core.win_verifier import Line
from ..session import GameSession, SessionManager

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService.from_settings(Settings.from_env())

        card = service.purchase_card("main", PurchaseCardRequest(player="alice"))
        state = service.get_game_state("main")
        service.draw("main", DrawRequest(number=37), operator_token="secret")
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # None means every caller counts as the operator (development)
    operator_token: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> APIService:
        manager = SessionManager()
        for game_id in settings.games:
            manager.create_session(game_id, settings.session_config())
        if settings.operator_token is None:
            logger.warning(
                "BINGO_OPERATOR_TOKEN is not set; operator endpoints are open to every caller"
            )
        return cls(session_manager=manager, operator_token=settings.operator_token)

    # =========================================================================
    # Access control
    # =========================================================================

    def authorize_operator(self, token: str | None) -> None:
        """Raise UnauthorizedCaller unless the token matches the operator's."""
        if self.operator_token is None:
            return
        if token is None or not secrets.compare_digest(
            token.encode(), self.operator_token.encode()
        ):
            raise UnauthorizedCaller("Operator credentials required")

    # =========================================================================
    # Queries
    # =========================================================================

    def list_games(self) -> GameListResponse:
        games = self.session_manager.list_sessions()
        return GameListResponse(games=games, count=len(games))

    def get_game_state(self, game_id: str) -> GameStateResponse:
        session = self.session_manager.get_session(game_id)
        snapshot = session.snapshot()
        return GameStateResponse(
            game_id=game_id,
            status=GameStatus(snapshot.phase.value),
            message=snapshot.status_message(),
            start_time=snapshot.start_time,
            last_draw_time=snapshot.last_draw_time,
            drawn_numbers_count=snapshot.number_count,
            drawn_numbers=snapshot.drawn_numbers,
            is_ended=snapshot.is_ended,
            is_started=snapshot.is_started,
            player_count=snapshot.player_count,
            min_players=snapshot.min_players,
            remaining_players=snapshot.remaining_players,
            paused=snapshot.paused,
            winner=snapshot.winner,
            end_reason=snapshot.end_reason.value if snapshot.end_reason else None,
            winning_line=_line_info(snapshot.winning_line) if snapshot.winning_line else None,
        )

    def get_card(self, game_id: str, player: str) -> CardResponse:
        session = self.session_manager.get_session(game_id)
        return _card_response(game_id, session.get_card(player))

    def get_drawn_numbers(self, game_id: str) -> DrawnNumbersResponse:
        numbers = self.session_manager.get_session(game_id).drawn_numbers()
        return DrawnNumbersResponse(game_id=game_id, drawn_numbers=numbers, count=len(numbers))

    def get_player_counts(self, game_id: str) -> PlayerCountResponse:
        snapshot = self.session_manager.get_session(game_id).snapshot()
        return PlayerCountResponse(
            game_id=game_id,
            player_count=snapshot.player_count,
            min_players=snapshot.min_players,
            remaining_players=snapshot.remaining_players,
        )

    def get_player_status(self, game_id: str, player: str) -> PlayerStatusResponse:
        session = self.session_manager.get_session(game_id)
        return PlayerStatusResponse(
            game_id=game_id,
            player=player,
            has_joined=session.has_joined(player),
            has_card=session.has_card(player),
        )

    # =========================================================================
    # Player operations
    # =========================================================================

    def purchase_card(self, game_id: str, request: PurchaseCardRequest) -> CardResponse:
        """Join the game's next round and receive a card."""
        session = self.session_manager.get_session(game_id)
        card = session.join(request.player, seed=request.seed)
        return _card_response(game_id, card)

    def claim_win(self, game_id: str, request: ClaimWinRequest) -> ClaimResponse:
        session = self.session_manager.get_session(game_id)
        claim = session.claim_win(request.player)
        return ClaimResponse(
            game_id=game_id,
            player=claim.player,
            success=True,
            message="You won!",
            line=_line_info(claim.line),
            draw_count=claim.draw_count,
        )

    # =========================================================================
    # Operator operations
    # =========================================================================

    def draw(
        self,
        game_id: str,
        request: DrawRequest,
        operator_token: str | None = None,
    ) -> DrawResponse:
        self.authorize_operator(operator_token)
        session = self.session_manager.get_session(game_id)
        if request.number is None:
            number = session.draw_next()
        else:
            number = session.draw(request.number)
        snapshot = session.snapshot()
        return DrawResponse(
            game_id=game_id,
            number=number,
            drawn_numbers_count=snapshot.number_count,
            is_ended=snapshot.is_ended,
        )

    def end_game(self, game_id: str, operator_token: str | None = None) -> ActionResponse:
        self.authorize_operator(operator_token)
        session = self.session_manager.get_session(game_id)
        session.end_game()
        return _action_response(session, "Game has ended")

    def reset_game(self, game_id: str, operator_token: str | None = None) -> ActionResponse:
        self.authorize_operator(operator_token)
        session = self.session_manager.get_session(game_id)
        session.reset()
        return _action_response(session, "Game has been reset")

    def pause_game(self, game_id: str, operator_token: str | None = None) -> ActionResponse:
        self.authorize_operator(operator_token)
        session = self.session_manager.get_session(game_id)
        session.pause()
        return _action_response(session, "Game paused")

    def unpause_game(self, game_id: str, operator_token: str | None = None) -> ActionResponse:
        self.authorize_operator(operator_token)
        session = self.session_manager.get_session(game_id)
        session.unpause()
        return _action_response(session, "Game unpaused")


# =============================================================================
# Conversion Helpers
# =============================================================================

def _line_info(line: Line) -> LineInfo:
    return LineInfo(
        kind=line.kind.value,
        index=line.index,
        slots=list(line.slots),
        description=line.describe(),
    )


def _card_response(game_id: str, card: Card) -> CardResponse:
    return CardResponse(
        game_id=game_id,
        player=card.owner,
        numbers=list(card.numbers),
        grid=[list(row) for row in card.rows],
        free_index=FREE_INDEX,
        has_won=card.has_won,
    )


def _action_response(session: GameSession, message: str) -> ActionResponse:
    snapshot = session.snapshot()
    return ActionResponse(
        success=True,
        game_id=session.game_id,
        message=message,
        status=GameStatus(snapshot.phase.value),
        paused=snapshot.paused,
    )
