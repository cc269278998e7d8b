"""
Tests for API layer.

Tests:
- API service methods
- HTTP endpoints and error mapping
- Operator authorization
- WebSocket connection handling
"""

import pytest
from fastapi.testclient import TestClient

from ..api.app import create_app, status_for
from ..api.schemas import (
    ClaimWinRequest,
    DrawRequest,
    GameStatus,
    PurchaseCardRequest,
)
from ..api.service import APIService
from ..config import Settings
from ..engine_core.errors import (
    GameNotInProgress,
    InvalidDrawInterval,
    InvalidWin,
    NoCard,
    SessionNotFound,
    UnauthorizedCaller,
)
from ..session import SessionConfig, SessionManager
from ..session.drawer import JOB_ID
from .conftest import ZERO_SEED_NUMBERS

TOKEN = "secret"
OPERATOR = {"X-Operator-Token": TOKEN}


@pytest.fixture
def settings() -> Settings:
    return Settings(games=["main", "side"], draw_interval=0, operator_token=TOKEN)


@pytest.fixture
def client(settings):
    app = create_app(settings=settings)
    with TestClient(app) as client:
        yield client


def join_both(client, game_id="main"):
    """Alice gets the seed-0 card, bob the seed-98 card; the round starts."""
    client.post(f"/api/v1/games/{game_id}/cards", json={"player": "alice", "seed": 0})
    client.post(f"/api/v1/games/{game_id}/cards", json={"player": "bob", "seed": 98})


class TestAPIService:
    """Tests for APIService."""

    @pytest.fixture
    def service(self):
        manager = SessionManager()
        manager.create_session("main", SessionConfig(min_players=2, rng_seed=3))
        return APIService(session_manager=manager, operator_token=TOKEN)

    def test_from_settings_creates_games(self, settings):
        service = APIService.from_settings(settings)
        assert service.list_games().games == ["main", "side"]
        assert service.operator_token == TOKEN

    def test_purchase_and_state(self, service):
        card = service.purchase_card("main", PurchaseCardRequest(player="alice", seed=0))
        assert card.numbers == list(ZERO_SEED_NUMBERS)
        assert card.grid[2] == [11, 12, 0, 13, 14]
        assert card.free_index == 12

        state = service.get_game_state("main")
        assert state.status == GameStatus.IDLE
        assert state.message == "Game has not started yet"
        assert state.player_count == 1
        assert state.remaining_players == 1

    def test_full_round(self, service):
        service.purchase_card("main", PurchaseCardRequest(player="alice", seed=0))
        service.purchase_card("main", PurchaseCardRequest(player="bob", seed=98))
        assert service.get_game_state("main").status == GameStatus.ACTIVE

        for n in [1, 2, 3, 4, 5]:
            service.draw("main", DrawRequest(number=n), operator_token=TOKEN)

        claim = service.claim_win("main", ClaimWinRequest(player="alice"))
        assert claim.success
        assert claim.message == "You won!"
        assert claim.line.description == "row 1"
        assert claim.draw_count == 5

        state = service.get_game_state("main")
        assert state.status == GameStatus.ENDED
        assert state.winner == "alice"
        assert state.end_reason == "win"
        assert state.winning_line.slots == [0, 1, 2, 3, 4]

    def test_random_draw(self, service):
        service.purchase_card("main", PurchaseCardRequest(player="alice"))
        service.purchase_card("main", PurchaseCardRequest(player="bob"))

        response = service.draw("main", DrawRequest(), operator_token=TOKEN)

        assert 1 <= response.number <= 99
        assert service.get_drawn_numbers("main").drawn_numbers == [response.number]

    def test_operator_token_required(self, service):
        with pytest.raises(UnauthorizedCaller):
            service.draw("main", DrawRequest(number=1))
        with pytest.raises(UnauthorizedCaller):
            service.end_game("main", operator_token="wrong")
        with pytest.raises(UnauthorizedCaller):
            service.pause_game("main", operator_token="")

    def test_no_token_configured_allows_everyone(self):
        manager = SessionManager()
        manager.create_session("main", SessionConfig(min_players=1))
        service = APIService(session_manager=manager)

        service.purchase_card("main", PurchaseCardRequest(player="alice"))
        assert service.draw("main", DrawRequest(number=9)).number == 9

    def test_unknown_game(self, service):
        with pytest.raises(SessionNotFound):
            service.get_game_state("nope")

    def test_player_status(self, service):
        service.purchase_card("main", PurchaseCardRequest(player="alice"))
        status = service.get_player_status("main", "alice")
        assert status.has_joined and status.has_card
        assert not service.get_player_status("main", "bob").has_joined

    def test_missing_card(self, service):
        with pytest.raises(NoCard):
            service.get_card("main", "alice")

    def test_operator_actions(self, service):
        service.purchase_card("main", PurchaseCardRequest(player="alice"))
        service.purchase_card("main", PurchaseCardRequest(player="bob"))

        paused = service.pause_game("main", operator_token=TOKEN)
        assert paused.paused and paused.message == "Game paused"
        assert not service.unpause_game("main", operator_token=TOKEN).paused

        ended = service.end_game("main", operator_token=TOKEN)
        assert ended.status == GameStatus.ENDED
        assert ended.message == "Game has ended"
        with pytest.raises(GameNotInProgress):
            service.end_game("main", operator_token=TOKEN)

        reset = service.reset_game("main", operator_token=TOKEN)
        assert reset.status == GameStatus.IDLE
        assert service.get_player_counts("main").player_count == 0


class TestErrorStatus:
    """Exception to HTTP status mapping."""

    def test_mapping(self):
        assert status_for(SessionNotFound("x")) == 404
        assert status_for(NoCard("alice")) == 404
        assert status_for(UnauthorizedCaller("no")) == 403
        assert status_for(InvalidDrawInterval("wait")) == 429
        assert status_for(GameNotInProgress("ended")) == 409
        assert status_for(InvalidWin("no line")) == 422


class TestGameEndpoints:
    """HTTP endpoints."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["docs"] == "/api/docs"

    def test_list_games(self, client):
        data = client.get("/api/v1/games").json()
        assert data == {"games": ["main", "side"], "count": 2}

    def test_initial_state(self, client):
        response = client.get("/api/v1/games/main/state")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "idle"
        assert data["is_started"] is False
        assert data["drawn_numbers"] == []
        assert data["min_players"] == 2

    def test_unknown_game(self, client):
        response = client.get("/api/v1/games/nope/state")
        assert response.status_code == 404
        data = response.json()
        assert data["error_code"] == "SESSION_NOT_FOUND"
        assert data["api_version"] == "v1"

    def test_purchase_card(self, client):
        response = client.post(
            "/api/v1/games/main/cards", json={"player": "alice", "seed": 0}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["numbers"] == list(ZERO_SEED_NUMBERS)
        assert data["player"] == "alice"

        card = client.get("/api/v1/games/main/cards/alice").json()
        assert card["numbers"] == data["numbers"]

        players = client.get("/api/v1/games/main/players").json()
        assert players["player_count"] == 1
        assert players["remaining_players"] == 1

        status = client.get("/api/v1/games/main/players/alice").json()
        assert status["has_joined"] is True

    def test_duplicate_purchase(self, client):
        client.post("/api/v1/games/main/cards", json={"player": "alice"})
        response = client.post("/api/v1/games/main/cards", json={"player": "alice"})
        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_CARD"

    def test_purchase_while_active(self, client):
        join_both(client)
        response = client.post("/api/v1/games/main/cards", json={"player": "carol"})
        assert response.status_code == 409
        assert response.json()["error_code"] == "GAME_ALREADY_IN_PROGRESS"

    def test_blank_player(self, client):
        response = client.post("/api/v1/games/main/cards", json={"player": " "})
        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_CARD_PURCHASE"

    def test_request_validation(self, client):
        response = client.post(
            "/api/v1/games/main/cards", json={"player": "alice", "seed": -1}
        )
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_missing_card(self, client):
        response = client.get("/api/v1/games/main/cards/ghost")
        assert response.status_code == 404
        assert response.json()["error_code"] == "NO_CARD"


class TestDrawEndpoints:
    """Operator draws and claims over HTTP."""

    def test_draw_requires_token(self, client):
        join_both(client)
        response = client.post("/api/v1/games/main/draws", json={"number": 5})
        assert response.status_code == 403
        assert response.json()["error_code"] == "UNAUTHORIZED_CALLER"

        response = client.post(
            "/api/v1/games/main/draws",
            json={"number": 5},
            headers={"X-Operator-Token": "guess"},
        )
        assert response.status_code == 403
        assert client.get("/api/v1/games/main/draws").json()["count"] == 0

    def test_draw_before_start(self, client):
        response = client.post("/api/v1/games/main/draws", json={"number": 5}, headers=OPERATOR)
        assert response.status_code == 409
        assert response.json()["error_code"] == "INSUFFICIENT_PLAYERS"

    def test_draw_errors(self, client):
        join_both(client)
        client.post("/api/v1/games/main/draws", json={"number": 37}, headers=OPERATOR)

        repeat = client.post("/api/v1/games/main/draws", json={"number": 37}, headers=OPERATOR)
        assert repeat.status_code == 409
        assert repeat.json()["error_code"] == "ALREADY_DRAWN"

        invalid = client.post("/api/v1/games/main/draws", json={"number": 100}, headers=OPERATOR)
        assert invalid.status_code == 422
        assert invalid.json()["error_code"] == "INVALID_NUMBER"

        assert client.get("/api/v1/games/main/draws").json()["drawn_numbers"] == [37]

    def test_random_draw(self, client):
        join_both(client)
        response = client.post("/api/v1/games/main/draws", json={}, headers=OPERATOR)
        assert response.status_code == 200
        number = response.json()["number"]
        assert 1 <= number <= 99
        assert client.get("/api/v1/games/main/draws").json()["drawn_numbers"] == [number]

    def test_claim_flow(self, client):
        join_both(client)

        early = client.post("/api/v1/games/main/claims", json={"player": "alice"})
        assert early.status_code == 422
        assert early.json()["error_code"] == "INVALID_WIN"

        for n in [1, 2, 3, 4, 5]:
            client.post("/api/v1/games/main/draws", json={"number": n}, headers=OPERATOR)

        bob = client.post("/api/v1/games/main/claims", json={"player": "bob"})
        assert bob.status_code == 422

        alice = client.post("/api/v1/games/main/claims", json={"player": "alice"})
        assert alice.status_code == 200
        assert alice.json()["message"] == "You won!"
        assert alice.json()["line"]["kind"] == "row"

        state = client.get("/api/v1/games/main/state").json()
        assert state["status"] == "ended"
        assert state["message"] == "Game has ended"
        assert state["winner"] == "alice"

        again = client.post("/api/v1/games/main/draws", json={"number": 6}, headers=OPERATOR)
        assert again.status_code == 409
        assert again.json()["error_code"] == "GAME_NOT_IN_PROGRESS"

    def test_games_are_independent(self, client):
        join_both(client, "main")
        client.post("/api/v1/games/main/draws", json={"number": 10}, headers=OPERATOR)

        side = client.get("/api/v1/games/side/state").json()
        assert side["status"] == "idle"
        assert side["drawn_numbers"] == []

    def test_events_drained_after_requests(self, client):
        join_both(client)
        client.post("/api/v1/games/main/draws", json={"number": 10}, headers=OPERATOR)
        manager = client.app.state.service.session_manager
        assert manager.drain_events("main") == []


class TestOperatorEndpoints:
    """End, reset, pause and unpause."""

    def test_end_and_reset(self, client):
        join_both(client)

        ended = client.post("/api/v1/games/main/end", headers=OPERATOR)
        assert ended.status_code == 200
        assert ended.json()["status"] == "ended"

        twice = client.post("/api/v1/games/main/end", headers=OPERATOR)
        assert twice.status_code == 409

        reset = client.post("/api/v1/games/main/reset", headers=OPERATOR)
        assert reset.status_code == 200
        assert reset.json()["status"] == "idle"
        assert client.get("/api/v1/games/main/players").json()["player_count"] == 0

    def test_reset_while_active(self, client):
        join_both(client)
        response = client.post("/api/v1/games/main/reset", headers=OPERATOR)
        assert response.status_code == 409
        assert response.json()["error_code"] == "GAME_ALREADY_IN_PROGRESS"

    def test_pause(self, client):
        client.post("/api/v1/games/main/pause", headers=OPERATOR)

        response = client.post("/api/v1/games/main/cards", json={"player": "alice"})
        assert response.status_code == 409
        assert response.json()["error_code"] == "GAME_PAUSED"
        assert client.get("/api/v1/games/main/state").json()["paused"] is True

        client.post("/api/v1/games/main/unpause", headers=OPERATOR)
        response = client.post("/api/v1/games/main/cards", json={"player": "alice"})
        assert response.status_code == 200

    def test_operator_endpoints_require_token(self, client):
        for action in ("end", "reset", "pause", "unpause"):
            response = client.post(f"/api/v1/games/main/{action}")
            assert response.status_code == 403


class TestWebSocket:
    """Event stream connection handling."""

    def test_state_on_connect_and_ping(self, client):
        with client.websocket_connect("/api/v1/games/main/ws") as websocket:
            message = websocket.receive_json()
            assert message["type"] == "state_update"
            assert message["payload"]["game_id"] == "main"

            websocket.send_json({"type": "ping"})
            assert websocket.receive_json() == {"type": "pong"}

    def test_invalid_json(self, client):
        with client.websocket_connect("/api/v1/games/main/ws") as websocket:
            websocket.receive_json()
            websocket.send_text("not json")
            assert websocket.receive_json()["type"] == "error"

    def test_events_pushed_after_requests(self, client):
        with client.websocket_connect("/api/v1/games/main/ws") as websocket:
            assert websocket.receive_json()["type"] == "state_update"

            join_both(client)
            client.post("/api/v1/games/main/draws", json={"number": 42}, headers=OPERATOR)

            messages = [websocket.receive_json() for _ in range(4)]
            assert all(m["type"] == "event" for m in messages)
            assert [m["payload"]["type"] for m in messages] == [
                "CardPurchased",
                "CardPurchased",
                "GameStarted",
                "NumberDrawn",
            ]
            assert messages[0]["payload"]["payload"]["player"] == "alice"
            assert messages[3]["payload"]["payload"]["number"] == 42
            assert all(m["payload"]["game_id"] == "main" for m in messages)

    def test_background_draw_pushed(self, client):
        with client.websocket_connect("/api/v1/games/main/ws") as websocket:
            websocket.receive_json()
            join_both(client)
            for _ in range(3):
                websocket.receive_json()

            drawn = client.portal.call(client.app.state.drawer.run)

            assert [game_id for game_id, _ in drawn] == ["main"]
            message = websocket.receive_json()
            assert message["payload"]["type"] == "NumberDrawn"
            assert message["payload"]["payload"]["number"] == drawn[0][1]

    def test_unknown_game(self, client):
        with client.websocket_connect("/api/v1/games/nope/ws") as websocket:
            message = websocket.receive_json()
            assert message["type"] == "error"


class TestLifespan:
    """Background drawer wiring."""

    def test_drawer_disabled(self, client):
        assert not client.app.state.drawer.enabled
        assert not client.app.state.scheduler.running

    def test_drawer_scheduled(self):
        settings = Settings(games=["main"], draw_interval=15)
        app = create_app(settings=settings)
        with TestClient(app) as client:
            scheduler = client.app.state.scheduler
            assert scheduler.running
            assert scheduler.get_job(JOB_ID) is not None
        assert not scheduler.running
