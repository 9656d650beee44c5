import pytest

fastapi = pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from app.main import app
from app.runtime import get_service
from app.service import LedgerService


@pytest.fixture
def client(service: LedgerService) -> TestClient:
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def create_player(client: TestClient, name: str) -> str:
    response = client.post("/players", json={"name": name})
    assert response.status_code == 201
    return response.json()["id"]


def seat_players(client: TestClient, session_id: str, cash_outs: dict[str, float]) -> None:
    for name, cash_out in cash_outs.items():
        player_id = create_player(client, name)
        entry = client.post(f"/sessions/{session_id}/entries", json={"player_id": player_id})
        assert entry.status_code == 201
        assert entry.json()["buy_in"] == 400
        cash = client.put(
            f"/sessions/{session_id}/entries/{entry.json()['id']}/cash-out",
            json={"remaining": cash_out},
        )
        assert cash.status_code == 200


def test_session_settle_contract(client: TestClient) -> None:
    create = client.post("/sessions", json={"note": "周五晚老王家"})
    assert create.status_code == 201
    session_id = create.json()["id"]
    assert create.json()["status"] == "open"

    seat_players(client, session_id, {"A": 600, "B": 200})

    settle = client.post(f"/sessions/{session_id}/settle")
    assert settle.status_code == 200
    body = settle.json()
    assert set(body.keys()) == {"session_id", "transfers", "text"}
    assert [(t["from_name"], t["to_name"], t["amount"]) for t in body["transfers"]] == [("B", "A", 200.0)]
    assert "B → A：200" in body["text"]

    detail = client.get(f"/sessions/{session_id}")
    assert detail.status_code == 200
    detail_json = detail.json()
    assert detail_json["session"]["status"] == "settled"
    assert detail_json["total_buy_in"] == detail_json["total_cash_out"] == 800
    assert {e["player_name"]: e["net"] for e in detail_json["entries"]} == {"A": 200, "B": -200}

    stored = client.get(f"/sessions/{session_id}/settlement")
    assert stored.status_code == 200
    assert [t["amount"] for t in stored.json()] == [200.0]

    text = client.get(f"/sessions/{session_id}/settlement/text")
    assert text.status_code == 200
    assert text.text.startswith("🃏 周五晚老王家 结算单")


def test_imbalance_error_shape(client: TestClient) -> None:
    session_id = client.post("/sessions", json={}).json()["id"]
    seat_players(client, session_id, {"A": 600, "B": 100})

    settle = client.post(f"/sessions/{session_id}/settle")

    assert settle.status_code == 400
    detail = settle.json()["detail"]
    assert detail["code"] == "imbalance"
    assert detail["message"] == "总买入 800 ≠ 总结算 700，差额 100"
    assert detail["details"] == {"total_buy_in": "800", "total_cash_out": "700", "diff": "100"}


def test_reopen_then_settled_state_errors(client: TestClient) -> None:
    session_id = client.post("/sessions", json={}).json()["id"]
    seat_players(client, session_id, {"A": 400, "B": 400})
    assert client.post(f"/sessions/{session_id}/settle").status_code == 200

    second = client.post(f"/sessions/{session_id}/settle")
    assert second.status_code == 409
    assert second.json()["detail"]["code"] == "invalid_state"

    reopen = client.post(f"/sessions/{session_id}/reopen")
    assert reopen.status_code == 200
    assert reopen.json()["status"] == "open"
    assert client.get(f"/sessions/{session_id}/settlement").json() == []


def test_unknown_session_returns_404(client: TestClient) -> None:
    response = client.get("/sessions/does-not-exist")

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "not_found"


def test_delete_session_and_player(client: TestClient) -> None:
    session_id = client.post("/sessions", json={}).json()["id"]
    player_id = create_player(client, "A")
    client.post(f"/sessions/{session_id}/entries", json={"player_id": player_id, "buy_in": 200})

    blocked = client.delete(f"/players/{player_id}")
    assert blocked.status_code == 400

    assert client.delete(f"/sessions/{session_id}").status_code == 204
    assert client.delete(f"/players/{player_id}").status_code == 204
    assert client.get("/players").json() == []


def test_preview_does_not_need_storage(client: TestClient) -> None:
    response = client.post(
        "/settlements/preview",
        json={
            "entries": [
                {"player_id": "a", "name": "A", "buy_in": 400, "cash_out": 700},
                {"player_id": "b", "name": "B", "buy_in": 400, "cash_out": 300},
                {"player_id": "c", "name": "C", "buy_in": 400, "cash_out": 200},
            ]
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["error"] is None
    assert [(t["from_name"], t["amount"]) for t in body["transfers"]] == [("C", 200.0), ("B", 100.0)]
    assert body["text"].splitlines()[2:] == ["C → A：200", "B → A：100"]


def test_preview_reports_imbalance(client: TestClient) -> None:
    response = client.post(
        "/settlements/preview",
        json={
            "entries": [
                {"player_id": "a", "name": "A", "buy_in": 400, "cash_out": 600},
                {"player_id": "b", "name": "B", "buy_in": 400},
            ]
        },
    )

    assert response.status_code == 200
    assert response.json() == {"error": "总买入 800 ≠ 总结算 600，差额 200", "transfers": [], "text": None}


def test_preview_rejects_duplicate_players(client: TestClient) -> None:
    response = client.post(
        "/settlements/preview",
        json={
            "entries": [
                {"player_id": "a", "name": "A", "buy_in": 400, "cash_out": 600},
                {"player_id": "a", "name": "A", "buy_in": 400, "cash_out": 200},
            ]
        },
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["code"] == "validation_error"
    assert detail["details"] == {"player_ids": ["a"]}


def test_session_can_be_backdated(client: TestClient) -> None:
    create = client.post("/sessions", json={"note": "上周五", "played_at": "2024-05-17T20:00:00+08:00"})

    assert create.status_code == 201
    assert create.json()["created_at"].startswith("2024-05-17T12:00:00")
    listed = client.get("/sessions").json()
    assert [s["id"] for s in listed] == [create.json()["id"]]
