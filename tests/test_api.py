import pytest
from fastapi.testclient import TestClient

from main import app
from database import get_db
from api.games import get_notifier


@pytest.fixture
def client(db, notifier):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_create_and_get_game(client, notifier, request_factory):
    response = client.post("/api/games", json=request_factory())
    assert response.status_code == 201

    body = response.json()
    assert body["started"] is False
    assert [p["name"] for p in body["participants"]] == ["Alice", "Bob", "Carol"]
    assert notifier.created == [(body["game_id"], "olivia@example.com")]

    fetched = client.get(f"/api/games/{body['game_id']}")
    assert fetched.status_code == 200
    assert fetched.json()["game_id"] == body["game_id"]
    assert "recipient_id" not in fetched.json()["participants"][0]


def test_create_with_one_participant(client, request_factory):
    response = client.post("/api/games", json=request_factory(("Alice",)))
    assert response.status_code == 400


def test_create_with_bad_email(client, request_factory):
    request = request_factory()
    request["organizer_email"] = "olivia"
    response = client.post("/api/games", json=request)
    assert response.status_code == 422


def test_begin_game_once(client, notifier, request_factory):
    game_id = client.post("/api/games", json=request_factory()).json()["game_id"]

    response = client.post(f"/api/games/{game_id}/begin")
    assert response.status_code == 200
    assert response.json() == {"game_id": game_id, "started": True, "notified": 3, "failed": 0}

    again = client.post(f"/api/games/{game_id}/begin")
    assert again.status_code == 409
    assert len(notifier.assignments) == 3


def test_begin_unknown_game(client):
    assert client.post("/api/games/missing/begin").status_code == 404
    assert client.get("/api/games/missing").status_code == 404


def test_notification_failures_endpoint(db, notifier_factory, request_factory):
    notifier = notifier_factory(fail_for={"carol@example.com"})
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        client = TestClient(app)
        game_id = client.post("/api/games", json=request_factory()).json()["game_id"]

        begin = client.post(f"/api/games/{game_id}/begin").json()
        assert begin["notified"] == 2
        assert begin["failed"] == 1

        failures = client.get(f"/api/games/{game_id}/notifications/failures")
        assert failures.status_code == 200
        assert len(failures.json()) == 1
        assert failures.json()[0]["reason"] == "mailbox unavailable"
    finally:
        app.dependency_overrides.clear()
