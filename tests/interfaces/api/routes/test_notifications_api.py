"""Integration tests for the notification endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from app.config import Settings
from app.domain.entities import NotificationDraft, NotificationKind
from app.domain.errors import GenerationFailed
from app.infrastructure.repositories import NotificationRepository
from main import create_app


class RecordingGenerator:
    def __init__(self) -> None:
        self.calls = 0

    async def generate(self) -> None:
        self.calls += 1


class BrokenGenerator:
    async def generate(self) -> None:
        raise GenerationFailed("function generate_deadline_notifications() does not exist")


def _headers() -> dict[str, str]:
    return {"X-User-Id": f"user-{uuid4().hex[:10]}"}


def _payload(title: str = "Essay due", **overrides) -> dict:
    payload = {
        "type": "deadline_due",
        "title": title,
        "message": "Submit before midnight",
        "priority": "high",
        "deadline_id": "deadline-1",
        "deadline_title": "Essay",
    }
    payload.update(overrides)
    return payload


@pytest.fixture(params=["ephemeral", "durable"])
def client(request):
    app = create_app(Settings(notification_mode=request.param))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def ephemeral_client():
    app = create_app(Settings(notification_mode="ephemeral"))
    with TestClient(app) as test_client:
        yield test_client


def test_notification_lifecycle(client: TestClient) -> None:
    headers = _headers()

    response = client.get("/notifications/", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"notifications": [], "unread_count": 0, "stale": False}

    first = client.post("/notifications/", json=_payload("First"), headers=headers)
    second = client.post("/notifications/", json=_payload("Second"), headers=headers)
    assert first.status_code == 201 and second.status_code == 201
    created = first.json()
    assert created["read"] is False
    assert created["type"] == "deadline_due"
    assert created["deadline_title"] == "Essay"

    listing = client.get("/notifications/", headers=headers).json()
    assert [n["title"] for n in listing["notifications"]] == ["Second", "First"]
    assert listing["unread_count"] == 2

    read = client.post(f"/notifications/{created['id']}/read", headers=headers)
    assert read.json() == {"unread_count": 1}

    assert client.delete(f"/notifications/{created['id']}", headers=headers).status_code == 204
    assert client.delete("/notifications/missing", headers=headers).status_code == 204

    assert client.post("/notifications/read-all", headers=headers).json() == {"unread_count": 0}

    assert client.delete("/notifications/", headers=headers).status_code == 204
    listing = client.get("/notifications/", headers=headers).json()
    assert listing["notifications"] == []
    assert listing["unread_count"] == 0


def test_notifications_are_isolated_per_user(client: TestClient) -> None:
    alice, bob = _headers(), _headers()
    client.post("/notifications/", json=_payload("Alice only"), headers=alice)

    assert client.get("/notifications/", headers=bob).json()["notifications"] == []
    assert client.get("/notifications/", headers=alice).json()["unread_count"] == 1


def test_requests_without_user_header_are_rejected(client: TestClient) -> None:
    assert client.get("/notifications/").status_code == 422


def test_invalid_notification_payload_is_rejected(client: TestClient) -> None:
    response = client.post(
        "/notifications/", json=_payload(type="birthday"), headers=_headers()
    )
    assert response.status_code == 422


@pytest.mark.parametrize("method", ["get", "post"])
def test_generate_success(client: TestClient, method: str) -> None:
    generator = RecordingGenerator()
    client.app.state.notification_generator = generator

    response = getattr(client, method)("/notifications/generate")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Notifications generated successfully",
    }
    assert generator.calls == 1


def test_generate_failure_reports_upstream_message(client: TestClient) -> None:
    client.app.state.notification_generator = BrokenGenerator()

    response = client.post("/notifications/generate")

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Failed to generate notifications",
        "detail": "function generate_deadline_notifications() does not exist",
    }


def test_generate_without_procedure_fails_on_sqlite(ephemeral_client: TestClient) -> None:
    response = ephemeral_client.get("/notifications/generate")

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert "generate_deadline_notifications" in body["detail"]


def test_malformed_push_is_accepted_and_dropped(ephemeral_client: TestClient) -> None:
    response = ephemeral_client.post(
        "/notifications/push", content=b"not json", headers=_headers()
    )

    assert response.status_code == 202
    assert response.json() == {"displayed": False}


def test_push_payload_is_displayed(ephemeral_client: TestClient) -> None:
    response = ephemeral_client.post(
        "/notifications/push",
        json={"title": "Essay", "body": "Due in 1 hour"},
        headers=_headers(),
    )

    assert response.status_code == 202
    assert response.json() == {"displayed": True}


def test_settings_defaults_and_update(ephemeral_client: TestClient) -> None:
    headers = _headers()

    defaults = ephemeral_client.get("/notifications/settings", headers=headers)
    assert defaults.json() == {
        "email_notifications": True,
        "push_notifications": False,
        "deadline_reminders": True,
        "reminder_hours": 24,
    }

    updated = ephemeral_client.put(
        "/notifications/settings",
        json={"push_notifications": True, "reminder_hours": 48},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["push_notifications"] is True
    assert updated.json()["reminder_hours"] == 48
    assert ephemeral_client.get("/notifications/settings", headers=headers).json() == updated.json()

    rejected = ephemeral_client.put(
        "/notifications/settings", json={"reminder_hours": 0}, headers=headers
    )
    assert rejected.status_code == 422


def test_reminders_can_be_scheduled_and_cancelled(ephemeral_client: TestClient) -> None:
    headers = _headers()
    at = datetime.now(timezone.utc) + timedelta(hours=2)

    created = ephemeral_client.post(
        "/notifications/reminders",
        json={"title": "Essay", "body": "Start writing", "at": at.isoformat()},
        headers=headers,
    )
    assert created.status_code == 201
    reminder = created.json()
    assert reminder["pending"] is True

    listed = ephemeral_client.get("/notifications/reminders", headers=headers).json()
    assert [item["id"] for item in listed] == [reminder["id"]]

    cancelled = ephemeral_client.delete(f"/notifications/reminders/{reminder['id']}", headers=headers)
    assert cancelled.status_code == 204
    assert ephemeral_client.get("/notifications/reminders", headers=headers).json() == []
    assert (
        ephemeral_client.delete(f"/notifications/reminders/{reminder['id']}", headers=headers).status_code
        == 404
    )


def test_deadline_reminder_follows_user_settings(ephemeral_client: TestClient) -> None:
    headers = _headers()
    due_at = datetime.now(timezone.utc) + timedelta(days=3)

    created = ephemeral_client.post(
        "/notifications/reminders",
        json={"title": "Lab report", "due_at": due_at.isoformat()},
        headers=headers,
    )
    assert created.status_code == 201
    assert "24 hour(s)" in created.json()["body"]

    ephemeral_client.put(
        "/notifications/settings", json={"deadline_reminders": False}, headers=headers
    )
    disabled = ephemeral_client.post(
        "/notifications/reminders",
        json={"title": "Lab report", "due_at": due_at.isoformat()},
        headers=headers,
    )
    assert disabled.status_code == 409


def test_reminder_requires_exactly_one_moment(ephemeral_client: TestClient) -> None:
    response = ephemeral_client.post(
        "/notifications/reminders", json={"title": "Nothing"}, headers=_headers()
    )
    assert response.status_code == 422


def test_push_subscription_requires_connected_client(ephemeral_client: TestClient) -> None:
    headers = _headers()

    state = ephemeral_client.get("/notifications/push/subscription", headers=headers)
    assert state.json()["state"] == "unregistered"
    assert state.json()["endpoint"] is None

    response = ephemeral_client.post("/notifications/push/subscription", json={}, headers=headers)
    assert response.status_code == 502


def test_permission_request_without_client_fails(ephemeral_client: TestClient) -> None:
    response = ephemeral_client.post("/notifications/permission", headers=_headers())

    assert response.status_code == 504


def test_websocket_receives_snapshot_and_toasts(ephemeral_client: TestClient) -> None:
    headers = _headers()
    user_id = headers["X-User-Id"]
    existing = ephemeral_client.post("/notifications/", json=_payload("Existing"), headers=headers)

    with ephemeral_client.websocket_connect(f"/notifications/ws?user_id={user_id}") as websocket:
        init = websocket.receive_json()
        assert init["type"] == "init"
        assert init["data"]["unread_count"] == 1
        assert init["data"]["notifications"][0]["id"] == existing.json()["id"]

        websocket.send_json({"type": "permission", "data": {"permission": "granted"}})
        websocket.send_json({"type": "ping"})
        assert websocket.receive_json() == {"type": "pong"}

        created = ephemeral_client.post("/notifications/", json=_payload("Fresh"), headers=headers)
        toast = websocket.receive_json()
        assert toast["type"] == "notification.show"
        assert toast["data"]["title"] == "Fresh"
        assert toast["data"]["data"]["notification_id"] == created.json()["id"]

        websocket.send_json({"type": "ack", "ids": [existing.json()["id"]]})
        websocket.send_json({"type": "refresh"})
        snapshot = websocket.receive_json()
        assert snapshot["type"] == "snapshot"
        assert snapshot["data"]["unread_count"] == 1
        assert [(n["title"], n["read"]) for n in snapshot["data"]["notifications"]] == [
            ("Fresh", False),
            ("Existing", True),
        ]

    assert ephemeral_client.app.state.notification_contexts.peek(user_id) is None
    assert len(ephemeral_client.app.state.notification_hosts) == 0


def test_websocket_closes_reminders_with_last_connection(ephemeral_client: TestClient) -> None:
    headers = _headers()
    at = datetime.now(timezone.utc) + timedelta(hours=1)

    with ephemeral_client.websocket_connect(
        f"/notifications/ws?user_id={headers['X-User-Id']}"
    ) as websocket:
        websocket.receive_json()
        ephemeral_client.post(
            "/notifications/reminders",
            json={"title": "Essay", "at": at.isoformat()},
            headers=headers,
        )
        assert len(ephemeral_client.get("/notifications/reminders", headers=headers).json()) == 1

    assert ephemeral_client.get("/notifications/reminders", headers=headers).json() == []


def test_health_reports_mode(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["notification_mode"] in {"ephemeral", "durable"}


def test_app_uses_configured_database(tmp_path) -> None:
    database_path = tmp_path / "custom.db"
    app = create_app(
        Settings(notification_mode="durable", database_url=f"sqlite:///{database_path}")
    )
    headers = _headers()

    with TestClient(app) as test_client:
        created = test_client.post("/notifications/", json=_payload("Stored"), headers=headers)
        assert created.status_code == 201
        test_client.put(
            "/notifications/settings", json={"reminder_hours": 12}, headers=headers
        )

    assert database_path.exists()
    reopened = create_app(
        Settings(notification_mode="durable", database_url=f"sqlite:///{database_path}")
    )
    with TestClient(reopened) as test_client:
        listing = test_client.get("/notifications/", headers=headers).json()
        settings = test_client.get("/notifications/settings", headers=headers).json()

    assert [n["id"] for n in listing["notifications"]] == [created.json()["id"]]
    assert settings["reminder_hours"] == 12


def test_idle_contexts_are_bounded() -> None:
    app = create_app(Settings(notification_mode="durable", notification_context_limit=5))

    with TestClient(app) as test_client:
        for _ in range(50):
            assert test_client.get("/notifications/", headers=_headers()).status_code == 200

        assert len(test_client.app.state.notification_contexts) == 5
        assert len(test_client.app.state.notification_hosts) == 5


def test_contexts_with_pending_reminders_are_kept() -> None:
    app = create_app(Settings(notification_mode="ephemeral", notification_context_limit=2))
    busy = _headers()
    at = datetime.now(timezone.utc) + timedelta(hours=1)

    with TestClient(app) as test_client:
        test_client.post(
            "/notifications/reminders", json={"title": "Essay", "at": at.isoformat()}, headers=busy
        )
        for _ in range(5):
            test_client.get("/notifications/", headers=_headers())

        contexts = test_client.app.state.notification_contexts
        assert contexts.peek(busy["X-User-Id"]) is not None
        assert len(contexts) == 2
        assert len(test_client.get("/notifications/reminders", headers=busy).json()) == 1


def test_permission_grant_enables_push_setting(ephemeral_client: TestClient) -> None:
    headers = _headers()
    user_id = headers["X-User-Id"]

    with ephemeral_client.websocket_connect(f"/notifications/ws?user_id={user_id}") as websocket:
        websocket.receive_json()
        websocket.send_json({"type": "permission", "data": {"permission": "granted"}})
        websocket.send_json({"type": "ping"})
        assert websocket.receive_json() == {"type": "pong"}

        response = ephemeral_client.post("/notifications/permission", headers=headers)

    assert response.json() == {"permission": "granted"}
    settings = ephemeral_client.get("/notifications/settings", headers=headers).json()
    assert settings["push_notifications"] is True


def test_denied_permission_leaves_push_setting(ephemeral_client: TestClient) -> None:
    headers = _headers()
    user_id = headers["X-User-Id"]

    with ephemeral_client.websocket_connect(f"/notifications/ws?user_id={user_id}") as websocket:
        websocket.receive_json()
        websocket.send_json({"type": "permission", "data": {"permission": "denied"}})
        websocket.send_json({"type": "ping"})
        assert websocket.receive_json() == {"type": "pong"}

        response = ephemeral_client.post("/notifications/permission", headers=headers)

    assert response.json() == {"permission": "denied"}
    settings = ephemeral_client.get("/notifications/settings", headers=headers).json()
    assert settings["push_notifications"] is False


def test_malformed_relay_key_in_request_is_rejected(ephemeral_client: TestClient) -> None:
    response = ephemeral_client.post(
        "/notifications/push/subscription",
        json={"relay_public_key": "not*base64!"},
        headers=_headers(),
    )

    assert response.status_code == 422


def test_refresh_picks_up_rows_written_elsewhere() -> None:
    app = create_app(Settings(notification_mode="durable"))
    headers = _headers()
    user_id = headers["X-User-Id"]

    with TestClient(app) as test_client:
        with test_client.websocket_connect(f"/notifications/ws?user_id={user_id}") as websocket:
            assert websocket.receive_json()["data"]["notifications"] == []

            session = test_client.app.state.session_factory()
            try:
                NotificationRepository(session, user_id).insert(
                    NotificationDraft(
                        kind=NotificationKind.DEADLINE_OVERDUE,
                        title="Generated",
                        message="Lab report is overdue",
                    )
                )
            finally:
                session.close()

            websocket.send_json({"type": "refresh"})
            snapshot = websocket.receive_json()

    assert snapshot["type"] == "snapshot"
    assert [n["title"] for n in snapshot["data"]["notifications"]] == ["Generated"]
    assert snapshot["data"]["unread_count"] == 1
