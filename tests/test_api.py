from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from conftest import FakeSender
from sms_relay.config import get_settings
from sms_relay.db import OutboundMessage
from sms_relay.exceptions import ProviderError, ProviderNotConfiguredError
from sms_relay.main import app, get_db


@pytest.fixture
def client(
    session_factory: sessionmaker[Session],
    fake_sender: FakeSender,
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    monkeypatch.setattr("sms_relay.pipeline.get_sender", lambda: fake_sender)
    yield TestClient(app)
    app.dependency_overrides.clear()


def _rows(session_factory: sessionmaker[Session]) -> list[OutboundMessage]:
    db = session_factory()
    try:
        return db.query(OutboundMessage).order_by(OutboundMessage.id).all()
    finally:
        db.close()


def test_form_page_is_served(client: TestClient) -> None:
    resp = client.get("/")
    assert resp.status_code == 200
    assert "text/html" in resp.headers["content-type"]
    assert "/api/send-message" in resp.text


def test_validate_endpoint_compliant(client: TestClient) -> None:
    resp = client.post("/api/validate", json={"message": "Hello, how are you?"})
    assert resp.status_code == 200
    assert resp.json() == {
        "compliant": True,
        "reason": None,
        "error": None,
        "length": 19,
        "segment_count": 1,
    }


def test_validate_endpoint_rejected(client: TestClient) -> None:
    resp = client.post("/api/validate", json={"message": "go to https://example.com"})
    data = resp.json()
    assert resp.status_code == 200
    assert data["compliant"] is False
    assert data["reason"] == "hyperlink_detected"
    assert data["error"] == "Links are not allowed in messages."


def test_send_message_success(
    client: TestClient, fake_sender: FakeSender, session_factory: sessionmaker[Session]
) -> None:
    resp = client.post(
        "/api/send-message",
        json={"phoneNumber": "(555) 000-1111", "message": "Running late, sorry!"},
        headers={"x-forwarded-for": "203.0.113.5, 10.0.0.1", "user-agent": "pytest-agent"},
    )

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "message": "Message sent successfully",
        "messageId": "MSG1",
        "segments": 1,
    }
    assert fake_sender.sent == [("+15550001111", "Running late, sorry!")]

    [row] = _rows(session_factory)
    assert row.status == "sent"
    assert row.phone_number == "+15550001111"
    assert row.ip_address == "203.0.113.5"
    assert row.user_agent == "pytest-agent"


def test_client_ip_header_takes_precedence(
    client: TestClient, session_factory: sessionmaker[Session]
) -> None:
    client.post(
        "/api/send-message",
        json={"phoneNumber": "+15550001111", "message": "On my way"},
        headers={"client-ip": "198.51.100.9", "x-forwarded-for": "203.0.113.5"},
    )
    [row] = _rows(session_factory)
    assert row.ip_address == "198.51.100.9"


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"phoneNumber": "+15550001111"},
        {"message": "hello"},
        {"phoneNumber": "   ", "message": "hello"},
    ],
)
def test_send_message_requires_fields(client: TestClient, payload: dict[str, str]) -> None:
    resp = client.post("/api/send-message", json=payload)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Phone number and message are required"}


def test_send_message_rejects_bad_phone_number(client: TestClient) -> None:
    resp = client.post("/api/send-message", json={"phoneNumber": "call me", "message": "hi"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid phone number"}


def test_send_message_rejects_noncompliant_text(
    client: TestClient, fake_sender: FakeSender, session_factory: sessionmaker[Session]
) -> None:
    resp = client.post(
        "/api/send-message",
        json={"phoneNumber": "+15550001111", "message": "Call me at 555-123-4567"},
    )

    assert resp.status_code == 400
    assert resp.json() == {
        "error": "Phone numbers are not allowed in messages.",
        "reason": "phone_number_detected",
    }
    assert fake_sender.sent == []
    assert _rows(session_factory) == []


def test_send_message_provider_failure(
    client: TestClient, monkeypatch: pytest.MonkeyPatch, session_factory: sessionmaker[Session]
) -> None:
    class BrokenSender:
        name = "broken"

        def send(self, to: str, text: str) -> str | None:
            raise ProviderError(self.name, "Twilio error: unreachable")

    monkeypatch.setattr("sms_relay.pipeline.get_sender", lambda: BrokenSender())

    resp = client.post(
        "/api/send-message", json={"phoneNumber": "+15550001111", "message": "On my way"}
    )

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to send message", "details": "Twilio error: unreachable"}
    [row] = _rows(session_factory)
    assert row.status == "failed"


def test_send_message_without_provider_credentials(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    def unconfigured() -> FakeSender:
        raise ProviderNotConfiguredError("telnyx", ["TELNYX_API_KEY"])

    monkeypatch.setattr("sms_relay.pipeline.get_sender", unconfigured)

    resp = client.post(
        "/api/send-message", json={"phoneNumber": "+15550001111", "message": "On my way"}
    )

    assert resp.status_code == 500
    assert resp.json()["error"] == "Failed to send message"
    assert "TELNYX_API_KEY" in resp.json()["details"]


def test_cors_preflight(client: TestClient) -> None:
    resp = client.options(
        "/api/send-message",
        headers={
            "Origin": "https://example.org",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"


@pytest.fixture
def admin_client(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    monkeypatch.setenv("ADMIN_TOKEN", "s3cret")
    monkeypatch.setattr("sms_relay.main.ALLOWED_ADMIN_IPS", {"testclient"})
    get_settings.cache_clear()
    yield client
    get_settings.cache_clear()


def test_admin_messages_lists_recent_rows(admin_client: TestClient) -> None:
    for text in ("first", "second", "third"):
        admin_client.post("/api/send-message", json={"phoneNumber": "+15550001111", "message": text})

    resp = admin_client.get("/admin/messages?limit=2", headers={"X-Admin-Token": "s3cret"})

    assert resp.status_code == 200
    data = resp.json()
    assert [row["id"] for row in data] == [3, 2]
    assert all(row["status"] == "sent" for row in data)
    assert "message" not in data[0]


def test_admin_messages_requires_token(admin_client: TestClient) -> None:
    resp = admin_client.get("/admin/messages", headers={"X-Admin-Token": "wrong"})
    assert resp.status_code == 401


def test_admin_messages_refuses_remote_hosts(client: TestClient) -> None:
    resp = client.get("/admin/messages", headers={"X-Admin-Token": "s3cret"})
    assert resp.status_code == 403
