from __future__ import annotations

from fastapi.testclient import TestClient

from app.core.app_factory import create_app
from app.core.config import LogSettings


def test_preserves_incoming_request_id_header(client: TestClient):
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(client: TestClient):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID")
    assert resp.headers.get("X-Request-Duration-ms") is not None


def test_error_body_carries_request_id(client: TestClient):
    resp = client.post("/chat", json={}, headers={"X-Request-ID": "req-err-1"})

    assert resp.status_code == 400
    assert resp.json()["request_id"] == "req-err-1"


def test_custom_request_id_header(make_settings):
    settings = make_settings()
    settings.log = LogSettings(request_id_header="X-Correlation-ID")
    client = TestClient(create_app(settings))

    resp = client.get("/health", headers={"X-Correlation-ID": "corr-1"})

    assert resp.headers.get("X-Correlation-ID") == "corr-1"


def test_unhandled_error_keeps_request_id(make_client, fake_llm):
    fake_llm.error = RuntimeError("boom")
    client = make_client(raise_server_exceptions=False)

    resp = client.post("/chat", json={"message": "hello"}, headers={"X-Request-ID": "rid-1"})

    assert resp.status_code == 500
    assert resp.json()["request_id"] == "rid-1"
    assert resp.headers.get("X-Request-ID") == "rid-1"


def test_unhandled_error_generates_request_id_when_missing(make_client, fake_llm):
    fake_llm.error = RuntimeError("boom")
    client = make_client(raise_server_exceptions=False)

    resp = client.post("/chat", json={"message": "hello"})

    assert resp.status_code == 500
    assert resp.json()["request_id"]
    assert resp.headers.get("X-Request-ID") == resp.json()["request_id"]
