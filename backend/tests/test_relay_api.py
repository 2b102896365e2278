from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from backend.app.config import get_settings
from backend.app.relay.main import app
from backend.app.relay.upstream import UpstreamError, UpstreamUnavailableError


client = TestClient(app)


def _set_key(monkeypatch, key="AIzaTestKeyForRelayOnly0000000000"):
    monkeypatch.setenv("GEMINI_API_KEY", key)
    get_settings.cache_clear()


def _fake_upstream(monkeypatch, text="What feels heaviest right now?", error=None):
    calls = []

    async def fake_generate_text(prompt, *, api_key, settings=None, transport=None):
        calls.append({"prompt": prompt, "api_key": api_key})
        if error is not None:
            raise error
        return text

    monkeypatch.setattr("backend.app.relay.main.generate_text", fake_generate_text)
    return calls


def test_liveness_routes_are_plain_text():
    root = client.get("/")
    assert root.status_code == 200
    assert root.headers["content-type"].startswith("text/plain")
    assert root.text == "Gemini proxy OK"

    alive = client.get("/api/gemini")
    assert alive.status_code == 200
    assert alive.text == "Gemini proxy alive"


def test_health():
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert "version" in body


def test_prompt_success(monkeypatch):
    _set_key(monkeypatch)
    calls = _fake_upstream(monkeypatch)

    res = client.post("/api/gemini", json={"prompt": "Ask me one question."})
    assert res.status_code == 200
    assert res.json() == {"text": "What feels heaviest right now?"}
    assert calls == [{"prompt": "Ask me one question.", "api_key": "AIzaTestKeyForRelayOnly0000000000"}]


def test_missing_key_is_checked_before_prompt(monkeypatch):
    calls = _fake_upstream(monkeypatch)

    for payload in ({"prompt": "hello"}, {}, {"prompt": 5}):
        res = client.post("/api/gemini", json=payload)
        assert res.status_code == 500
        assert res.json() == {"error": "Server missing GEMINI_API_KEY"}
    assert calls == []


@pytest.mark.parametrize("payload", [{}, {"prompt": ""}, {"prompt": 42}, {"prompt": None}, {"text": "hi"}, ["prompt"]])
def test_missing_or_invalid_prompt(monkeypatch, payload):
    _set_key(monkeypatch)
    calls = _fake_upstream(monkeypatch)

    res = client.post("/api/gemini", json=payload)
    assert res.status_code == 400
    assert res.json() == {"error": "Missing prompt"}
    assert calls == []


def test_rejects_non_json_content_type(monkeypatch):
    _set_key(monkeypatch)
    res = client.post("/api/gemini", content="prompt=hi", headers={"content-type": "text/plain"})
    assert res.status_code == 415
    assert "error" in res.json()


def test_rejects_invalid_json(monkeypatch):
    _set_key(monkeypatch)
    res = client.post("/api/gemini", content="{not json", headers={"content-type": "application/json"})
    assert res.status_code == 400
    assert res.json() == {"error": "Invalid JSON payload"}


def test_rejects_oversized_body(monkeypatch):
    _set_key(monkeypatch)
    monkeypatch.setenv("RELAY_MAX_BODY_BYTES", "64")
    get_settings.cache_clear()
    calls = _fake_upstream(monkeypatch)

    res = client.post("/api/gemini", json={"prompt": "x" * 200})
    assert res.status_code == 413
    assert calls == []


def test_upstream_status_passthrough(monkeypatch):
    _set_key(monkeypatch)
    _fake_upstream(monkeypatch, error=UpstreamError(429, "Resource has been exhausted"))

    res = client.post("/api/gemini", json={"prompt": "hello"})
    assert res.status_code == 429
    assert res.json() == {"error": "Resource has been exhausted"}


def test_upstream_unavailable_is_generic_500(monkeypatch):
    _set_key(monkeypatch)
    _fake_upstream(monkeypatch, error=UpstreamUnavailableError("ConnectError"))

    res = client.post("/api/gemini", json={"prompt": "hello"})
    assert res.status_code == 500
    assert res.json() == {"error": "Gemini request failed"}


def test_security_headers_and_request_id_on_every_response(monkeypatch):
    for res in (
        client.get("/"),
        client.post("/api/gemini", content="x", headers={"content-type": "text/plain"}),
    ):
        assert res.headers["x-content-type-options"] == "nosniff"
        assert res.headers["referrer-policy"] == "no-referrer"
        assert res.headers["x-frame-options"] == "DENY"
        assert res.headers["cache-control"] == "no-store"
        assert res.headers.get("x-request-id")


def test_safe_request_id_is_echoed():
    res = client.get("/", headers={"X-Request-ID": "abc-123"})
    assert res.headers["x-request-id"] == "abc-123"

    res = client.get("/", headers={"X-Request-ID": "<script>"})
    assert res.headers["x-request-id"] != "<script>"


def test_cors_allows_known_origin_only():
    ok = client.options(
        "/api/gemini",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "POST"},
    )
    assert ok.status_code == 200
    assert ok.headers["access-control-allow-origin"] == "http://localhost:5173"

    blocked = client.options(
        "/api/gemini",
        headers={"Origin": "https://evil.example", "Access-Control-Request-Method": "POST"},
    )
    assert blocked.status_code == 400
    assert "access-control-allow-origin" not in blocked.headers

    wrong_method = client.options(
        "/api/gemini",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "DELETE"},
    )
    assert wrong_method.status_code == 400


def test_unexpected_upstream_crash_keeps_headers_and_cors(monkeypatch):
    _set_key(monkeypatch)
    _fake_upstream(monkeypatch, error=RuntimeError("boom"))
    lenient = TestClient(app, raise_server_exceptions=False)

    res = lenient.post("/api/gemini", json={"prompt": "hello"}, headers={"Origin": "http://localhost:5173"})
    assert res.status_code == 500
    assert res.json() == {"error": "Gemini request failed"}
    assert res.headers["x-content-type-options"] == "nosniff"
    assert res.headers.get("x-request-id")
    assert res.headers["access-control-allow-origin"] == "http://localhost:5173"


def test_unhandled_error_response_carries_security_headers(monkeypatch):
    _set_key(monkeypatch)
    _fake_upstream(monkeypatch)

    def broken_log(event):
        raise RuntimeError("log sink down")

    monkeypatch.setattr("backend.app.relay.main.structured_log", broken_log)
    lenient = TestClient(app, raise_server_exceptions=False)

    res = lenient.post("/api/gemini", json={"prompt": "hello"})
    assert res.status_code == 500
    assert res.json()["error"] == "Gemini request failed"
    assert res.headers["x-content-type-options"] == "nosniff"
    assert res.headers["cache-control"] == "no-store"
