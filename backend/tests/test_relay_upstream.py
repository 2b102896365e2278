import asyncio
import json

import httpx
import pytest

from backend.app.config import get_settings
from backend.app.relay.upstream import (
    UpstreamError,
    UpstreamUnavailableError,
    extract_text,
    generate_content_url,
    generate_text,
)

API_KEY = "AIzaTestKeyForUpstreamOnly000000000"


def _run(handler, prompt="Ask one question."):
    return asyncio.run(generate_text(prompt, api_key=API_KEY, transport=httpx.MockTransport(handler)))


def test_posts_contents_with_key_header():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"candidates": [{"content": {"parts": [{"text": "What "}, {"text": "matters most?"}]}}]},
        )

    assert _run(handler) == "What matters most?"
    request = seen[0]
    assert str(request.url) == (
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"
    )
    assert request.headers["x-goog-api-key"] == API_KEY
    assert json.loads(request.content) == {"contents": [{"parts": [{"text": "Ask one question."}]}]}


def test_url_follows_settings(monkeypatch):
    monkeypatch.setenv("GEMINI_MODEL", "gemini-test")
    monkeypatch.setenv("GEMINI_BASE_URL", "http://upstream.test/v9/")
    get_settings.cache_clear()
    assert generate_content_url(get_settings()) == "http://upstream.test/v9/models/gemini-test:generateContent"


@pytest.mark.parametrize(
    "data",
    [{}, {"candidates": []}, {"candidates": [{"content": {}}]}, {"candidates": [{"content": {"parts": "x"}}]}, []],
)
def test_unexpected_shapes_give_empty_text(data):
    assert extract_text(data) == ""


def test_non_success_raises_upstream_error():
    def handler(request):
        return httpx.Response(403, text='{"error": {"message": "API key not valid"}}')

    with pytest.raises(UpstreamError) as exc_info:
        _run(handler)
    assert exc_info.value.status_code == 403
    assert "API key not valid" in exc_info.value.body


def test_network_failure_raises_unavailable():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(UpstreamUnavailableError):
        _run(handler)


def test_invalid_json_raises_unavailable():
    with pytest.raises(UpstreamUnavailableError):
        _run(lambda request: httpx.Response(200, text="<html>oops</html>"))


def test_non_string_parts_are_skipped():
    data = {"candidates": [{"content": {"parts": [{"text": None}, {"text": "Still here?"}, {"inlineData": {}}, {"text": 3}]}}]}
    assert extract_text(data) == "Still here?"
    assert extract_text({"candidates": [{"content": {"parts": [{"text": None}]}}]}) == ""
