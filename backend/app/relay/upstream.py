from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from backend.app.config import Settings, get_settings, redact_secrets

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """Raised when the generative-language API answers with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"upstream returned HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class UpstreamUnavailableError(Exception):
    """Raised when the generative-language API cannot be reached or its reply cannot be read."""


def generate_content_url(settings: Settings) -> str:
    return f"{settings.gemini_base_url.rstrip('/')}/models/{settings.gemini_model}:generateContent"


def extract_text(data: Any) -> str:
    """Join the text parts of the first candidate; empty when the shape is unexpected."""
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    if not isinstance(parts, list):
        return ""
    return "".join(p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str))


async def generate_text(
    prompt: str,
    *,
    api_key: str,
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    s = settings or get_settings()
    url = generate_content_url(s)
    headers = {"Content-Type": "application/json", "X-goog-api-key": api_key}
    payload = {"contents": [{"parts": [{"text": prompt}]}]}
    timeout = httpx.Timeout(
        s.upstream_timeout_seconds or None,
        connect=s.upstream_connect_timeout_seconds or None,
    )

    try:
        async with httpx.AsyncClient(transport=transport) as client:
            resp = await client.post(url, headers=headers, json=payload, timeout=timeout)
    except httpx.HTTPError as exc:
        logger.warning(
            "[RELAY] upstream unreachable",
            extra={"model": s.gemini_model, "error": redact_secrets(str(exc))[:300]},
        )
        raise UpstreamUnavailableError(exc.__class__.__name__) from exc

    if not resp.is_success:
        raise UpstreamError(resp.status_code, resp.text)

    try:
        data = resp.json()
    except ValueError as exc:
        raise UpstreamUnavailableError("upstream returned invalid JSON") from exc
    return extract_text(data)


__all__ = ["UpstreamError", "UpstreamUnavailableError", "extract_text", "generate_content_url", "generate_text"]
