from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx

from backend.app.config import get_settings, redact_secrets
from backend.app.gateway.errors import GatewayError, MalformedResponseError, TransportError

logger = logging.getLogger(__name__)

RELAY_ROUTE = "/api/gemini"
MAX_LOGGED_BODY_CHARS = 300


class ModelGateway(Protocol):
    def call(self, prompt: str) -> str:
        ...


class GatewayClient:
    """HTTP client for the relay's single prompt route.

    One request per call, no retries. The relay holds the model credential,
    so nothing secret is sent from here.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout_seconds: Optional[float] = None,
        connect_timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        s = get_settings()
        self.base_url = (base_url or s.relay_base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else float(s.gateway_timeout_seconds)
        self.connect_timeout_seconds = (
            connect_timeout_seconds if connect_timeout_seconds is not None else float(s.gateway_connect_timeout_seconds)
        )
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}{RELAY_ROUTE}"

    def _post(self, prompt: str) -> httpx.Response:
        timeout = httpx.Timeout(self.timeout_seconds or None, connect=self.connect_timeout_seconds or None)
        with httpx.Client(timeout=timeout, transport=self._transport) as client:
            try:
                return client.post(self.endpoint, json={"prompt": prompt})
            except httpx.HTTPError as exc:
                logger.warning(
                    "[GATEWAY] relay unreachable",
                    extra={"endpoint": self.endpoint, "error": exc.__class__.__name__},
                )
                raise TransportError(f"relay request failed: {exc.__class__.__name__}") from exc

    def call(self, prompt: str) -> str:
        if not isinstance(prompt, str) or not prompt.strip():
            raise ValueError("prompt must be a non-empty string")

        logger.info("[GATEWAY] call", extra={"endpoint": self.endpoint, "prompt_chars": len(prompt)})
        resp = self._post(prompt)

        if not resp.is_success:
            body = resp.text
            logger.warning(
                "[GATEWAY] relay rejected prompt",
                extra={"status_code": resp.status_code, "detail": redact_secrets(body)[:MAX_LOGGED_BODY_CHARS]},
            )
            raise GatewayError(resp.status_code, body)

        try:
            data: Any = resp.json()
        except ValueError as exc:
            raise MalformedResponseError("relay reply is not JSON") from exc
        text = data.get("text") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise MalformedResponseError("relay reply has no text field")
        return text.strip()


__all__ = ["GatewayClient", "ModelGateway", "RELAY_ROUTE"]
