from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import Request

from backend.app.config import get_settings

logger = logging.getLogger(__name__)


class RelayRequestError(Exception):
    """Raised for a request the relay refuses; rendered as ``{"error": message}``."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.message}


async def json_body_dependency(request: Request) -> Dict[str, Any]:
    """Content-type, size and JSON checks for the prompt route, in that order."""
    max_bytes = get_settings().relay_max_body_bytes

    content_type = request.headers.get("content-type", "")
    if "application/json" not in content_type.lower():
        raise RelayRequestError(415, "Content-Type must be application/json")

    content_length = request.headers.get("content-length")
    if content_length:
        try:
            if int(content_length) > max_bytes:
                raise RelayRequestError(413, "Payload exceeds maximum size.")
        except ValueError:
            raise RelayRequestError(400, "Invalid Content-Length header.")

    body = await request.body()
    if len(body) > max_bytes:
        raise RelayRequestError(413, "Payload exceeds maximum size.")

    try:
        payload = json.loads(body or b"{}")
    except ValueError:
        logger.info("[RELAY] rejected invalid JSON", extra={"body_bytes": len(body)})
        raise RelayRequestError(400, "Invalid JSON payload")

    # prompt validation happens in the route, after the credential check
    return payload if isinstance(payload, dict) else {}


__all__ = ["RelayRequestError", "json_body_dependency"]
