"""
Request context middleware for the relay.

Assigns an X-Request-ID to every HTTP request, stamps the security headers on
every response and logs one line per request. The request body is never read here.
"""

import logging
import re
import time
import uuid
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Incoming ids are reused only when hex/uuid-ish and at most 64 chars
_SAFE_REQUEST_ID_PATTERN = re.compile(r"^[a-fA-F0-9\-]{1,64}$")

SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
    "X-Frame-Options": "DENY",
    "Cache-Control": "no-store",
}


def _incoming_request_id(headers: List[Tuple[bytes, bytes]]) -> Optional[str]:
    for name, value in headers:
        if name.lower() == b"x-request-id":
            candidate = value.decode("utf-8", errors="replace").strip()
            if _SAFE_REQUEST_ID_PATTERN.match(candidate):
                return candidate
    return None


class RequestContextMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.monotonic()
        request_id = _incoming_request_id(scope.get("headers", [])) or str(uuid.uuid4())
        scope.setdefault("state", {})["request_id"] = request_id
        status_code: Optional[int] = None

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
                headers = list(message.get("headers", []))
                present = {h[0].lower() for h in headers}
                if b"x-request-id" not in present:
                    headers.append((b"x-request-id", request_id.encode("utf-8")))
                for key, value in SECURITY_HEADERS.items():
                    raw_key = key.lower().encode("latin-1")
                    headers = [h for h in headers if h[0].lower() != raw_key]
                    headers.append((raw_key, value.encode("latin-1")))
                message = {**message, "headers": headers}
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            logger.info(
                "[HTTP] request",
                extra={
                    "method": scope.get("method", "?"),
                    "path": scope.get("path", "?"),
                    "status": status_code,
                    "duration_ms": int((time.monotonic() - started) * 1000),
                    "request_id": request_id,
                },
            )


__all__ = ["RequestContextMiddleware", "SECURITY_HEADERS"]
