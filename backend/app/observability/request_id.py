from __future__ import annotations

import uuid
from typing import Optional

from fastapi import Request


def get_request_id(request: Optional[Request]) -> str:
    """Request id set by RequestContextMiddleware, else the proxy's id header, else a fresh uuid4."""
    if request is None:
        return str(uuid.uuid4())
    state_rid = getattr(request.state, "request_id", None)
    if isinstance(state_rid, str) and state_rid.strip():
        return state_rid.strip()
    rid = request.headers.get("x-request-id") or request.headers.get("rndr-id")
    if rid and rid.strip():
        return rid.strip()
    return str(uuid.uuid4())


__all__ = ["get_request_id"]
