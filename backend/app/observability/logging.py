from __future__ import annotations

import hashlib
import json
import logging
import os
from typing import Any, Dict

logger = logging.getLogger(__name__)

_OBS_SALT = (os.getenv("OBS_HASH_SALT") or "obs-salt").encode("utf-8")

# Free text written by the user or the model never reaches a log line
_FREE_TEXT_KEYS = ("prompt", "brain_dump", "answer", "text", "body", "question")


def hash_thread_id(thread_id: str | None) -> str:
    h = hashlib.sha256()
    h.update(_OBS_SALT)
    h.update((thread_id or "none").encode("utf-8"))
    return h.hexdigest()[:16]


def safe_redact(event: Dict[str, Any]) -> Dict[str, Any]:
    redacted = dict(event) if isinstance(event, dict) else {}
    for key in _FREE_TEXT_KEYS:
        if key in redacted:
            redacted.pop(key)
    return redacted


def structured_log(event: Dict[str, Any]) -> None:
    try:
        safe_event = safe_redact(event)
        logger.info(json.dumps(safe_event, separators=(",", ":"), default=str))
    except Exception:
        # logging must never break the request path
        return


__all__ = ["hash_thread_id", "structured_log", "safe_redact"]
