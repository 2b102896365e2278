from __future__ import annotations

from .request_id import get_request_id
from .logging import hash_thread_id, safe_redact, structured_log

__all__ = [
    "get_request_id",
    "hash_thread_id",
    "safe_redact",
    "structured_log",
]
