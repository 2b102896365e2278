from __future__ import annotations

import re

_GOOGLE_KEY_PATTERN = re.compile(r"AIza[0-9A-Za-z_\-]{20,}")


def redact_secrets(s: str) -> str:
    if not s:
        return s
    redacted = _GOOGLE_KEY_PATTERN.sub("[redacted]", s)
    # Header echoes such as "X-goog-api-key: ..." in upstream error bodies
    redacted = re.sub(r"(x-goog-api-key[\"']?\s*[:=]\s*[\"']?)[^\s\"',}]+", r"\1[redacted]", redacted, flags=re.IGNORECASE)
    redacted = re.sub(r"([?&]key=)[^&\s]+", r"\1[redacted]", redacted)
    return redacted


def safe_error_detail(exc: Exception) -> str:
    text = str(exc)
    text = redact_secrets(text)
    return text[:200]


__all__ = ["redact_secrets", "safe_error_detail"]
