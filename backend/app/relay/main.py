from __future__ import annotations

import logging
import time
from logging.config import dictConfig
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from backend.app.config import get_settings, redact_secrets, safe_error_detail, validate_for_env
from backend.app.gateway import RELAY_ROUTE
from backend.app.middleware.request_id import SECURITY_HEADERS, RequestContextMiddleware
from backend.app.observability import get_request_id, structured_log
from backend.app.relay.guard import RelayRequestError, json_body_dependency
from backend.app.relay.upstream import UpstreamError, UpstreamUnavailableError, generate_text


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        }
    },
    "root": {
        "level": "INFO",
        "handlers": ["console"],
    },
}

_settings = get_settings()
dictConfig({**LOGGING_CONFIG, "root": {**LOGGING_CONFIG["root"], "level": _settings.log_level.upper()}})
logger = logging.getLogger(__name__)

APP_VERSION = "2026.10.0"
_start_time = time.monotonic()

MISSING_KEY_MESSAGE = "Server missing GEMINI_API_KEY"
MISSING_PROMPT_MESSAGE = "Missing prompt"
UPSTREAM_FAILED_MESSAGE = "Gemini request failed"

app = FastAPI(title="Layers Gemini Relay")

_settings_summary = validate_for_env(_settings)
logger.info(
    "[CFG] loaded",
    extra={
        "env": _settings_summary.get("env"),
        "model": _settings_summary.get("gemini_model"),
        "key_present": _settings_summary.get("gemini_key_present"),
        "origins": _settings_summary.get("allowed_origins"),
        "issues": _settings_summary.get("issues"),
    },
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins(),
    allow_credentials=False,
    allow_methods=["POST"],
    allow_headers=["Content-Type"],
)
app.add_middleware(RequestContextMiddleware)


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Gemini proxy OK"


@app.get(RELAY_ROUTE, response_class=PlainTextResponse)
async def relay_alive() -> str:
    return "Gemini proxy alive"


@app.get("/health")
async def health() -> Dict[str, Any]:
    return {
        "status": "ok",
        "version": APP_VERSION,
        "uptime_seconds": int(time.monotonic() - _start_time),
    }


@app.post(RELAY_ROUTE)
async def relay_prompt(request: Request, payload: Dict[str, Any] = Depends(json_body_dependency)) -> Dict[str, str]:
    settings = get_settings()
    api_key = settings.gemini_api_key
    if not api_key:
        logger.error("[RELAY] credential missing", extra={"request_id": get_request_id(request)})
        raise RelayRequestError(500, MISSING_KEY_MESSAGE)

    prompt = payload.get("prompt")
    if not isinstance(prompt, str) or not prompt:
        raise RelayRequestError(400, MISSING_PROMPT_MESSAGE)

    started = time.monotonic()
    try:
        text = await generate_text(prompt, api_key=api_key, settings=settings)
    except (UpstreamError, UpstreamUnavailableError):
        raise
    except Exception as exc:
        logger.exception("[RELAY] upstream call crashed", extra={"request_id": get_request_id(request)})
        raise RelayRequestError(500, UPSTREAM_FAILED_MESSAGE) from exc
    structured_log(
        {
            "event": "relay.completed",
            "request_id": get_request_id(request),
            "model": settings.gemini_model,
            "prompt_chars": len(prompt),
            "text_chars": len(text),
            "latency_ms": int((time.monotonic() - started) * 1000),
        }
    )
    return {"text": text}


@app.exception_handler(RelayRequestError)
async def handle_relay_request_error(request: Request, exc: RelayRequestError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(UpstreamError)
async def handle_upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
    logger.warning(
        "[RELAY] upstream rejected prompt",
        extra={
            "status_code": exc.status_code,
            "detail": redact_secrets(exc.body)[:300],
            "request_id": get_request_id(request),
        },
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.body})


@app.exception_handler(UpstreamUnavailableError)
async def handle_upstream_unavailable(request: Request, exc: UpstreamUnavailableError) -> JSONResponse:
    logger.error(
        "[RELAY] upstream request failed",
        extra={"error": safe_error_detail(exc), "request_id": get_request_id(request)},
    )
    return JSONResponse(status_code=500, content={"error": UPSTREAM_FAILED_MESSAGE})


@app.exception_handler(Exception)
async def handle_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:  # noqa: BLE001
    logger.exception("[RELAY] unhandled error in request")
    content: Dict[str, Any] = {"error": UPSTREAM_FAILED_MESSAGE}
    if get_settings().debug_errors:
        content["detail"] = safe_error_detail(exc)
    # ServerErrorMiddleware sits outside RequestContextMiddleware
    return JSONResponse(status_code=500, content=content, headers=dict(SECURITY_HEADERS))
