from __future__ import annotations

import functools
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_ORIGINS = (
    "http://localhost:5173",
    "http://localhost:3000",
    "https://digtotheroot.vercel.app",
)


def parse_origins(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text == "*":
            return ["*"]
        try:
            parsed = json.loads(text)
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        except ValueError:
            pass
        return [item.strip() for item in text.split(",") if item.strip()]
    return []


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    # App / env
    app_env: str = Field("dev", alias="APP_ENV")
    debug_errors: int = Field(0, alias="DEBUG_ERRORS")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Relay (server side only)
    gemini_api_key: Optional[str] = Field(None, alias="GEMINI_API_KEY")
    gemini_model: str = Field("gemini-2.0-flash", alias="GEMINI_MODEL")
    gemini_base_url: str = Field("https://generativelanguage.googleapis.com/v1beta", alias="GEMINI_BASE_URL")
    upstream_timeout_seconds: int = Field(30, alias="UPSTREAM_TIMEOUT_SECONDS")
    upstream_connect_timeout_seconds: int = Field(10, alias="UPSTREAM_CONNECT_TIMEOUT_SECONDS")
    relay_allowed_origins: str = Field(",".join(DEFAULT_ALLOWED_ORIGINS), alias="RELAY_ALLOWED_ORIGINS")
    relay_max_body_bytes: int = Field(1_048_576, alias="RELAY_MAX_BODY_BYTES")
    relay_host: str = Field("0.0.0.0", alias="RELAY_HOST")
    relay_port: int = Field(3001, alias="RELAY_PORT")

    # Journal client
    relay_base_url: str = Field("http://localhost:3001", alias="RELAY_BASE_URL")
    gateway_timeout_seconds: int = Field(60, alias="GATEWAY_TIMEOUT_SECONDS")
    gateway_connect_timeout_seconds: int = Field(10, alias="GATEWAY_CONNECT_TIMEOUT_SECONDS")
    journal_store_dir: str = Field("~/.layers", alias="JOURNAL_STORE_DIR")
    journal_store_key: str = Field("layers_sessions", alias="JOURNAL_STORE_KEY")
    journal_capacity: int = Field(50, alias="JOURNAL_CAPACITY")
    brain_dump_min_chars: int = Field(10, alias="BRAIN_DUMP_MIN_CHARS")
    mode_probe_enabled: int = Field(0, alias="MODE_PROBE_ENABLED")

    @field_validator(
        "debug_errors",
        "upstream_timeout_seconds",
        "upstream_connect_timeout_seconds",
        "relay_max_body_bytes",
        "gateway_timeout_seconds",
        "gateway_connect_timeout_seconds",
        "mode_probe_enabled",
    )
    @classmethod
    def clamp_non_negative(cls, v: int) -> int:
        return max(0, v)

    @field_validator("journal_capacity", "brain_dump_min_chars")
    @classmethod
    def clamp_positive(cls, v: int) -> int:
        return max(1, v)

    @field_validator("app_env")
    @classmethod
    def normalize_env(cls, v: str) -> str:
        return (v or "dev").lower()

    @field_validator("gemini_api_key")
    @classmethod
    def blank_key_is_missing(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    def allowed_origins(self) -> List[str]:
        return parse_origins(self.relay_allowed_origins)

    def journal_store_path(self) -> Path:
        return Path(self.journal_store_dir).expanduser()

    @property
    def has_gemini_key(self) -> bool:
        return bool(self.gemini_api_key)


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def validate_for_env(settings: Settings) -> Dict[str, Any]:
    issues: list[str] = []
    if settings.app_env == "prod":
        if settings.debug_errors != 0:
            issues.append("DEBUG_ERRORS must be 0 in prod")
        if not settings.has_gemini_key:
            issues.append("GEMINI_API_KEY required in prod")
        if "*" in settings.allowed_origins():
            issues.append("RELAY_ALLOWED_ORIGINS must not be a wildcard in prod")
    summary = settings_public_summary(settings)
    summary["issues"] = issues
    return summary


def settings_public_summary(settings: Optional[Settings] = None) -> Dict[str, Any]:
    s = settings or get_settings()
    return {
        "env": s.app_env,
        "gemini_model": s.gemini_model,
        "gemini_key_present": s.has_gemini_key,
        "allowed_origins": s.allowed_origins(),
        "max_body_bytes": s.relay_max_body_bytes,
        "upstream_timeout_seconds": s.upstream_timeout_seconds,
        "upstream_connect_timeout_seconds": s.upstream_connect_timeout_seconds,
    }


__all__ = ["Settings", "get_settings", "parse_origins", "settings_public_summary", "validate_for_env"]
