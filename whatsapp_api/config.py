"""Application configuration handling."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PATH = Path(__file__).resolve().parent / ".env"
load_dotenv(ENV_PATH, encoding="utf-8-sig")


def _env(key: str, default: str | None = None) -> str:
    value = os.getenv(key, default)
    if value is None:
        raise RuntimeError(f"Missing required environment variable: {key}")
    return value


def _env_optional(key: str) -> Optional[str]:
    value = os.getenv(key, "").strip()
    return value or None


def _env_int(key: str, default: int | None = None) -> int:
    value = _env(key, str(default) if default is not None else None)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise RuntimeError(f"Environment variable {key} must be an integer") from None


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """Hides all but the last few characters of a secret for log output."""

    if not value:
        return "<unset>"
    if len(value) <= visible:
        return "****"
    return "****" + value[-visible:]


@dataclass(frozen=True)
class Settings:
    gateway_url: Optional[str]
    gateway_api_key: Optional[str]
    session_name: str
    gateway_timeout: int
    qr_wait_seconds: int
    api_key: Optional[str]
    log_level: str
    host: str
    port: int

    @classmethod
    def from_env(cls) -> "Settings":
        gateway_url = _env_optional("WHATSAPP_GATEWAY_URL")
        if gateway_url:
            gateway_url = gateway_url.rstrip("/")
        return cls(
            gateway_url=gateway_url,
            gateway_api_key=_env_optional("WHATSAPP_GATEWAY_API_KEY"),
            session_name=_env("WHATSAPP_SESSION_NAME", "default").strip() or "default",
            gateway_timeout=_env_int("WHATSAPP_GATEWAY_TIMEOUT", 15),
            qr_wait_seconds=_env_int("WHATSAPP_QR_WAIT_SECONDS", 5),
            api_key=_env_optional("API_KEY"),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            host=_env("HOST", "0.0.0.0"),
            port=_env_int("PORT", 5000),
        )
