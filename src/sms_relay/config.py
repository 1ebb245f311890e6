from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

ProviderName = Literal["twilio", "telnyx"]
PROVIDER_NAMES: tuple[str, ...] = ("twilio", "telnyx")

logger = logging.getLogger(__name__)

DEFAULT_TELNYX_API_URL = "https://api.telnyx.com/v2/messages"


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseModel):
    # Project root (repo root in local dev, /app in Docker)
    project_root: Path = Path(__file__).resolve().parents[2]

    # Database URL:
    # - Default for local dev: sqlite file in the project root (sms_relay.db)
    # - Override in Docker / production using the DATABASE_URL env var
    database_url: str = ""

    # Which provider delivers outbound SMS ("twilio" or "telnyx")
    sms_provider: ProviderName = "twilio"

    # --- Twilio ---
    twilio_account_sid: str | None = None
    twilio_auth_token: str | None = None
    twilio_from_number: str | None = None

    # --- Telnyx ---
    telnyx_api_key: str | None = None
    telnyx_phone_number: str | None = None
    telnyx_api_url: str = DEFAULT_TELNYX_API_URL

    log_level: str = "INFO"
    admin_token: str | None = None
    cors_origins: list[str] = ["*"]

    def model_post_init(self, __context: object) -> None:  # type: ignore[override]
        if not self.database_url:
            object.__setattr__(
                self, "database_url", f"sqlite:///{self.project_root / 'sms_relay.db'}"
            )


def settings_from_env() -> Settings:
    provider = os.getenv("SMS_PROVIDER", "twilio").strip().lower()
    if provider not in PROVIDER_NAMES:
        logger.warning("Unknown SMS_PROVIDER %r, falling back to twilio", provider)
        provider = "twilio"
    return Settings(
        database_url=os.getenv("DATABASE_URL", ""),
        sms_provider=provider,  # type: ignore[arg-type]
        twilio_account_sid=os.getenv("TWILIO_ACCOUNT_SID"),
        twilio_auth_token=os.getenv("TWILIO_AUTH_TOKEN"),
        twilio_from_number=os.getenv("TWILIO_FROM_NUMBER"),
        telnyx_api_key=os.getenv("TELNYX_API_KEY"),
        telnyx_phone_number=os.getenv("TELNYX_PHONE_NUMBER"),
        telnyx_api_url=os.getenv("TELNYX_API_URL", DEFAULT_TELNYX_API_URL),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        admin_token=os.getenv("ADMIN_TOKEN") or None,
        cors_origins=_env_list("CORS_ORIGINS", "*"),
    )


@lru_cache
def get_settings() -> Settings:
    return settings_from_env()
