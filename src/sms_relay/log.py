from __future__ import annotations

import logging

from .config import Settings

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = ("twilio", "httpx", "httpcore", "urllib3")


def configure_logging(level: str = "INFO") -> None:
    """
    Install a single console handler on the root logger.

    Safe to call more than once (e.g. from both the app lifespan and a CLI).
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_provider_settings(settings: Settings) -> None:
    """Log which credentials are present without printing their values."""
    logger = logging.getLogger(__name__)

    def state(value: str | None) -> str:
        return "set" if value else "not set"

    logger.info("SMS provider: %s", settings.sms_provider)
    if settings.sms_provider == "telnyx":
        logger.info("TELNYX_API_KEY: %s", state(settings.telnyx_api_key))
        logger.info("TELNYX_PHONE_NUMBER: %s", state(settings.telnyx_phone_number))
    else:
        logger.info("TWILIO_ACCOUNT_SID: %s", state(settings.twilio_account_sid))
        logger.info("TWILIO_AUTH_TOKEN: %s", state(settings.twilio_auth_token))
        logger.info("TWILIO_FROM_NUMBER: %s", state(settings.twilio_from_number))
