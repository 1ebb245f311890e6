from __future__ import annotations

import logging
from typing import Protocol

import httpx
import requests
from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.rest import Client

from .config import Settings, get_settings
from .exceptions import ProviderError, ProviderNotConfiguredError

logger = logging.getLogger(__name__)

TELNYX_TIMEOUT_SECONDS = 10.0


class SmsSender(Protocol):
    name: str

    def send(self, to: str, text: str) -> str | None:
        """Send one SMS and return the provider's message id."""
        ...


class TwilioSender:
    name = "twilio"

    def __init__(self, account_sid: str, auth_token: str, from_number: str) -> None:
        self.client = Client(account_sid, auth_token)
        self.from_number = from_number

    @classmethod
    def from_settings(cls, settings: Settings) -> TwilioSender:
        missing = [
            env
            for env, value in (
                ("TWILIO_ACCOUNT_SID", settings.twilio_account_sid),
                ("TWILIO_AUTH_TOKEN", settings.twilio_auth_token),
                ("TWILIO_FROM_NUMBER", settings.twilio_from_number),
            )
            if not value
        ]
        if missing:
            raise ProviderNotConfiguredError(cls.name, missing)
        return cls(
            settings.twilio_account_sid,  # type: ignore[arg-type]
            settings.twilio_auth_token,  # type: ignore[arg-type]
            settings.twilio_from_number,  # type: ignore[arg-type]
        )

    def send(self, to: str, text: str) -> str | None:
        try:
            message = self.client.messages.create(to=to, from_=self.from_number, body=text)
        except TwilioRestException as exc:
            raise ProviderError(self.name, f"Twilio error: {exc.msg}") from exc
        except (TwilioException, requests.RequestException) as exc:
            raise ProviderError(self.name, f"Twilio error: {exc}") from exc
        return message.sid


class TelnyxSender:
    """Sends through the Telnyx v2 messages REST endpoint."""

    name = "telnyx"

    def __init__(
        self,
        api_key: str,
        from_number: str,
        api_url: str,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key
        self.from_number = from_number
        self.api_url = api_url
        self.http_client = http_client

    @classmethod
    def from_settings(cls, settings: Settings) -> TelnyxSender:
        missing = [
            env
            for env, value in (
                ("TELNYX_API_KEY", settings.telnyx_api_key),
                ("TELNYX_PHONE_NUMBER", settings.telnyx_phone_number),
            )
            if not value
        ]
        if missing:
            raise ProviderNotConfiguredError(cls.name, missing)
        return cls(
            settings.telnyx_api_key,  # type: ignore[arg-type]
            settings.telnyx_phone_number,  # type: ignore[arg-type]
            settings.telnyx_api_url,
        )

    def _post(self, client: httpx.Client, payload: dict[str, str]) -> httpx.Response:
        response = client.post(
            self.api_url,
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        response.raise_for_status()
        return response

    def send(self, to: str, text: str) -> str | None:
        payload = {"from": self.from_number, "to": to, "text": text}
        try:
            if self.http_client is not None:
                response = self._post(self.http_client, payload)
            else:
                with httpx.Client(timeout=TELNYX_TIMEOUT_SECONDS) as client:
                    response = self._post(client, payload)
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                self.name, f"Telnyx error: HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, f"Telnyx error: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise ProviderError(self.name, "Telnyx error: response was not JSON") from exc
        data = (body.get("data") if isinstance(body, dict) else None) or {}
        return data.get("id")


def get_sender(settings: Settings | None = None) -> SmsSender:
    """Build the sender selected by SMS_PROVIDER."""
    settings = settings or get_settings()
    if settings.sms_provider == "telnyx":
        return TelnyxSender.from_settings(settings)
    return TwilioSender.from_settings(settings)
