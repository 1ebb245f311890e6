"""
Exception hierarchy for sms-relay.

Content rejections are not exceptions; see ``compliance.validate``. These
cover the failures that happen after a message has been accepted.
"""

from __future__ import annotations

from typing import Any


class SmsRelayError(Exception):
    """Base exception for application-specific errors."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class ProviderNotConfiguredError(SmsRelayError):
    """Raised when the selected SMS provider is missing credentials."""

    def __init__(self, provider: str, missing: list[str]) -> None:
        super().__init__(
            f"{provider} is not configured ({' / '.join(missing)})",
            details={"provider": provider, "missing": missing},
        )
        self.provider = provider
        self.missing = missing


class ProviderError(SmsRelayError):
    """Raised when the SMS provider refuses or fails a send."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(message, details={"provider": provider})
        self.provider = provider
