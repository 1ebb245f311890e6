from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field

# E.164: +[country code][number], 7-15 digits after the +
E164_PATTERN = re.compile(r"^\+[1-9]\d{6,14}$")
_PHONE_SEPARATORS = re.compile(r"[\s().-]")


class SendMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone_number: str = Field(default="", alias="phoneNumber")
    message: str = ""


class ValidateRequest(BaseModel):
    message: str = ""


def normalise_phone_number(raw: str) -> str | None:
    """
    Normalise a user-typed recipient number to E.164.

    Bare 10-digit numbers are treated as North American (+1). Returns None
    when the result is not a plausible E.164 number.
    """
    digits = _PHONE_SEPARATORS.sub("", raw.strip())
    if not digits:
        return None
    if not digits.startswith("+"):
        digits = ("+1" if len(digits) == 10 else "+") + digits
    return digits if E164_PATTERN.match(digits) else None
