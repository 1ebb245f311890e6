"""
Content rules for outbound SMS.

A message is rejected when it carries anything that looks like a link or a
phone number, or when it is longer than three SMS segments. The patterns are
deliberately broad (A2P 10DLC carriers filter obfuscated links too), so
``word.tld``-shaped tokens are rejected even when they are not real domains.
Changing the rule set is a policy change, not a bug fix.

The same module backs the HTTP handler and the form's inline feedback
(``POST /api/validate``); there is no second copy of these rules.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Final

from .segments import utf16_length

MAX_MESSAGE_CHARS: Final[int] = 480

ALLOWED_TLDS: Final[tuple[str, ...]] = (
    "com",
    "org",
    "net",
    "edu",
    "gov",
    "mil",
    "io",
    "co",
    "me",
    "tv",
    "app",
    "dev",
)

SHORTENER_DOMAINS: Final[tuple[str, ...]] = (
    "bit.ly",
    "t.co",
    "tinyurl.com",
    "goo.gl",
    "ow.ly",
    "is.gd",
    "buff.ly",
    "rebrand.ly",
    "cutt.ly",
    "tiny.cc",
)

RESERVED_SHORT_CODES: Final[tuple[str, ...]] = ("911", "311", "411", "511", "611", "711", "811")

_TLD_ALT = "|".join(ALLOWED_TLDS)
_SHORTENER_ALT = "|".join(re.escape(d) for d in SHORTENER_DOMAINS)
_SHORT_CODE_ALT = "|".join(RESERVED_SHORT_CODES)

HYPERLINK_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"https?://\S+", re.IGNORECASE),
    re.compile(r"\bwww\.\S+", re.IGNORECASE),
    re.compile(r"\b[a-z0-9][a-z0-9-]*\.[a-z]{2,}\b", re.IGNORECASE),
    re.compile(rf"\b(?:{_SHORTENER_ALT})/\S*", re.IGNORECASE),
    re.compile(rf"\S+\.(?:{_TLD_ALT})\b", re.IGNORECASE),
)

# Anchors only look at neighbouring digits, so "Call555-123-4567" and
# digit runs longer than ten still match.
PHONE_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    # (555) 123-4567, 555-123-4567, 555.123.4567, 555 123 4567
    re.compile(r"(?:\(\d{3}\)\s?|(?<!\d)\d{3}[\s.-]?)\d{3}[\s.-]?\d{4}(?!\d)"),
    re.compile(r"\d{10}"),
    # +44 20 7946 0958, +1-555-123-4567, and a bare country code like +4
    re.compile(r"\+\d{1,3}(?:[\s.-]?\d{1,4}){0,3}"),
    re.compile(r"(?<!\d)\d{3,}\s*(?:extension|ext\.?|x)\s*\d{1,6}(?!\d)", re.IGNORECASE),
    # 1-800-555-0199 and the other 8xx toll-free prefixes
    re.compile(r"(?<!\d)1[\s.-]?8(?:00|33|44|55|66|77|88)[\s.-]?\d{3}[\s.-]?\d{4}(?!\d)"),
    re.compile(rf"(?<!\d)(?:{_SHORT_CODE_ALT})(?!\d)"),
)


class RejectionReason(str, Enum):
    HYPERLINK_DETECTED = "hyperlink_detected"
    PHONE_NUMBER_DETECTED = "phone_number_detected"
    TOO_LONG = "too_long"


REJECTION_MESSAGES: Final[dict[RejectionReason, str]] = {
    RejectionReason.HYPERLINK_DETECTED: "Links are not allowed in messages.",
    RejectionReason.PHONE_NUMBER_DETECTED: "Phone numbers are not allowed in messages.",
    RejectionReason.TOO_LONG: f"Messages are limited to {MAX_MESSAGE_CHARS} characters.",
}


@dataclass(frozen=True)
class Compliant:
    @property
    def is_compliant(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason

    @property
    def is_compliant(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return rejection_message(self.reason)


ValidationResult = Compliant | Rejected

COMPLIANT: Final[Compliant] = Compliant()


def rejection_message(reason: RejectionReason) -> str:
    """Human-readable text for a rejection, shared by every surface."""
    return REJECTION_MESSAGES[reason]


def contains_hyperlink(text: str) -> bool:
    return any(p.search(text) for p in HYPERLINK_PATTERNS)


def contains_phone_number(text: str) -> bool:
    return any(p.search(text) for p in PHONE_PATTERNS)


def validate(text: str) -> ValidationResult:
    """
    Classify a message as compliant or rejected.

    Checks run in a fixed order and the first hit wins:
      1. hyperlinks
      2. phone numbers
      3. length (more than MAX_MESSAGE_CHARS UTF-16 code units)
    """
    if contains_hyperlink(text):
        return Rejected(RejectionReason.HYPERLINK_DETECTED)
    if contains_phone_number(text):
        return Rejected(RejectionReason.PHONE_NUMBER_DETECTED)
    if utf16_length(text) > MAX_MESSAGE_CHARS:
        return Rejected(RejectionReason.TOO_LONG)
    return COMPLIANT
