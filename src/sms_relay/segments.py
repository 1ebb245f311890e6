from __future__ import annotations

from dataclasses import dataclass
from typing import Final

# Limits are in UTF-16 code units, the unit carriers and browsers count in.
SEGMENT_CHARS: Final[int] = 160
# Lowest offset we look back to when searching for a space to break on.
MIN_BREAK_INDEX: Final[int] = 140


@dataclass(frozen=True)
class Segment:
    text: str
    ordinal: int
    total_segments: int


def utf16_length(text: str) -> int:
    """Length in UTF-16 code units; characters outside the BMP count twice."""
    return len(text.encode("utf-16-le", "surrogatepass")) // 2


def count(text: str) -> int:
    """
    Bucketed segment estimate used for billing/logging: 1, 2 or 3.

    This is not len(split(text)); a message whose break points land early can
    split into more pieces than this reports.
    """
    length = utf16_length(text)
    if length <= SEGMENT_CHARS:
        return 1
    if length <= 2 * SEGMENT_CHARS:
        return 2
    return 3


def _break_index(text: str) -> int:
    # character indexes whose prefix is MIN_BREAK_INDEX..SEGMENT_CHARS units long
    candidates: list[int] = []
    units = 0
    for i, ch in enumerate(text):
        if units > SEGMENT_CHARS:
            break
        if units >= MIN_BREAK_INDEX:
            candidates.append(i)
        units += 2 if ord(ch) > 0xFFFF else 1

    for i in reversed(candidates):
        if text[i].isspace():
            return i
    return candidates[-1]


def split(text: str) -> list[str]:
    """
    Split text into chunks of at most SEGMENT_CHARS UTF-16 code units.

    Breaks on the last whitespace between offsets 140 and 160 when there is
    one, otherwise hard-cuts at 160 (one unit earlier if a surrogate pair
    straddles the limit). Whitespace around each break is dropped.
    """
    parts: list[str] = []
    remaining = text
    while remaining:
        if utf16_length(remaining) <= SEGMENT_CHARS:
            parts.append(remaining)
            break
        cut = _break_index(remaining)
        parts.append(remaining[:cut])
        remaining = remaining[cut:].strip()
    return parts


def segments(text: str) -> list[Segment]:
    total = count(text)
    return [
        Segment(text=part, ordinal=i, total_segments=total)
        for i, part in enumerate(split(text), start=1)
    ]
