from __future__ import annotations

import argparse
import json
from typing import Any

from sms_relay.compliance import Rejected, validate
from sms_relay.segments import count, split, utf16_length


def preview(text: str) -> dict[str, Any]:
    verdict = validate(text)
    rejected = isinstance(verdict, Rejected)
    return {
        "compliant": not rejected,
        "reason": verdict.reason.value if rejected else None,
        "length": utf16_length(text),
        "segment_count": count(text),
        "segments": [] if rejected else split(text),
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Check a message and preview its SMS segments.")
    parser.add_argument("text", type=str)
    parser.add_argument("--json", action="store_true", help="Print the result as JSON.")
    args = parser.parse_args()

    result = preview(args.text)

    if args.json:
        print(json.dumps(result, indent=2))
        return

    if not result["compliant"]:
        print(f"Rejected: {result['reason']}")
        return

    print(f"Compliant ({result['length']} chars, {result['segment_count']} billed segment(s))")
    for i, part in enumerate(result["segments"], start=1):
        print(f"  [{i}] ({utf16_length(part)}) {part}")


if __name__ == "__main__":
    main()
