from __future__ import annotations

from .compliance import Rejected, validate
from .segments import count, segments, utf16_length


def check_loop() -> None:
    """
    Interactive compose loop.

    Runs each line through the content rules and shows how it would be
    segmented. Nothing is stored or sent.
    """
    print("Message check mode. Type /quit to exit.\n")
    while True:
        try:
            text = input("sms> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if not text:
            continue
        if text.lower() in {"/q", "/quit", "/exit"}:
            break

        verdict = validate(text)
        if isinstance(verdict, Rejected):
            print(f"rejected> {verdict.message}\n")
            continue

        print(f"ok> {utf16_length(text)} chars, billed as {count(text)} segment(s)")
        for seg in segments(text):
            print(f"  [{seg.ordinal}] {seg.text}")
        print()


def main() -> None:
    check_loop()


if __name__ == "__main__":
    main()
