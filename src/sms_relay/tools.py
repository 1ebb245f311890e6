from __future__ import annotations

import argparse
import csv
from collections.abc import Iterable

from .config import get_settings
from .db import OutboundMessage, SessionLocal
from .log import configure_logging

CSV_COLUMNS = [
    "id",
    "created_at",
    "phone_number",
    "status",
    "segment_count",
    "provider",
    "provider_message_id",
    "ip_address",
    "user_agent",
    "error",
]


def iter_recent_messages(limit: int) -> Iterable[OutboundMessage]:
    """Yield recent send requests ordered by newest first."""
    db = SessionLocal()
    try:
        rows = (
            db.query(OutboundMessage)
            .order_by(OutboundMessage.created_at.desc(), OutboundMessage.id.desc())
            .limit(limit)
            .all()
        )
        yield from rows
    finally:
        db.close()


def print_recent_messages(limit: int) -> None:
    for m in iter_recent_messages(limit):
        print(
            f"#{m.id} | to={m.phone_number} | status={m.status} | "
            f"segments={m.segment_count} | via={m.provider or '-'} | at={m.created_at}"
        )
        if m.error:
            print(f"    error: {m.error}")


def export_recent_messages_csv(limit: int, csv_path: str) -> int:
    """
    Export recent send requests to CSV. Message bodies are not exported.

    Returns the number of rows written.
    """
    written = 0
    with open(csv_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS)
        for m in iter_recent_messages(limit):
            writer.writerow(
                [
                    m.id,
                    m.created_at.isoformat() if m.created_at else "",
                    m.phone_number,
                    m.status,
                    m.segment_count,
                    m.provider or "",
                    m.provider_message_id or "",
                    m.ip_address,
                    m.user_agent,
                    m.error or "",
                ]
            )
            written += 1
    return written


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Inspect recent send requests stored in the sms-relay database."
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Number of most recent messages to show/export (default: 20).",
    )
    parser.add_argument(
        "--csv",
        type=str,
        default="",
        help="Optional path to export as CSV. If omitted, only prints to stdout.",
    )
    args = parser.parse_args()
    configure_logging(get_settings().log_level)

    if args.csv:
        written = export_recent_messages_csv(limit=args.limit, csv_path=args.csv)
        print(f"Exported {written} messages to {args.csv}")
    else:
        print_recent_messages(limit=args.limit)


if __name__ == "__main__":
    main()
