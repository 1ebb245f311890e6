from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from .compliance import Rejected, RejectionReason, validate
from .db import MessageStatus, OutboundMessage
from .exceptions import ProviderError
from .providers import SmsSender, get_sender
from .segments import count, split

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    status: str
    message_id: int | None = None
    rejection: RejectionReason | None = None
    segment_count: int = 0
    provider_message_ids: list[str] = field(default_factory=list)

    @property
    def provider_message_id(self) -> str | None:
        return self.provider_message_ids[0] if self.provider_message_ids else None


def handle_send(
    db: Session,
    phone_number: str,
    text: str,
    ip_address: str = "unknown",
    user_agent: str = "unknown",
    sender: SmsSender | None = None,
) -> SendResult:
    """
    Validate, log and send one outbound message:
    - rejects non-compliant text before anything is stored or sent
    - stores the request with status "pending"
    - sends each segment in order through the sender
    - marks the row "sent" (or "failed" and re-raises ProviderError)

    When no sender is given, the one selected by SMS_PROVIDER is built after
    validation, so rejected messages never need provider credentials.
    """
    # 1. Content rules
    verdict = validate(text)
    if isinstance(verdict, Rejected):
        logger.info("Rejected message for %s: %s", phone_number, verdict.reason.value)
        return SendResult(status="rejected", rejection=verdict.reason)

    if sender is None:
        sender = get_sender()

    # 2. Log the request (message body is stored, never logged)
    record = OutboundMessage(
        phone_number=phone_number,
        message=text,
        ip_address=ip_address,
        user_agent=user_agent,
        status=MessageStatus.PENDING.value,
        segment_count=count(text),
        provider=sender.name,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Stored message #%s (%s segment(s))", record.id, record.segment_count)

    # 3. Send segments strictly in order
    provider_ids: list[str] = []
    try:
        for part in split(text):
            provider_id = sender.send(to=phone_number, text=part)
            if provider_id:
                provider_ids.append(provider_id)
    except ProviderError as exc:
        logger.error("Send failed for message #%s: %s", record.id, exc.message)
        record.status = MessageStatus.FAILED.value
        record.error = exc.message
        db.commit()
        raise

    # 4. Mark as sent
    record.status = MessageStatus.SENT.value
    record.provider_message_id = provider_ids[0] if provider_ids else None
    db.commit()
    logger.info("Message #%s sent via %s", record.id, sender.name)

    return SendResult(
        status=record.status,
        message_id=record.id,
        segment_count=record.segment_count,
        provider_message_ids=provider_ids,
    )
