from __future__ import annotations

import logging
import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from sqlalchemy.orm import Session

from .compliance import Rejected, rejection_message, validate
from .config import get_settings
from .db import OutboundMessage, SessionLocal, init_db
from .exceptions import SmsRelayError
from .log import configure_logging, log_provider_settings
from .pipeline import handle_send
from .segments import count, utf16_length
from .sms import SendMessageRequest, ValidateRequest, normalise_phone_number

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: runs once before the app starts serving requests
    settings = get_settings()
    configure_logging(settings.log_level)
    log_provider_settings(settings)
    init_db()
    yield


app = FastAPI(title="sms-relay", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Project root:
# - In local dev: inferred from the src/ layout.
# - In Docker: overridden by PROJECT_ROOT env var (set to /app in the Dockerfile).
BASE_DIR = Path(os.getenv("PROJECT_ROOT", Path(__file__).resolve().parents[2]))
FORM_HTML_PATH = BASE_DIR / "static" / "index.html"

# --- Admin protection ---

ALLOWED_ADMIN_IPS = {"127.0.0.1", "::1"}


def verify_admin(request: Request) -> None:
    """
    Simple protection for /admin endpoints:
    - only allow requests from ALLOWED_ADMIN_IPS
    - require X-Admin-Token header that matches ADMIN_TOKEN env var
    """
    client_host = request.client.host if request.client else None

    if client_host not in ALLOWED_ADMIN_IPS:
        raise HTTPException(status_code=403, detail="Forbidden")

    admin_token = get_settings().admin_token
    if not admin_token:
        # Misconfiguration; safer to refuse access than to expose data.
        raise HTTPException(status_code=500, detail="ADMIN_TOKEN not configured")

    header_token = request.headers.get("X-Admin-Token")
    if header_token != admin_token:
        raise HTTPException(status_code=401, detail="Invalid admin token")


# --- DB dependency ---


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def client_ip(request: Request) -> str:
    """Caller IP, preferring proxy headers over the socket peer."""
    direct = request.headers.get("client-ip", "").strip()
    if direct:
        return direct
    forwarded_for = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
    if forwarded_for:
        return forwarded_for
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


@app.exception_handler(SmsRelayError)
async def sms_relay_error_handler(request: Request, exc: SmsRelayError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "Failed to send message", "details": exc.message},
    )


# --- Routes ---


@app.get("/")
def form_page() -> FileResponse:
    """The single-page send form."""
    return FileResponse(FORM_HTML_PATH)


@app.post("/api/validate")
def validate_message(payload: ValidateRequest) -> JSONResponse:
    """
    Inline feedback for the form; runs the same rules as /api/send-message.
    """
    verdict = validate(payload.message)
    rejected = isinstance(verdict, Rejected)
    return JSONResponse(
        {
            "compliant": not rejected,
            "reason": verdict.reason.value if rejected else None,
            "error": rejection_message(verdict.reason) if rejected else None,
            "length": utf16_length(payload.message),
            "segment_count": count(payload.message),
        }
    )


@app.post("/api/send-message")
def send_message(
    payload: SendMessageRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> JSONResponse:
    """
    Accepts JSON:

      { "phoneNumber": "+15551234567", "message": "Running late, sorry" }

    Validates the message, logs it and sends it via the configured provider.
    """
    if not payload.phone_number.strip() or not payload.message.strip():
        return JSONResponse(
            {"error": "Phone number and message are required"}, status_code=400
        )

    phone_number = normalise_phone_number(payload.phone_number)
    if phone_number is None:
        return JSONResponse({"error": "Invalid phone number"}, status_code=400)

    result = handle_send(
        db=db,
        phone_number=phone_number,
        text=payload.message,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent") or "unknown",
    )

    if result.rejection is not None:
        return JSONResponse(
            {"error": rejection_message(result.rejection), "reason": result.rejection.value},
            status_code=400,
        )

    return JSONResponse(
        {
            "success": True,
            "message": "Message sent successfully",
            "messageId": result.provider_message_id,
            "segments": result.segment_count,
        }
    )


@app.get("/admin/messages")
def admin_messages(
    limit: int = 50,
    db: Session = Depends(get_db),
    _: None = Depends(verify_admin),
) -> JSONResponse:
    """
    Inspect recent send requests.

    Example:
      GET /admin/messages
      GET /admin/messages?limit=10
    """
    # Clamp limit to a reasonable range
    safe_limit = max(1, min(limit, 200))
    rows = (
        db.query(OutboundMessage)
        .order_by(OutboundMessage.created_at.desc(), OutboundMessage.id.desc())
        .limit(safe_limit)
        .all()
    )

    payload = [
        {
            "id": m.id,
            "phone_number": m.phone_number,
            "created_at": m.created_at.isoformat() if m.created_at else None,
            "status": m.status,
            "segment_count": m.segment_count,
            "provider": m.provider,
            "provider_message_id": m.provider_message_id,
            "ip_address": m.ip_address,
            "user_agent": m.user_agent,
            "error": m.error,
        }
        for m in rows
    ]
    return JSONResponse(payload)
