"""
Email intake router.

Receives inbound email webhooks and hands the raw payload to the adapter
registry. Mailgun posts multipart or urlencoded forms (attachments arrive as
``attachment-N`` uploads); a JSON body is accepted as well, which is how
stored messages are re-posted.

Environment variables
---------------------
EMAIL_PROVIDER            Which normaliser to use (default: "mailgun").
INBOUND_WEBHOOK_SECRET    Shared secret checked in X-Webhook-Secret header.

Endpoints:
  POST /inbound            provider webhook (auth: X-Webhook-Secret)
"""

import json
import logging
import os
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from mailhook.models.inbound_email import AttachmentFile, CanonicalEmail
from mailhook.services.inbound_email_adapter import normalize_webhook

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Auth dependency
# ---------------------------------------------------------------------------

def _get_webhook_secret() -> str:
    return os.getenv("INBOUND_WEBHOOK_SECRET") or ""


def _verify_webhook_secret(
    x_webhook_secret: Optional[str] = Header(None),
) -> None:
    """
    Verify that the inbound webhook request carries the correct shared secret.

    Raises 401 if the secret is missing, unconfigured, or does not match.
    """
    expected = _get_webhook_secret()
    if not expected:
        logger.warning(
            "No webhook secret configured (INBOUND_WEBHOOK_SECRET) "
            "so all inbound webhook requests will be rejected"
        )
        raise HTTPException(status_code=401, detail="Webhook secret not configured")

    if not x_webhook_secret or x_webhook_secret != expected:
        raise HTTPException(status_code=401, detail="Invalid webhook secret")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

async def _read_payload(request: Request) -> dict:
    """Return the request body as a flat dict, from JSON or form data."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail="Invalid JSON body")
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Expected a JSON object")
        return payload

    form = await request.form()
    return {key: value for key, value in form.multi_items()}


def _attachment_name(attachment: Any) -> Optional[str]:
    """Best-effort display name for any attachment representation."""
    if isinstance(attachment, AttachmentFile):
        return attachment.filename
    if isinstance(attachment, dict):
        return attachment.get("filename") or attachment.get("name")
    return getattr(attachment, "filename", None)


def _summarize(email: CanonicalEmail) -> dict:
    params = email.to_params()
    params["attachments"] = [_attachment_name(a) for a in email.attachments]
    return params


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/inbound")
async def receive_inbound_email(
    request: Request,
    _: None = Depends(_verify_webhook_secret),
) -> dict:
    """
    Provider-agnostic inbound email webhook receiver.

    Normalizes the payload with the adapter selected by EMAIL_PROVIDER
    (default: "mailgun") and echoes the canonical record back.

    Always returns 200 for well-formed requests so the provider does not
    retry on payloads it will never be able to fix. Normalization errors are
    logged and reported in the body.
    """
    payload = await _read_payload(request)
    provider = os.getenv("EMAIL_PROVIDER", "mailgun")
    try:
        email = normalize_webhook(payload, provider=provider)
    except json.JSONDecodeError as exc:
        logger.error(f"Malformed message-headers in inbound webhook: {exc}")
        return {"received": True, "processed": False, "reason": "malformed_headers"}
    except ValueError as exc:
        logger.error(f"Webhook normalization failed: {exc}")
        return {"received": True, "processed": False, "reason": str(exc)}

    logger.info(
        f"Normalized inbound email from {email.from_!r} "
        f"with {len(email.attachments)} attachment(s)"
    )
    return {"received": True, "processed": True, "email": _summarize(email)}
