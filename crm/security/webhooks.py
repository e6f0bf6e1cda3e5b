"""Webhook signing and the delivery-processor bearer check."""

from __future__ import annotations

import hashlib
import hmac
import secrets

from fastapi import HTTPException, Request

from ..config import settings


def generate_secret() -> str:
    return secrets.token_hex(32)


def sign_payload(body: bytes | str, secret: str) -> str:
    """Hex HMAC-SHA256 of the raw request body."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(body: bytes | str, secret: str, provided: str) -> bool:
    return hmac.compare_digest(sign_payload(body, secret), provided or "")


def verify_processor_auth(request: Request) -> None:
    """Require `Authorization: Bearer <CRM_WEBHOOK_PROCESSOR_SECRET>`.

    An unset secret rejects every call.
    """
    expected = settings.webhook_processor_secret
    auth = request.headers.get("authorization", "")
    if not expected or not auth.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized")
    if not hmac.compare_digest(auth[7:].strip(), expected):
        raise HTTPException(status_code=401, detail="Unauthorized")
