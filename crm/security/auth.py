"""Access tokens and request identity resolution."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import re
import time
from dataclasses import dataclass
from urllib.parse import unquote

from fastapi import Request

SESSION_COOKIE_RE = re.compile(r"^sb-[^-]+-auth-token$")


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str | None = None
    role: str = "customer"

    @property
    def display(self) -> str:
        return self.email or self.id


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    padding = "=" * ((4 - (len(data) % 4)) % 4)
    return base64.urlsafe_b64decode((data + padding).encode("utf-8"))


def _secret(settings_obj) -> str:
    return str(getattr(settings_obj, "auth_secret", "") or "").strip()


def issue_access_token(settings_obj, user_id: str, email: str | None = None) -> str:
    secret = _secret(settings_obj)
    if not secret:
        raise RuntimeError("auth_secret is required to issue access tokens")

    now = int(time.time())
    payload = {
        "sub": user_id,
        "email": email,
        "iat": now,
        "exp": now + int(getattr(settings_obj, "auth_token_ttl_seconds", 3600)),
    }
    body = _b64url_encode(json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8"))
    sig = hmac.new(secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256).hexdigest()
    return f"{body}.{sig}"


def decode_access_token(settings_obj, token: str) -> AuthUser | None:
    secret = _secret(settings_obj)
    if not secret or not token:
        return None

    try:
        body, provided_sig = token.split(".", 1)
    except ValueError:
        return None

    expected_sig = hmac.new(secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256).hexdigest()
    if not hmac.compare_digest(provided_sig, expected_sig):
        return None

    try:
        payload = json.loads(_b64url_decode(body))
    except (ValueError, UnicodeDecodeError):
        return None

    if not isinstance(payload, dict):
        return None

    exp = payload.get("exp")
    sub = payload.get("sub")
    if not isinstance(exp, int) or exp <= int(time.time()):
        return None
    if not isinstance(sub, str) or not sub.strip():
        return None
    email = payload.get("email")
    return AuthUser(id=sub.strip(), email=email if isinstance(email, str) else None)


def _token_from_session_cookie(request: Request) -> str:
    for name, raw in request.cookies.items():
        if not SESSION_COOKIE_RE.match(name):
            continue
        try:
            session = json.loads(unquote(raw))
        except ValueError:
            return ""
        if isinstance(session, dict) and isinstance(session.get("access_token"), str):
            return session["access_token"]
        return ""
    return ""


def extract_access_token(request: Request) -> str:
    """Bearer header first, then the session cookie blob."""
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return _token_from_session_cookie(request)


def current_user_from_request(request: Request, settings_obj) -> AuthUser | None:
    return decode_access_token(settings_obj, extract_access_token(request))


def client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.headers.get("x-real-ip") or None
