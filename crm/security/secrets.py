"""AES-GCM encryption for third-party API keys stored in the database."""

from __future__ import annotations

import base64
import hashlib
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..config import settings

SECRET_PREFIX = "v1:"


class SecretKeyMissing(RuntimeError):
    pass


def _key() -> bytes:
    raw = (settings.encryption_key or settings.auth_secret or "").strip()
    if not raw:
        raise SecretKeyMissing("CRM_ENCRYPTION_KEY (or CRM_AUTH_SECRET) is required to store API keys")
    return hashlib.sha256(raw.encode("utf-8")).digest()


def encrypt_secret(value: str) -> str:
    nonce = os.urandom(12)
    ciphertext = AESGCM(_key()).encrypt(nonce, value.encode("utf-8"), None)
    payload = base64.urlsafe_b64encode(nonce + ciphertext).decode("ascii").rstrip("=")
    return f"{SECRET_PREFIX}{payload}"


def decrypt_secret(token: str) -> str:
    raw = token[len(SECRET_PREFIX):] if token.startswith(SECRET_PREFIX) else token
    blob = base64.urlsafe_b64decode(raw + "=" * (-len(raw) % 4))
    if len(blob) < 13:
        raise ValueError("Invalid encrypted value")
    try:
        plaintext = AESGCM(_key()).decrypt(blob[:12], blob[12:], None)
    except InvalidTag as exc:
        raise ValueError("Encrypted value does not match the configured key") from exc
    return plaintext.decode("utf-8")
