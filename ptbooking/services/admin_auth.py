"""
Admin session tokens.

Password check → signed cookie. Token format:
    {nonce}.{issued_at}.{hmac_sha256(secret, "{nonce}.{issued_at}")}
"""

import hashlib
import hmac
import logging
import secrets
import time
from typing import Optional

logger = logging.getLogger(__name__)

COOKIE_NAME = "adminToken"


def verify_password(password: str, expected: str) -> bool:
    if not expected:
        logger.error("Admin password is not configured, refusing login")
        return False
    return hmac.compare_digest(password.encode(), expected.encode())


def _sign(payload: str, secret: str) -> str:
    return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()


def issue_token(secret: str, now: Optional[float] = None) -> str:
    issued_at = int(now if now is not None else time.time())
    payload = f"{secrets.token_hex(16)}.{issued_at}"
    return f"{payload}.{_sign(payload, secret)}"


def verify_token(
    token: Optional[str],
    secret: str,
    ttl_sec: int,
    now: Optional[float] = None,
) -> bool:
    """Signature and TTL check."""
    if not token:
        return False

    try:
        nonce, issued_at, signature = token.split(".")
        issued = int(issued_at)
    except ValueError:
        return False

    expected = _sign(f"{nonce}.{issued_at}", secret)
    if not hmac.compare_digest(expected, signature):
        return False

    current = now if now is not None else time.time()
    return 0 <= current - issued <= ttl_sec
