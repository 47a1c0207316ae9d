"""
Cryptographic helpers: verification codes, constant-time comparisons and
the signup correlation token.

The correlation token is an HS256 JWT (PyJWT) binding an email address to
a successful verification. It is short-lived and carries a ``purpose``
claim so it cannot be confused with any other token signed by the app.
"""

from __future__ import annotations

import hmac
import secrets
import string
from datetime import datetime, timedelta
from typing import Optional

import jwt

from shared.datetime_utils import utcnow

VERIFICATION_TOKEN_PURPOSE = "signup_verification"
_ALGORITHM = "HS256"


def generate_verification_code(length: int = 6) -> str:
    """Return *length* random decimal digits drawn from ``secrets``.

    Leading zeros are kept, so the result is always exactly *length* long.
    """
    return "".join(secrets.choice(string.digits) for _ in range(length))


def codes_match(provided: str, stored: str) -> bool:
    """Compare two verification codes in constant time."""
    return hmac.compare_digest(provided.encode("utf-8"), stored.encode("utf-8"))


def bearer_matches(authorization: Optional[str], expected_key: str) -> bool:
    """Return True if *authorization* is ``Bearer <expected_key>``.

    An empty *expected_key* never matches, so an unconfigured key locks the
    endpoint instead of opening it.
    """
    if not expected_key or not authorization:
        return False
    scheme, _, credential = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return False
    return hmac.compare_digest(credential.strip().encode("utf-8"), expected_key.encode("utf-8"))


def issue_verification_token(
    email: str,
    secret: str,
    ttl_seconds: int = 900,
    now: Optional[datetime] = None,
) -> str:
    """Sign a correlation token for a verified *email*."""
    issued_at = now or utcnow()
    claims = {
        "sub": email,
        "purpose": VERIFICATION_TOKEN_PURPOSE,
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=ttl_seconds),
    }
    return jwt.encode(claims, secret, algorithm=_ALGORITHM)


def decode_verification_token(token: str, secret: str) -> Optional[str]:
    """Return the email bound to *token*, or ``None`` if it is invalid.

    Invalid covers a bad signature, an expired token, and a token minted
    for another purpose.
    """
    try:
        claims = jwt.decode(token, secret, algorithms=[_ALGORITHM])
    except jwt.InvalidTokenError:
        return None
    if claims.get("purpose") != VERIFICATION_TOKEN_PURPOSE:
        return None
    return claims.get("sub")
