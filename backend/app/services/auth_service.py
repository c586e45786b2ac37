"""
services/auth_service.py — Caller token issuing and decoding.

GroupLedger does not own identities. A caller is whatever member identifier
sits in the `sub` claim of an HS256 JWT signed with JWT_SECRET_KEY. Tokens
are normally minted by an external identity provider that shares the
secret; create_access_token() exists for tests, the demo script and
trusted internal tooling.

current_app.config is used ONLY to read the JWT secret, algorithm and TTL.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timezone

import jwt
from flask import current_app


def create_access_token(member: str) -> str:
    """
    Creates a signed JWT access token for `member`.
    Payload: sub (member identifier), iat, exp, jti.
    """
    now = datetime.now(timezone.utc)
    expiry = now + current_app.config["JWT_ACCESS_TOKEN_EXPIRES"]
    payload = {
        "sub": member,
        "iat": now,
        "exp": expiry,
        # Guarantees each issued token is unique even if generated in the same second.
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET_KEY"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )


def decode_access_token(raw_token: str) -> dict:
    """
    Verifies signature and expiry and returns the token payload.

    Raises jwt.ExpiredSignatureError or jwt.InvalidTokenError; the
    middleware maps these onto TOKEN_EXPIRED / TOKEN_INVALID.
    """
    return jwt.decode(
        raw_token,
        current_app.config["JWT_SECRET_KEY"],
        algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
    )
