"""
middleware/auth_middleware.py — JWT caller identification decorator.

The @require_auth decorator:
  1. Reads the Authorization header (expected: "Bearer <token>")
  2. Decodes and verifies the JWT signature and expiry
  3. Attaches the caller's member identifier (the `sub` claim) to flask.g
  4. Raises the appropriate 401 error if any step fails

Strict responsibility boundary:
  - This middleware identifies the caller ONLY.
  - Group membership (403 NOT_GROUP_MEMBER) is checked in the service layer.
  - Services receive the caller as a plain string argument, with no
    knowledge of JWT or HTTP headers.
"""

from __future__ import annotations

import functools
from typing import Callable

import jwt
from flask import g, request

from backend.app.errors import AppError, ErrorCode
from backend.app.services.auth_service import decode_access_token


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that enforces JWT authentication.

    Attaches the authenticated member identifier to flask.g.caller.
    Raises AppError for all auth failures — the global error handler converts
    these to the correct JSON response. Routes never catch AppError.
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        _authenticate_request()
        return f(*args, **kwargs)

    return decorated


def _authenticate_request() -> None:
    """
    Performs the full JWT authentication sequence and sets flask.g.caller.

    Separated from the decorator wrapper so it can be called directly in
    tests inside a request context.
    """
    auth_header = request.headers.get("Authorization", "")

    if not auth_header:
        raise AppError(
            ErrorCode.TOKEN_MISSING,
            "Authentication required. Provide a Bearer token in the Authorization header.",
            401,
        )

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "Authorization header must be in the format: Bearer <token>.",
            401,
        )

    try:
        payload = decode_access_token(parts[1])
    except jwt.ExpiredSignatureError:
        raise AppError(
            ErrorCode.TOKEN_EXPIRED,
            "The access token has expired.",
            401,
        )
    except jwt.InvalidTokenError:
        # Covers: bad signature, malformed token, invalid claims, etc.
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The access token is invalid or has been tampered with.",
            401,
        )

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub.strip():
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The access token is missing a member identifier in its 'sub' claim.",
            401,
        )

    g.caller = sub
