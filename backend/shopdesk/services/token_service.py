# Overview: Service-layer operations for signed credentials; encodes and decodes JWTs.

"""
Identity Token Codec

Two credential kinds, each signed with its own secret:

- access: short-lived (ACCESS_TOKEN_TTL_MINUTES), sent as a bearer header,
  carries sub (user id), role and shop_id.
- refresh: long-lived (REFRESH_TOKEN_TTL_DAYS), delivered only as an
  HttpOnly cookie, carries sub only. Exchanged for a fresh pair at
  /auth/refresh (both credentials rotate).

Every decode checks signature, expiry and the "type" claim, so an access
token can never be replayed as a refresh token or vice versa.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from ..models import User


ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class InvalidTokenError(Exception):
    """Raised when a credential is absent, malformed, wrongly signed, expired or of the wrong kind."""
    pass


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    token_type: str
    role: str | None = None
    shop_id: int | None = None


def _encode(payload: dict, secret: str, ttl: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = dict(payload, iat=now, exp=now + ttl)
    return jwt.encode(payload, secret, algorithm=current_app.config["JWT_ALGORITHM"])


def _decode(token: str | None, secret: str, expected_type: str) -> TokenClaims:
    if not token:
        raise InvalidTokenError("Token missing")

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"require": ["sub", "exp", "type"]},
        )
    except jwt.ExpiredSignatureError:
        raise InvalidTokenError("Token expired")
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError(f"Invalid token: {e}")

    if payload.get("type") != expected_type:
        raise InvalidTokenError("Wrong token type")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise InvalidTokenError("Invalid token subject")

    shop_id = payload.get("shop_id")
    return TokenClaims(
        user_id=user_id,
        token_type=expected_type,
        role=payload.get("role"),
        shop_id=int(shop_id) if shop_id is not None else None,
    )


def issue_access_token(user: User) -> str:
    # PyJWT requires "sub" to be a string
    return _encode(
        {
            "sub": str(user.id),
            "role": user.role,
            "shop_id": user.shop_id,
            "type": ACCESS_TOKEN_TYPE,
        },
        current_app.config["JWT_SECRET_KEY"],
        timedelta(minutes=current_app.config["ACCESS_TOKEN_TTL_MINUTES"]),
    )


def issue_refresh_token(user: User) -> str:
    return _encode(
        {"sub": str(user.id), "type": REFRESH_TOKEN_TYPE},
        current_app.config["JWT_REFRESH_SECRET_KEY"],
        timedelta(days=current_app.config["REFRESH_TOKEN_TTL_DAYS"]),
    )


def decode_access_token(token: str | None) -> TokenClaims:
    return _decode(token, current_app.config["JWT_SECRET_KEY"], ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str | None) -> TokenClaims:
    return _decode(token, current_app.config["JWT_REFRESH_SECRET_KEY"], REFRESH_TOKEN_TYPE)


def issue_token_pair(user: User) -> tuple[str, str]:
    """Return (access_token, refresh_token) for a user."""
    return issue_access_token(user), issue_refresh_token(user)


def set_refresh_cookie(response, refresh_token: str):
    """Attach the refresh credential as an HttpOnly cookie."""
    response.set_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        refresh_token,
        max_age=int(timedelta(days=current_app.config["REFRESH_TOKEN_TTL_DAYS"]).total_seconds()),
        httponly=True,
        secure=current_app.config["REFRESH_COOKIE_SECURE"],
        samesite="None",
        path="/",
    )
    return response


def clear_refresh_cookie(response):
    response.delete_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        path="/",
        httponly=True,
        secure=current_app.config["REFRESH_COOKIE_SECURE"],
        samesite="None",
    )
    return response
