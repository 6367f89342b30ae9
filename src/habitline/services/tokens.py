"""Signed access and refresh tokens (HS256 JWTs)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt

from ..config import JWTSettings
from ..errors import AuthenticationError

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _encode(
    user_id: str,
    *,
    secret: str,
    ttl,
    token_type: str,
    algorithm: str,
    now: Optional[datetime],
) -> str:
    issued = now or datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "iat": issued,
        "exp": issued + ttl,
        "type": token_type,
    }
    return jwt.encode(claims, secret, algorithm=algorithm)


def _decode(token: str, *, secret: str, token_type: str, algorithm: str) -> str:
    if not token:
        raise AuthenticationError("missing token")
    try:
        claims = jwt.decode(token, secret, algorithms=[algorithm])
    except ExpiredSignatureError as exc:
        raise AuthenticationError("token expired") from exc
    except JWTError as exc:
        raise AuthenticationError("invalid token") from exc

    if claims.get("type") != token_type:
        raise AuthenticationError("invalid token type")
    subject = claims.get("sub")
    if not subject:
        raise AuthenticationError("invalid token subject")
    return subject


def create_access_token(
    user_id: str, settings: JWTSettings, *, now: Optional[datetime] = None
) -> str:
    """Return a short-lived token identifying ``user_id``."""

    return _encode(
        user_id,
        secret=settings.access_secret,
        ttl=settings.access_ttl,
        token_type=ACCESS_TOKEN_TYPE,
        algorithm=settings.algorithm,
        now=now,
    )


def create_refresh_token(
    user_id: str, settings: JWTSettings, *, now: Optional[datetime] = None
) -> str:
    """Return a long-lived token used only to mint new access tokens."""

    return _encode(
        user_id,
        secret=settings.refresh_secret,
        ttl=settings.refresh_ttl,
        token_type=REFRESH_TOKEN_TYPE,
        algorithm=settings.algorithm,
        now=now,
    )


def decode_access_token(token: str, settings: JWTSettings) -> str:
    """Return the user id carried by a valid access token."""

    return _decode(
        token,
        secret=settings.access_secret,
        token_type=ACCESS_TOKEN_TYPE,
        algorithm=settings.algorithm,
    )


def decode_refresh_token(token: str, settings: JWTSettings) -> str:
    """Return the user id carried by a valid refresh token."""

    return _decode(
        token,
        secret=settings.refresh_secret,
        token_type=REFRESH_TOKEN_TYPE,
        algorithm=settings.algorithm,
    )


__all__ = [
    "create_access_token",
    "create_refresh_token",
    "decode_access_token",
    "decode_refresh_token",
]
