"""
Password hashing and session tokens.

Sessions are short HS256 JWTs whose ``sub`` claim is the user id.  The
same token is accepted from the session cookie (browser pages) and from
an ``Authorization: Bearer`` header (GraphQL API clients).
"""
from __future__ import annotations

import logging
import time
from typing import Any

import bcrypt
import jwt
from fastapi import Request

from hnclone.config import settings

logger = logging.getLogger(__name__)


class SessionTokenError(RuntimeError):
    pass


def hash_password(plain_password: str) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise ValueError("Password is empty.")
    return bcrypt.hashpw(password, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str | None) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


def build_session_token(user_id: str) -> str:
    issued_at = int(time.time())
    payload = {
        "sub": user_id,
        "iat": issued_at,
        "exp": issued_at + settings.SESSION_TTL_DAYS * 24 * 60 * 60,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_session_token(token: str) -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise SessionTokenError("Session token is empty.")
    try:
        payload = jwt.decode(raw, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.InvalidTokenError as exc:
        raise SessionTokenError("Invalid session token.") from exc
    if not payload.get("sub"):
        raise SessionTokenError("Session token has no subject.")
    return payload


def _token_from_request(request: Request) -> str | None:
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def get_current_user_id(request: Request) -> str | None:
    """
    FastAPI dependency returning the logged-in user id, or None.

    A bad or expired token is treated the same as no token at all.
    """
    token = _token_from_request(request)
    if not token:
        return None
    try:
        return str(decode_session_token(token)["sub"])
    except SessionTokenError as exc:
        logger.debug("Ignoring session token: %s", exc)
        return None
