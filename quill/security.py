"""
Password hashing and session token helpers.
"""

from __future__ import annotations

import time
from typing import Any

import bcrypt
import jwt

from quill.config import settings
from quill.errors import Unauthorized


def now_epoch_s() -> int:
    return int(time.time())


def hash_password(plain_password: str) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise ValueError("Password is empty.")
    return bcrypt.hashpw(password, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


def create_token(user, expires_in_minutes: int | None = None) -> str:
    """Sign a bearer token for a persisted *user* record."""
    issued_at = now_epoch_s()
    ttl = settings.ACCESS_TOKEN_EXPIRE_MINUTES if expires_in_minutes is None else expires_in_minutes
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "iat": issued_at,
        "exp": issued_at + ttl * 60,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise Unauthorized("Access token is empty")

    try:
        payload = jwt.decode(raw, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise Unauthorized("Access token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise Unauthorized("Invalid access token") from exc

    return payload


def user_id_from_token(token: str) -> int:
    payload = decode_token(token)
    subject = str(payload.get("sub") or "").strip()
    if not subject.isdigit():
        raise Unauthorized("Invalid access token subject")
    return int(subject)
