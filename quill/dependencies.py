"""
Request dependencies: bearer-token authentication and the social
provider registry.
"""

from __future__ import annotations

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from quill import security
from quill.database import get_db
from quill.errors import Unauthorized
from quill.models import User
from quill.social import SocialAuthProvider, default_providers

_providers: dict[str, SocialAuthProvider] | None = None


def extract_bearer_token(authorization: str | None) -> str:
    """
    Accept both ``Bearer <token>`` and a bare token in the header value.
    """
    raw = (authorization or "").strip()
    if not raw:
        raise Unauthorized("Missing Authorization header")

    parts = raw.split(None, 1)
    if len(parts) == 1:
        return parts[0]
    scheme, token = parts[0].lower(), parts[1].strip()
    if scheme != "bearer" or not token:
        raise Unauthorized("Authorization must be: Bearer <token>")
    return token


async def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    return extract_bearer_token(authorization)


async def get_current_user_id(
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db),
) -> int:
    """Validate the session token and return the id of a user that still exists."""
    user_id = security.user_id_from_token(token)
    if await db.get(User, user_id) is None:
        raise Unauthorized("User not found")
    return user_id


def get_social_providers() -> dict[str, SocialAuthProvider]:
    """
    Registry of social login providers keyed by route name.

    Tests replace it through ``app.dependency_overrides``.
    """
    global _providers
    if _providers is None:
        _providers = default_providers()
    return _providers
