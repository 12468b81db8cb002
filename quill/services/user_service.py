"""
User service: local signup / signin and the public profile view.
"""
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from quill import security
from quill.database import flush_or_raise
from quill.errors import Conflict, InvalidCredentials, NotFound
from quill.models import AccountType, User
from quill.schemas import SigninRequest, SignupRequest

logger = logging.getLogger(__name__)

EMAIL_IN_USE = "Email is in use"


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _user_to_dict(user: User) -> dict:
    """Public fields only; the password hash never leaves the service."""
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "account_type": user.account_type.value,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def _article_summary_to_dict(article) -> dict:
    return {
        "id": article.id,
        "slug": article.slug,
        "title": article.title,
        "description": article.description,
        "read_time": article.read_time,
        "created_at": article.created_at.isoformat() if article.created_at else None,
    }


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

async def find_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Case-insensitive lookup across every account type."""
    result = await db.execute(
        select(User).where(func.lower(User.email) == (email or "").strip().lower())
    )
    return result.scalar_one_or_none()


async def get_user(db: AsyncSession, user_id: int) -> dict:
    """
    Return the public profile for *user_id* with summaries of their
    articles, newest first.  Raises ``NotFound`` when absent.
    """
    q = (
        select(User)
        .where(User.id == user_id)
        .options(selectinload(User.articles))
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("User not found")

    data = _user_to_dict(user)
    articles = sorted(user.articles, key=lambda a: (a.created_at, a.id), reverse=True)
    data["articles"] = [_article_summary_to_dict(a) for a in articles]
    return data


# ---------------------------------------------------------------------------
# Local credentials
# ---------------------------------------------------------------------------

async def signup(db: AsyncSession, data: SignupRequest) -> str:
    """
    Register a local account and return a session token.

    The pre-check gives the common case a clean message; the unique
    index on ``users.email`` still settles concurrent signups.
    """
    if await find_user_by_email(db, data.email) is not None:
        raise Conflict(EMAIL_IN_USE)

    user = User(
        first_name=data.firstname,
        last_name=data.lastname,
        email=data.email.lower(),
        password=security.hash_password(data.password),
        account_type=AccountType.LOCAL,
    )
    db.add(user)
    await flush_or_raise(db, conflict_message=EMAIL_IN_USE)
    logger.info("New local account id=%s", user.id)
    return security.create_token(user)


async def signin(db: AsyncSession, data: SigninRequest) -> str:
    """
    Verify local credentials and return a session token.

    Every failure raises the same ``InvalidCredentials`` message so the
    response does not reveal which part was wrong.
    """
    user = await find_user_by_email(db, data.email)
    if (
        user is None
        or user.account_type != AccountType.LOCAL
        or not security.verify_password(data.password, user.password)
    ):
        raise InvalidCredentials()
    return security.create_token(user)
