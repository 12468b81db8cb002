"""
Social login: turns a provider access token into a session token.

The flow is a small state machine::

    UNAUTHENTICATED -> EXTERNAL_TOKEN_PRESENTED -> PROFILE_RESOLVED -> ACCEPTED
                                     |                    |
                                     +----> REJECTED <----+

- the provider rejects the token           -> REJECTED, ``Unauthorized``
- the provider is unreachable              -> REJECTED, ``InternalError``
- the resolved profile carries no email    -> REJECTED, ``InternalError``
- the email belongs to another account type-> REJECTED, ``Conflict``
- otherwise the user is created on first sight (or reused) -> ACCEPTED
"""
import enum
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from quill import security
from quill.database import flush_or_raise
from quill.errors import Conflict, InternalError, NotFound, Unauthorized
from quill.models import AccountType, User
from quill.services.user_service import EMAIL_IN_USE, find_user_by_email
from quill.social import ProviderError, ProviderTokenError, SocialAuthProvider, SocialProfile

logger = logging.getLogger(__name__)

ACCOUNT_TYPE_CONFLICT = "This email is registered with a different sign-in method"


class AuthState(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    EXTERNAL_TOKEN_PRESENTED = "external_token_presented"
    PROFILE_RESOLVED = "profile_resolved"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


def resolve_social_profile(provider: str, profile: SocialProfile) -> dict:
    """Map a provider profile onto the canonical user shape."""
    return {
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "email": (profile.email or "").strip().lower(),
        "password": profile.external_id,
        "account_type": provider,
    }


def lookup_provider(providers: dict[str, SocialAuthProvider], name: str) -> SocialAuthProvider:
    provider = providers.get(name)
    if provider is None:
        raise NotFound(f"Unknown social login provider: {name}")
    return provider


class SocialLoginFlow:
    """One social login attempt; ``state`` records how far it got."""

    def __init__(self, provider: SocialAuthProvider) -> None:
        self.provider = provider
        self.state = AuthState.UNAUTHENTICATED
        self.user: User | None = None

    def _reject(self, error: Exception) -> Exception:
        logger.info("Social login via %s rejected at %s: %s", self.provider.name, self.state.value, error)
        self.state = AuthState.REJECTED
        return error

    async def run(self, db: AsyncSession, access_token: str) -> str:
        """Return a session token, or raise the error the attempt ended with."""
        self.state = AuthState.EXTERNAL_TOKEN_PRESENTED
        try:
            profile = await self.provider.fetch_profile(access_token)
        except ProviderTokenError as exc:
            raise self._reject(Unauthorized()) from exc
        except ProviderError as exc:
            logger.error("Social provider %s failed: %s", self.provider.name, exc)
            raise self._reject(InternalError()) from exc

        self.state = AuthState.PROFILE_RESOLVED
        shape = resolve_social_profile(self.provider.name, profile)
        if not shape["email"]:
            raise self._reject(InternalError())
        try:
            account_type = AccountType(shape["account_type"])
        except ValueError as exc:
            raise self._reject(InternalError()) from exc

        user = await find_user_by_email(db, shape["email"])
        if user is not None and user.account_type != account_type:
            raise self._reject(Conflict(ACCOUNT_TYPE_CONFLICT))

        if user is None:
            user = User(
                first_name=shape["first_name"],
                last_name=shape["last_name"],
                email=shape["email"],
                password=security.hash_password(shape["password"] or shape["email"]),
                account_type=account_type,
            )
            db.add(user)
            await flush_or_raise(db, conflict_message=EMAIL_IN_USE)
            logger.info("New %s account id=%s", account_type.value, user.id)

        self.user = user
        self.state = AuthState.ACCEPTED
        return security.create_token(user)


async def social_login(db: AsyncSession, provider: SocialAuthProvider, access_token: str) -> str:
    return await SocialLoginFlow(provider).run(db, access_token)
