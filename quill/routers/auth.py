from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from quill.config import settings
from quill.database import get_db
from quill.dependencies import get_social_providers
from quill.errors import Conflict
from quill.schemas import SocialTokenRequest
from quill.services import social_auth_service
from quill.social import SocialAuthProvider

router = APIRouter(prefix=f"{settings.API_PREFIX}/auth", tags=["auth"])


def _redirect(**params: str) -> RedirectResponse:
    return RedirectResponse(f"{settings.SOCIAL_CALLBACK_URL}?{urlencode(params)}", status_code=302)


async def _complete_social_login(
    db: AsyncSession,
    providers: dict[str, SocialAuthProvider],
    provider_name: str,
    access_token: str,
) -> RedirectResponse:
    provider = social_auth_service.lookup_provider(providers, provider_name)
    try:
        token = await social_auth_service.social_login(db, provider, access_token)
    except Conflict as exc:
        # Account-type collisions go back to the client app; other
        # rejections surface as 401 / 500 through the error handler.
        return _redirect(error=exc.message)
    return _redirect(token=token)

@router.get("/{provider}/callback")
async def social_callback(
    provider: str,
    access_token: str = Query(min_length=1),
    db: AsyncSession = Depends(get_db),
    providers: dict[str, SocialAuthProvider] = Depends(get_social_providers),
):
    return await _complete_social_login(db, providers, provider, access_token)

@router.post("/{provider}/callback")
async def social_callback_post(
    provider: str,
    data: SocialTokenRequest,
    db: AsyncSession = Depends(get_db),
    providers: dict[str, SocialAuthProvider] = Depends(get_social_providers),
):
    return await _complete_social_login(db, providers, provider, data.access_token)
