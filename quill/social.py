"""
Social login providers.

Each provider exchanges an OAuth access token issued by the remote
platform for a ``SocialProfile``.  Providers are looked up by name from a
registry supplied through the ``get_social_providers`` dependency, so the
request path is the same whether the registry holds the real HTTP-backed
providers or ``MockProvider`` instances.

Upstream endpoints used:
- Google    GET {GOOGLE_USERINFO_URL}              (Bearer token)
- Facebook  GET {FACEBOOK_GRAPH_URL}/me            (?access_token=..&fields=..)
- Twitter   GET {TWITTER_API_URL}/users/me         (Bearer token)
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

from quill.config import settings


class ProviderError(RuntimeError):
    """The provider could not be reached or answered unexpectedly."""


class ProviderTokenError(ProviderError):
    """The provider rejected the access token (invalid, revoked or expired)."""


@dataclass(frozen=True)
class SocialProfile:
    provider: str
    external_id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None


def _split_name(full_name: str | None) -> tuple[str | None, str | None]:
    parts = (full_name or "").strip().split(" ", 1)
    first = parts[0] or None
    last = parts[1].strip() if len(parts) > 1 else None
    return first, last or None


class SocialAuthProvider:
    """Base class: resolve an access token into a ``SocialProfile``."""

    name: str = ""

    def __init__(
        self,
        *,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_s = settings.PROVIDER_TIMEOUT_SECONDS if timeout_s is None else timeout_s
        self._transport = transport

    async def fetch_profile(self, access_token: str) -> SocialProfile:
        raise NotImplementedError

    async def _get_json(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                resp = await client.get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise ProviderError(f"{self.name} request failed: {exc}") from exc

        if resp.status_code in (400, 401, 403):
            raise ProviderTokenError(f"{self.name} rejected the access token ({resp.status_code})")
        if resp.status_code != 200:
            # Avoid dumping huge bodies; include a small snippet.
            raise ProviderError(f"{self.name} returned {resp.status_code}: {resp.text[:200]}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderError(f"{self.name} returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise ProviderError(f"{self.name} returned an unexpected payload")
        return data


class GoogleProvider(SocialAuthProvider):
    name = "google"

    async def fetch_profile(self, access_token: str) -> SocialProfile:
        data = await self._get_json(
            settings.GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        return SocialProfile(
            provider=self.name,
            external_id=str(data.get("sub") or ""),
            first_name=data.get("given_name"),
            last_name=data.get("family_name"),
            email=data.get("email"),
        )


class FacebookProvider(SocialAuthProvider):
    name = "facebook"

    def __init__(self, *, app_secret: str | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.app_secret = settings.FACEBOOK_APP_SECRET if app_secret is None else app_secret

    async def fetch_profile(self, access_token: str) -> SocialProfile:
        params = {
            "access_token": access_token,
            "fields": "id,first_name,last_name,email",
        }
        if self.app_secret:
            params["appsecret_proof"] = hmac.new(
                self.app_secret.encode("utf-8"),
                access_token.encode("utf-8"),
                hashlib.sha256,
            ).hexdigest()
        data = await self._get_json(f"{settings.FACEBOOK_GRAPH_URL.rstrip('/')}/me", params=params)
        return SocialProfile(
            provider=self.name,
            external_id=str(data.get("id") or ""),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            email=data.get("email"),
        )


class TwitterProvider(SocialAuthProvider):
    name = "twitter"

    async def fetch_profile(self, access_token: str) -> SocialProfile:
        data = await self._get_json(
            f"{settings.TWITTER_API_URL.rstrip('/')}/users/me",
            params={"user.fields": "name,confirmed_email"},
            headers={"Authorization": f"Bearer {access_token}"},
        )
        user = data.get("data") or {}
        first_name, last_name = _split_name(user.get("name"))
        return SocialProfile(
            provider=self.name,
            external_id=str(user.get("id") or ""),
            first_name=first_name,
            last_name=last_name,
            email=user.get("confirmed_email"),
        )


class MockProvider(SocialAuthProvider):
    """
    Deterministic, network-free stand-in for a real provider.

    *profiles* maps the access tokens this double accepts to the profile
    each one resolves to; any other token is rejected exactly like an
    expired token would be upstream.
    """

    def __init__(self, name: str | None, profiles: Mapping[str, SocialProfile] | None = None) -> None:
        if not name:
            raise ValueError("MockProvider requires a provider name")
        super().__init__()
        self.name = name
        self.profiles = dict(profiles or {})

    async def fetch_profile(self, access_token: str) -> SocialProfile:
        try:
            return self.profiles[access_token]
        except KeyError:
            raise ProviderTokenError(f"{self.name} rejected the access token") from None


def default_providers() -> dict[str, SocialAuthProvider]:
    providers: list[SocialAuthProvider] = [GoogleProvider(), FacebookProvider(), TwitterProvider()]
    return {p.name: p for p in providers}
