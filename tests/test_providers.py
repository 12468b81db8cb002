"""
HTTP-backed social providers, driven through httpx.MockTransport.
"""
import hashlib
import hmac

import httpx
import pytest

from quill.social import (
    FacebookProvider,
    GoogleProvider,
    ProviderError,
    ProviderTokenError,
    TwitterProvider,
)


def _transport(payload: dict | None = None, status: int = 200, seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, json=payload or {})

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_google_profile_from_userinfo():
    seen: list[httpx.Request] = []
    provider = GoogleProvider(transport=_transport({
        "sub": "1234",
        "given_name": "Ada",
        "family_name": "Lovelace",
        "email": "ada@example.com",
    }, seen=seen))

    profile = await provider.fetch_profile("tok")
    assert profile.provider == "google"
    assert profile.external_id == "1234"
    assert (profile.first_name, profile.last_name) == ("Ada", "Lovelace")
    assert profile.email == "ada@example.com"
    assert seen[0].headers["authorization"] == "Bearer tok"


@pytest.mark.asyncio
async def test_facebook_sends_appsecret_proof():
    seen: list[httpx.Request] = []
    provider = FacebookProvider(app_secret="s3cret", transport=_transport({
        "id": 99,
        "first_name": "Fay",
        "last_name": "Book",
        "email": "fay@example.com",
    }, seen=seen))

    profile = await provider.fetch_profile("tok")
    assert profile.external_id == "99"
    assert profile.email == "fay@example.com"

    params = seen[0].url.params
    assert seen[0].url.path.endswith("/me")
    assert params["access_token"] == "tok"
    assert params["appsecret_proof"] == hmac.new(b"s3cret", b"tok", hashlib.sha256).hexdigest()


@pytest.mark.asyncio
async def test_facebook_without_secret_omits_proof():
    seen: list[httpx.Request] = []
    provider = FacebookProvider(app_secret="", transport=_transport({"id": "1"}, seen=seen))
    profile = await provider.fetch_profile("tok")
    assert profile.email is None
    assert "appsecret_proof" not in seen[0].url.params


@pytest.mark.asyncio
async def test_twitter_splits_display_name():
    provider = TwitterProvider(transport=_transport({
        "data": {"id": "77", "name": "Tess  van Bird", "confirmed_email": "tess@example.com"},
    }))
    profile = await provider.fetch_profile("tok")
    assert profile.external_id == "77"
    assert profile.first_name == "Tess"
    assert profile.last_name == "van Bird"
    assert profile.email == "tess@example.com"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 401, 403])
async def test_rejected_token_raises_token_error(status: int):
    provider = GoogleProvider(transport=_transport({"error": "invalid_token"}, status=status))
    with pytest.raises(ProviderTokenError):
        await provider.fetch_profile("expired")


@pytest.mark.asyncio
async def test_upstream_failure_raises_provider_error():
    provider = TwitterProvider(transport=_transport({"error": "boom"}, status=503))
    with pytest.raises(ProviderError) as excinfo:
        await provider.fetch_profile("tok")
    assert not isinstance(excinfo.value, ProviderTokenError)


@pytest.mark.asyncio
async def test_network_error_raises_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = GoogleProvider(transport=httpx.MockTransport(handler))
    with pytest.raises(ProviderError):
        await provider.fetch_profile("tok")
