"""
Local account tests: signup, signin, and bearer-token enforcement on
protected routes.
"""
from types import SimpleNamespace

import jwt
import pytest
from httpx import AsyncClient

from quill import security
from quill.errors import Unauthorized


def _user_id(token: str) -> int:
    return security.user_id_from_token(token)


# ---------------------------------------------------------------------------
# Signup
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_signup_returns_token(async_client: AsyncClient):
    """A new account gets 201 and a token that resolves to a user id."""
    resp = await async_client.post("/api/users/signup", json={
        "firstname": "Ada",
        "lastname": "Lovelace",
        "email": "a@x.com",
        "password": "pw123456",
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Successfully created your account"
    assert _user_id(body["token"]) > 0


@pytest.mark.asyncio
async def test_signup_duplicate_email_returns_409(async_client: AsyncClient):
    payload = {"email": "a@x.com", "password": "pw123456"}
    assert (await async_client.post("/api/users/signup", json=payload)).status_code == 201

    resp = await async_client.post("/api/users/signup", json=payload)
    assert resp.status_code == 409
    assert resp.json() == {"message": "Email is in use"}


@pytest.mark.asyncio
async def test_signup_duplicate_email_ignores_case_and_whitespace(async_client: AsyncClient):
    await async_client.post("/api/users/signup", json={"email": "a@x.com", "password": "pw123456"})
    resp = await async_client.post("/api/users/signup", json={
        "email": "  A@X.com ",
        "password": "pw123456",
    })
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_signup_trims_inputs(async_client: AsyncClient):
    """Padded values are stored trimmed, so signin with clean values works."""
    resp = await async_client.post("/api/users/signup", json={
        "firstname": "  Grace ",
        "email": "  grace@example.com  ",
        "password": "  pw123456  ",
    })
    assert resp.status_code == 201
    user_id = _user_id(resp.json()["token"])

    resp = await async_client.post("/api/users/signin", json={
        "email": "grace@example.com",
        "password": "pw123456",
    })
    assert resp.status_code == 200

    profile = (await async_client.get(f"/api/users/{user_id}")).json()["data"]
    assert profile["first_name"] == "Grace"
    assert profile["email"] == "grace@example.com"


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"password": "pw123456"},
    {"email": "a@x.com"},
    {"email": "not-an-email", "password": "pw123456"},
    {"email": "a@x.com", "password": "short"},
])
async def test_signup_invalid_payload_returns_400(async_client: AsyncClient, payload: dict):
    resp = await async_client.post("/api/users/signup", json=payload)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid request payload"


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/api/users/signup", "/api/users/signin"])
async def test_password_over_72_bytes_returns_400(async_client: AsyncClient, path: str):
    # 40 characters, 80 bytes in UTF-8
    resp = await async_client.post(path, json={"email": "mb@example.com", "password": "é" * 40})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid request payload"


@pytest.mark.asyncio
async def test_multibyte_password_within_72_bytes_signs_in(async_client: AsyncClient):
    payload = {"email": "mb@example.com", "password": "é" * 36}
    signup = await async_client.post("/api/users/signup", json=payload)
    assert signup.status_code == 201

    resp = await async_client.post("/api/users/signin", json=payload)
    assert resp.status_code == 200
    assert _user_id(resp.json()["token"]) == _user_id(signup.json()["token"])


# ---------------------------------------------------------------------------
# Signin
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_signup_then_signin_yields_same_user(async_client: AsyncClient):
    signup = await async_client.post("/api/users/signup", json={
        "email": "a@x.com", "password": "pw123456",
    })
    resp = await async_client.post("/api/users/signin", json={
        "email": "a@x.com", "password": "pw123456",
    })
    assert resp.status_code == 200
    assert resp.json()["message"] == "Successfully signed in"
    assert _user_id(resp.json()["token"]) == _user_id(signup.json()["token"])


@pytest.mark.asyncio
async def test_signin_wrong_password_and_unknown_email_share_message(async_client: AsyncClient):
    await async_client.post("/api/users/signup", json={"email": "a@x.com", "password": "pw123456"})

    wrong_password = await async_client.post("/api/users/signin", json={
        "email": "a@x.com", "password": "pw654321",
    })
    unknown_email = await async_client.post("/api/users/signin", json={
        "email": "nobody@x.com", "password": "pw123456",
    })
    assert wrong_password.status_code == 400
    assert unknown_email.status_code == 400
    assert wrong_password.json() == unknown_email.json() == {"message": "Incorrect email or password"}


@pytest.mark.asyncio
async def test_social_account_cannot_use_local_signin(async_client: AsyncClient):
    """A Google account has no local password, even its external id."""
    resp = await async_client.get("/api/auth/google/callback", params={"access_token": "googleauthtoken"})
    assert resp.status_code == 302

    resp = await async_client.post("/api/users/signin", json={
        "email": "ada@example.com", "password": "g-100",
    })
    assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Bearer token enforcement
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_protected_route_requires_token(async_client: AsyncClient):
    resp = await async_client.get("/api/articles")
    assert resp.status_code == 401
    assert resp.json() == {"message": "Missing Authorization header"}


@pytest.mark.asyncio
async def test_malformed_token_is_unauthorized(async_client: AsyncClient):
    resp = await async_client.get("/api/articles", headers={"Authorization": "Bearer not.a.jwt"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_wrong_scheme_is_unauthorized(async_client: AsyncClient, make_user):
    headers = await make_user()
    token = headers["Authorization"].split()[1]
    resp = await async_client.get("/api/articles", headers={"Authorization": f"Basic {token}"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_expired_token_is_unauthorized(async_client: AsyncClient, make_user):
    await make_user()
    expired = security.create_token(SimpleNamespace(id=1, email="author@example.com"), expires_in_minutes=-5)
    resp = await async_client.get("/api/articles", headers={"Authorization": f"Bearer {expired}"})
    assert resp.status_code == 401
    assert resp.json() == {"message": "Access token has expired"}


@pytest.mark.asyncio
async def test_token_for_missing_user_is_unauthorized(async_client: AsyncClient):
    token = security.create_token(SimpleNamespace(id=4242, email="ghost@example.com"))
    resp = await async_client.get("/api/articles", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_bare_token_header_is_accepted(async_client: AsyncClient, make_user):
    """Clients may send the token without the Bearer prefix."""
    headers = await make_user()
    token = headers["Authorization"].split()[1]
    resp = await async_client.get("/api/articles", headers={"Authorization": token})
    # Authenticated, but there are no articles yet.
    assert resp.status_code == 404
    assert resp.json() == {"message": "Article Not found!"}


# ---------------------------------------------------------------------------
# Token helpers
# ---------------------------------------------------------------------------

def test_token_round_trip():
    token = security.create_token(SimpleNamespace(id=7, email="seven@example.com"))
    payload = security.decode_token(token)
    assert payload["sub"] == "7"
    assert payload["email"] == "seven@example.com"
    assert payload["exp"] > payload["iat"]


def test_token_signed_with_other_key_is_rejected():
    forged = jwt.encode({"sub": "1", "exp": security.now_epoch_s() + 60}, "other-key", algorithm="HS256")
    with pytest.raises(Unauthorized):
        security.decode_token(forged)


def test_password_hash_verifies_only_the_original():
    hashed = security.hash_password("pw123456")
    assert hashed != "pw123456"
    assert security.verify_password("pw123456", hashed)
    assert not security.verify_password("pw1234567", hashed)
    assert not security.verify_password("pw123456", "not-a-bcrypt-hash")
