"""
Account tests: the login/register forms, logout, and the JSON token API
used by GraphQL clients.
"""
import pytest
from httpx import AsyncClient

from hnclone.config import settings
from hnclone.security import (
    SessionTokenError,
    build_session_token,
    decode_session_token,
    hash_password,
    verify_password,
)


# ---------------------------------------------------------------------------
# security helpers
# ---------------------------------------------------------------------------

def test_password_hashing():
    hashed = hash_password("hunter2hunter2")
    assert hashed != "hunter2hunter2"
    assert verify_password("hunter2hunter2", hashed) is True
    assert verify_password("wrong", hashed) is False
    assert verify_password("hunter2hunter2", None) is False
    with pytest.raises(ValueError):
        hash_password("")


def test_session_token_round_trip():
    assert decode_session_token(build_session_token("alice"))["sub"] == "alice"
    with pytest.raises(SessionTokenError):
        decode_session_token("garbage")
    with pytest.raises(SessionTokenError):
        decode_session_token("")


# ---------------------------------------------------------------------------
# Browser forms
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_login_page(async_client: AsyncClient):
    resp = await async_client.get("/login", params={"goto": "submit"})
    assert resp.status_code == 200
    assert 'name="acct"' in resp.text
    assert 'value="submit"' in resp.text


@pytest.mark.asyncio
async def test_register_sets_session_cookie(async_client: AsyncClient):
    resp = await async_client.post(
        "/register", data={"acct": "newbie", "pw": "longenough", "goto": "newest"}
    )
    assert resp.status_code == 303
    assert resp.headers["location"] == "/newest"
    cookie = resp.headers["set-cookie"]
    assert cookie.startswith(f"{settings.SESSION_COOKIE_NAME}=")
    assert "httponly" in cookie.lower()

    token = cookie.split(";", 1)[0].split("=", 1)[1]
    body = (await async_client.post(
        "/graphql",
        json={"query": "{ me { id karma } }"},
        headers={"Cookie": f"{settings.SESSION_COOKIE_NAME}={token}"},
    )).json()
    assert body["data"]["me"] == {"id": "newbie", "karma": 1}


@pytest.mark.asyncio
async def test_register_duplicate_username(async_client: AsyncClient, make_user):
    await make_user("taken")
    resp = await async_client.post("/register", data={"acct": "taken", "pw": "longenough"})
    assert resp.status_code == 409
    assert "That username is taken" in resp.text


@pytest.mark.asyncio
@pytest.mark.parametrize("acct, pw", [("x", "longenough"), ("bad name", "longenough"), ("okname", "short")])
async def test_register_rejects_invalid_input(async_client: AsyncClient, acct: str, pw: str):
    resp = await async_client.post("/register", data={"acct": acct, "pw": pw})
    assert resp.status_code == 400
    assert 'class="error"' in resp.text


@pytest.mark.asyncio
async def test_login_form(async_client: AsyncClient):
    await async_client.post("/register", data={"acct": "returning", "pw": "longenough"})

    bad = await async_client.post("/login", data={"acct": "returning", "pw": "wrongpassword"})
    assert bad.status_code == 401
    assert "Bad login." in bad.text

    good = await async_client.post(
        "/login", data={"acct": "returning", "pw": "longenough", "goto": "item?id=5"}
    )
    assert good.status_code == 303
    assert good.headers["location"] == "/item?id=5"
    assert settings.SESSION_COOKIE_NAME in good.headers["set-cookie"]


@pytest.mark.asyncio
async def test_logout_clears_cookie(async_client: AsyncClient):
    resp = await async_client.get("/logout", params={"goto": "newest"})
    assert resp.status_code == 303
    assert resp.headers["location"] == "/newest"
    cookie = resp.headers["set-cookie"]
    assert cookie.startswith(f"{settings.SESSION_COOKIE_NAME}=")
    assert "Max-Age=0" in cookie


# ---------------------------------------------------------------------------
# JSON token API
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_api_register_and_login(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/v1/auth/register", json={"id": "apiuser", "password": "longenough", "about": "hi"}
    )
    assert resp.status_code == 201
    token = resp.json()["access_token"]
    assert resp.json()["token_type"] == "bearer"

    body = (await async_client.post(
        "/graphql",
        json={"query": "{ me { id about } }"},
        headers={"Authorization": f"Bearer {token}"},
    )).json()
    assert body["data"]["me"] == {"id": "apiuser", "about": "hi"}

    login = await async_client.post("/api/v1/auth/login", json={"id": "apiuser", "password": "longenough"})
    assert login.status_code == 200
    assert decode_session_token(login.json()["access_token"])["sub"] == "apiuser"

    bad = await async_client.post("/api/v1/auth/login", json={"id": "apiuser", "password": "nope"})
    assert bad.status_code == 401


@pytest.mark.asyncio
async def test_api_register_conflict_and_validation(async_client: AsyncClient, make_user):
    await make_user("taken")
    conflict = await async_client.post(
        "/api/v1/auth/register", json={"id": "taken", "password": "longenough"}
    )
    assert conflict.status_code == 409

    invalid = await async_client.post("/api/v1/auth/register", json={"id": "ok_name", "password": "short"})
    assert invalid.status_code == 422
