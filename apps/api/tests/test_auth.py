import pytest

from conftest import register_and_login
from services.passwords import hash_password, verify_password
from services.permissions import Permission, Role, has_permission, permissions_for_role
from services.session_token import create_access_token, create_refresh_token, decode_token


def test_password_hash_round_trip():
    encoded = hash_password("correct horse battery")

    assert encoded.startswith("scrypt$")
    assert verify_password("correct horse battery", encoded) is True
    assert verify_password("wrong password", encoded) is False
    assert verify_password("anything", "not-a-hash") is False


def test_password_hashes_are_salted():
    assert hash_password("same-password") != hash_password("same-password")


def test_access_token_carries_role_claims():
    issued = create_access_token("user-1", role="scout", permissions=permissions_for_role("scout"), trust_level="verified")

    payload = decode_token(issued["token"])

    assert payload["sub"] == "user-1"
    assert payload["role"] == "scout"
    assert payload["trust_level"] == "verified"
    assert "contact:player" in payload["permissions"]
    assert "upload:video" not in payload["permissions"]


def test_refresh_token_is_not_an_access_token():
    issued = create_refresh_token("user-1")

    with pytest.raises(ValueError):
        decode_token(issued["token"])
    assert decode_token(issued["token"], expected_type="refresh")["sub"] == "user-1"


def test_tampered_token_is_rejected():
    issued = create_access_token("user-1", role="player")

    with pytest.raises(ValueError):
        decode_token(issued["token"] + "x")


def test_role_permission_table():
    assert has_permission("player", Permission.UPLOAD_VIDEO)
    assert not has_permission("scout", Permission.UPLOAD_VIDEO)
    assert has_permission("academy", Permission.VERIFY_PROFILE)
    assert permissions_for_role(Role.ADMIN.value) == frozenset(Permission)
    assert permissions_for_role("stranger") == frozenset()


@pytest.mark.asyncio
async def test_register_login_and_me(api_client):
    headers = await register_and_login(api_client, "Player@Example.com", role="player")

    response = await api_client.get("/auth/me", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "player@example.com"
    assert data["role"] == "player"
    assert "upload:video" in data["permissions"]
    assert data["trust_level"] == "newcomer"


@pytest.mark.asyncio
async def test_duplicate_registration_conflicts(api_client):
    payload = {"email": "dup@example.com", "password": "strong-password-1", "role": "scout"}

    first = await api_client.post("/auth/register", json=payload)
    second = await api_client.post("/auth/register", json=payload)

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["detail"] == "User already exists"


@pytest.mark.asyncio
async def test_admin_role_cannot_self_register(api_client):
    response = await api_client.post(
        "/auth/register",
        json={"email": "boss@example.com", "password": "strong-password-1", "role": "admin"},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_login_with_wrong_password_fails(api_client):
    await register_and_login(api_client, "scout@example.com", role="scout")

    response = await api_client.post(
        "/auth/login",
        json={"email": "scout@example.com", "password": "not-the-password"},
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_refresh_issues_new_tokens(api_client):
    await api_client.post(
        "/auth/register",
        json={"email": "academy@example.com", "password": "strong-password-1", "role": "academy"},
    )
    login = await api_client.post(
        "/auth/login",
        json={"email": "academy@example.com", "password": "strong-password-1"},
    )

    response = await api_client.post("/auth/refresh", json={"refresh_token": login.json()["refresh_token"]})

    assert response.status_code == 200
    assert decode_token(response.json()["access_token"])["role"] == "academy"


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(api_client):
    headers = await register_and_login(api_client, "player2@example.com")
    access_token = headers["Authorization"].split(" ", 1)[1]

    response = await api_client.post("/auth/refresh", json={"refresh_token": access_token})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_bearer_token(api_client):
    response = await api_client.get("/auth/me")

    assert response.status_code == 401
