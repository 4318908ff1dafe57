from datetime import timedelta

from conftest import PASSWORD, register

from food_api.core.security import create_token, verify_token


async def test_register_returns_usable_token(client, settings):
    response = await client.post(
        "/api/user/register",
        json={"name": "A", "email": "a@x.com", "password": "secret123"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert verify_token(body["token"], settings)


async def test_register_duplicate_email_conflicts(client):
    await register(client, email="a@x.com")

    response = await client.post(
        "/api/user/register",
        json={"name": "B", "email": "A@X.com", "password": PASSWORD},
    )

    assert response.status_code == 409
    assert response.json() == {
        "success": False,
        "error": "conflict",
        "message": "User already exists",
    }


async def test_register_rejects_weak_password(client):
    response = await client.post(
        "/api/user/register",
        json={"name": "A", "email": "a@x.com", "password": "short"},
    )

    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"
    assert "strong password" in response.json()["message"]


async def test_register_rejects_bad_email(client):
    response = await client.post(
        "/api/user/register",
        json={"name": "A", "email": "not-an-email", "password": PASSWORD},
    )

    assert response.status_code == 422
    assert response.json()["success"] is False


async def test_login(client, settings):
    await register(client, email="a@x.com")

    response = await client.post("/api/user/login", json={"email": "a@x.com", "password": PASSWORD})

    assert response.status_code == 200
    assert verify_token(response.json()["token"], settings)


async def test_login_wrong_password(client):
    await register(client, email="a@x.com")

    response = await client.post("/api/user/login", json={"email": "a@x.com", "password": "nope-nope"})

    assert response.status_code == 401
    assert response.json()["error"] == "invalid_credentials"


async def test_login_unknown_user(client):
    response = await client.post("/api/user/login", json={"email": "ghost@x.com", "password": PASSWORD})

    assert response.status_code == 401
    assert response.json()["error"] == "invalid_credentials"


# =============================================================================
# AUTH GATE
# =============================================================================

async def test_protected_route_without_token(client):
    response = await client.post("/api/cart/get")

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": "unauthenticated",
        "message": "Not Authorized. Login Again",
    }


async def test_protected_route_with_invalid_token(client):
    response = await client.post("/api/cart/get", headers={"token": "invalid-token"})

    assert response.status_code == 401
    assert response.json()["error"] == "invalid_token"


async def test_protected_route_with_expired_token(client, settings, user_token):
    user_id = verify_token(user_token, settings)
    expired = create_token(user_id, settings, expires_delta=timedelta(seconds=-5))

    response = await client.post("/api/cart/get", headers={"token": expired})

    assert response.status_code == 401
    assert response.json()["error"] == "invalid_token"


async def test_token_for_unknown_user_is_invalid(client, settings):
    response = await client.post(
        "/api/cart/get",
        headers={"token": create_token("no-such-user", settings)},
    )

    assert response.status_code == 401
    assert response.json()["error"] == "invalid_token"


async def test_bearer_authorization_header_is_accepted(client, user_token):
    response = await client.post(
        "/api/cart/get",
        headers={"Authorization": f"Bearer {user_token}"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": None, "cartData": {}}
