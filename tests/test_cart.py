import asyncio

import pytest

from food_api.core.config import get_settings
from food_api.core.errors import NotFoundError, ValidationError
from food_api.core.security import verify_token
from food_api.database import async_session_maker
from food_api.services.cart import CartService


async def test_add_twice_counts_two(client, user_token):
    headers = {"token": user_token}

    await client.post("/api/cart/add", json={"itemId": "f1"}, headers=headers)
    response = await client.post("/api/cart/add", json={"itemId": "f1"}, headers=headers)

    assert response.status_code == 200
    assert response.json()["cartData"] == {"f1": 2}
    assert response.json()["message"] == "Added To Cart"


async def test_add_then_remove_restores_cart(client, user_token):
    headers = {"token": user_token}
    await client.post("/api/cart/add", json={"itemId": "f2"}, headers=headers)
    before = (await client.post("/api/cart/get", headers=headers)).json()["cartData"]

    await client.post("/api/cart/add", json={"itemId": "f1"}, headers=headers)
    await client.post("/api/cart/remove", json={"itemId": "f1"}, headers=headers)
    after = (await client.post("/api/cart/get", headers=headers)).json()["cartData"]

    assert before == after == {"f2": 1}


async def test_remove_floors_at_zero_and_prunes(client, user_token):
    headers = {"token": user_token}
    await client.post("/api/cart/add", json={"itemId": "f1"}, headers=headers)

    await client.post("/api/cart/remove", json={"itemId": "f1"}, headers=headers)
    response = await client.post("/api/cart/remove", json={"itemId": "f1"}, headers=headers)

    assert response.status_code == 200
    assert response.json()["cartData"] == {}


async def test_cart_is_per_user(client, user_token):
    from conftest import register

    other = await register(client, name="B", email="b@x.com")
    await client.post("/api/cart/add", json={"itemId": "f1"}, headers={"token": user_token})

    response = await client.post("/api/cart/get", headers={"token": other})

    assert response.json()["cartData"] == {}


async def test_cart_requires_item_id(client, user_token):
    response = await client.post("/api/cart/add", json={}, headers={"token": user_token})

    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


async def test_service_independent_items(session, settings, user_token):
    user_id = verify_token(user_token, settings)
    service = CartService(session)

    await service.add_item(user_id, "f1")
    await service.add_item(user_id, "f2")
    await service.add_item(user_id, "f1")
    await service.remove_item(user_id, "f2")

    assert await service.get_cart(user_id) == {"f1": 2}

    await service.clear_cart(user_id)
    assert await service.get_cart(user_id) == {}


async def test_service_unknown_user(session):
    service = CartService(session)

    with pytest.raises(NotFoundError):
        await service.add_item("missing", "f1")
    with pytest.raises(NotFoundError):
        await service.get_cart("missing")


async def test_service_blank_item_id(session, settings, user_token):
    with pytest.raises(ValidationError):
        await CartService(session).add_item(verify_token(user_token, settings), "  ")


@pytest.mark.skipif(
    not get_settings().database_url.startswith("postgresql"),
    reason="SQLite has no row locks; set TEST_DATABASE_URL to a PostgreSQL database",
)
async def test_concurrent_adds_are_not_lost(settings, user_token):
    user_id = verify_token(user_token, settings)

    async def add_one():
        async with async_session_maker() as s:
            await CartService(s).add_item(user_id, "f1")

    await asyncio.gather(*(add_one() for _ in range(20)))

    async with async_session_maker() as s:
        assert await CartService(s).get_cart(user_id) == {"f1": 20}
