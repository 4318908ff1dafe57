from pathlib import Path

import pytest

from food_api.core.errors import ValidationError
from food_api.services.catalog import CatalogService, safe_filename

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


async def add_item(client, token, name="Greek Salad", price="12.5", image=("salad.png", PNG, "image/png")):
    files = {"image": image} if image else None
    return await client.post(
        "/api/food",
        data={"name": name, "description": "Fresh", "price": price, "category": "Salad"},
        files=files,
        headers={"token": token},
    )


async def test_list_is_public(client, menu):
    response = await client.get("/api/food/list")

    assert response.status_code == 200
    names = {item["name"] for item in response.json()["data"]}
    assert names == {"Greek Salad", "Veg Rolls", "Chocolate Cake"}
    assert (await client.get("/api/food")).json() == response.json()


async def test_admin_adds_item_with_image(client, admin_token, settings):
    response = await add_item(client, admin_token)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Food Added"
    item = body["data"]
    assert item["price"] == 12.5
    assert item["image"].endswith("_salad.png")
    assert (Path(settings.upload_dir) / item["image"]).exists()

    image = await client.get(f"/images/{item['image']}")
    assert image.status_code == 200
    assert image.content == PNG

    listing = (await client.get("/api/food")).json()["data"]
    assert [i["id"] for i in listing] == [item["id"]]


async def test_add_without_image(client, admin_token):
    response = await add_item(client, admin_token, image=None)

    assert response.status_code == 200
    assert response.json()["data"]["image"] is None


async def test_add_requires_admin(client, user_token):
    response = await add_item(client, user_token)

    assert response.status_code == 403
    assert (await client.get("/api/food")).json()["data"] == []


@pytest.mark.parametrize("price", ["0", "-3"])
async def test_add_rejects_non_positive_price(client, admin_token, price):
    response = await add_item(client, admin_token, price=price)

    assert response.status_code == 422
    assert response.json()["success"] is False


async def test_add_rejects_unsupported_image(client, admin_token):
    response = await add_item(client, admin_token, image=("payload.exe", b"MZ", "application/octet-stream"))

    assert response.status_code == 422
    assert "image type" in response.json()["message"]


async def test_admin_removes_item_and_image(client, admin_token, settings):
    item = (await add_item(client, admin_token)).json()["data"]

    response = await client.post("/api/food/remove", json={"id": item["id"]}, headers={"token": admin_token})

    assert response.json() == {"success": True, "message": "Food Removed"}
    assert (await client.get("/api/food")).json()["data"] == []
    assert not (Path(settings.upload_dir) / item["image"]).exists()


async def test_remove_unknown_item(client, admin_token):
    response = await client.post("/api/food/remove", json={"id": "missing"}, headers={"token": admin_token})

    assert response.status_code == 404


async def test_remove_requires_admin(client, user_token, menu):
    response = await client.post("/api/food/remove", json={"id": "f1"}, headers={"token": user_token})

    assert response.status_code == 403


async def test_service_validates_fields(session, settings):
    service = CatalogService(session, settings)

    with pytest.raises(ValidationError):
        await service.add_item(name=" ", description="", price=1.0, category="Salad")
    with pytest.raises(ValidationError):
        await service.add_item(name="Soup", description="", price=1.0, category="")


def test_safe_filename():
    assert safe_filename("../../etc/passwd") == "passwd"
    assert safe_filename("my salad (1).png") == "my_salad_1_.png"
    assert safe_filename("...") == "image"
