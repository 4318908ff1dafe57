"""
Shared fixtures.

The environment is configured before food_api is imported: a throwaway
SQLite database (or TEST_DATABASE_URL), a fixed JWT secret and a mock
gateway that never fails and never sleeps.
"""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="food_api_tests_")

os.environ.update({
    "ENV_MODE": "development",
    # TEST_DATABASE_URL=postgresql+psycopg://... runs the suite against PostgreSQL
    "DATABASE_URL": os.environ.get("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{_TMP_DIR}/test.db"),
    "JWT_SECRET": "test-secret",
    "MOCK_PAYMENT_FAILURE_RATE": "0",
    "MOCK_PAYMENT_MIN_LATENCY": "0",
    "MOCK_PAYMENT_MAX_LATENCY": "0",
    "PAYMENT_FAILURE_POLICY": "delete",
    "UPLOAD_DIR": os.path.join(_TMP_DIR, "uploads"),
    "FRONTEND_URL": "http://shop.test",
})

import httpx
import pytest

from food_api.core.config import get_settings
from food_api.database import Base, async_session_maker, engine, init_db
from food_api.main import app
from food_api.models import FoodItem
from food_api.services.notifications import reset_notification_service
from food_api.services.payment import reset_payment_service
from food_api.services.users import UserService

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
async def database():
    await init_db()
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Pooled aiosqlite connections are bound to this test's event loop
    await engine.dispose()
    reset_payment_service()
    reset_notification_service()
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def dispatched(monkeypatch):
    """Record notification tasks instead of sending them to a broker."""
    calls = []

    def fake_dispatch(task, payload):
        calls.append((task.name, payload))
        return True

    monkeypatch.setattr("food_api.tasks.dispatch", fake_dispatch)
    return calls


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def session():
    async with async_session_maker() as s:
        yield s


async def register(client, name="A", email="a@x.com", password=PASSWORD) -> str:
    response = await client.post(
        "/api/user/register",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 200, response.text
    return response.json()["token"]


async def make_admin(client, email="admin@x.com") -> str:
    token = await register(client, name="Admin", email=email, password="adminpass1")
    async with async_session_maker() as s:
        await UserService(s, get_settings()).promote(email)
    return token


async def add_food(item_id: str, name: str, price: float, category: str = "Salad") -> None:
    async with async_session_maker() as s:
        s.add(FoodItem(id=item_id, name=name, description="", price=price, category=category))
        await s.commit()


@pytest.fixture
async def user_token(client):
    return await register(client)


@pytest.fixture
async def admin_token(client):
    return await make_admin(client)


@pytest.fixture
async def menu():
    await add_food("f1", "Greek Salad", 12.5)
    await add_food("f2", "Veg Rolls", 4.25, category="Rolls")
    await add_food("f3", "Chocolate Cake", 7.0, category="Cake")
    return {"f1": 12.5, "f2": 4.25, "f3": 7.0}
