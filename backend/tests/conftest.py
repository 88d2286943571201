import os
import tempfile
from pathlib import Path

# Settings are read at import time, so the environment must be in place first.
_DB_PATH = Path(tempfile.mkdtemp(prefix="reservations-tests-")) / "test.db"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ["REDIS_URL"] = "redis://localhost:6379/15"
os.environ["JWT_SECRET"] = "test-secret-that-is-long-enough-for-hs256"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["CONFLICT_POLICY"] = "exact"

from uuid import uuid4

import fakeredis
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from backend.app.core import redis_client as redis_module
from backend.app.core.security import create_access_token
from backend.app.db.models import User, UserRole
from backend.app.db.session import SessionLocal, create_schema, engine
from backend.app.main import app
from backend.app.services.users import identity_of


BOOKING_DATE = "2030-06-14"


@pytest_asyncio.fixture
async def database():
    await create_schema(drop_existing=True)
    try:
        yield
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def redis():
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    redis_module.redis_client = client
    try:
        yield client
    finally:
        redis_module.redis_client = None
        await client.aclose()


@pytest_asyncio.fixture
async def client(database, redis):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


class Account:
    def __init__(self, user_id: str, token: str) -> None:
        self.id = user_id
        self.token = token
        self.headers = {"Authorization": f"Bearer {token}"}


async def _register(http: AsyncClient, role: str) -> Account:
    response = await http.post(
        "/api/v1/auth/register",
        json={
            "email": f"{role.lower()}-{uuid4().hex[:8]}@example.com",
            "password": "correct-horse",
            "first_name": "Test",
            "last_name": role.title(),
            "role": role,
        },
    )
    assert response.status_code == 201, response.text
    body = response.json()
    return Account(body["user"]["id"], body["token"])


@pytest_asyncio.fixture
async def customer(client) -> Account:
    return await _register(client, "CUSTOMER")


@pytest_asyncio.fixture
async def other_customer(client) -> Account:
    return await _register(client, "CUSTOMER")


@pytest_asyncio.fixture
async def owner(client) -> Account:
    return await _register(client, "RESTAURANT_OWNER")


@pytest_asyncio.fixture
async def other_owner(client) -> Account:
    return await _register(client, "RESTAURANT_OWNER")


@pytest_asyncio.fixture
async def admin(client) -> Account:
    # Admins cannot self-register.
    async with SessionLocal() as session:
        async with session.begin():
            user = User(
                email=f"admin-{uuid4().hex[:8]}@example.com",
                password_hash="unused",
                first_name="Ada",
                last_name="Admin",
                role=UserRole.ADMIN,
            )
            session.add(user)
    return Account(str(user.id), create_access_token(identity_of(user)))


@pytest.fixture
def make_restaurant(client, owner):
    """Create a restaurant owned by ``owner``; keyword overrides go into the payload."""

    async def _make(account: Account | None = None, **overrides) -> dict:
        payload = {
            "name": "Chez Test",
            "address": "1 Test Street",
            "city": "Springfield",
            "phone": "+1-555-0100",
            "cuisine": "French",
            "opening_time": "11:00",
            "closing_time": "23:00",
            "total_tables": 10,
            "capacity": 40,
        }
        payload.update(overrides)
        response = await client.post(
            "/api/v1/restaurants", json=payload, headers=(account or owner).headers
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture
def book(client, customer):
    """POST a booking and return the raw response."""

    async def _book(restaurant_id: str, *, time: str = "19:00", party_size: int = 2,
                    account: Account | None = None, date: str = BOOKING_DATE, **extra):
        payload = {
            "restaurant_id": restaurant_id,
            "date": date,
            "time": time,
            "party_size": party_size,
            **extra,
        }
        return await client.post(
            "/api/v1/bookings", json=payload, headers=(account or customer).headers
        )

    return _book
