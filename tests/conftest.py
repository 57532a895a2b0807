import os
import sys
import logging
import tempfile
from datetime import datetime, timezone

# Configuration is read at import time, so the environment must be ready first
_DB_DIR = tempfile.mkdtemp(prefix="roombook-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ENC_KEY", "test-encryption-key")
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlmodel import SQLModel

import booking_service
from database import async_session, engine
from main import app


@pytest.fixture(scope="session", autouse=True)
def _tests_log_to_stdout():
    root = logging.getLogger()
    if not any(isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stdout
               for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)
    root.setLevel(os.getenv("TEST_LOG_LEVEL", "INFO").upper())


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def db(monkeypatch):
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    # asyncio locks bind to the loop they first wait on; each test gets its own loop
    monkeypatch.setattr(booking_service, "room_locks", booking_service.RoomLocks())
    yield


@pytest.fixture
async def session(db):
    async with async_session() as s:
        yield s


@pytest.fixture
async def client(db):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def register(client):
    """Registers and logs in a user; returns (user_id, jwt)."""
    counter = {"n": 0}

    async def _register(email=None, password="password123", **extra):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        r = await client.post("/users/register", json={
            "first_name": "John",
            "last_name": "Bobson",
            "email": email,
            "password": password,
            "post_code": "54321",
            "country": "NZ",
            "position": "Developer",
            **extra,
        })
        assert r.status_code == 200, r.text
        user_id = r.json()["user"]["id"]
        r = await client.post("/users/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        return user_id, r.json()["jwt"]

    return _register


@pytest.fixture
def make_space(client):
    async def _make_space(jwt, name="Test Space", **extra):
        r = await client.post("/spaces", headers={"jwt": jwt}, json={
            "name": name,
            "description": "Test space description",
            "capacity": 10,
            **extra,
        })
        assert r.status_code == 201, r.text
        return r.json()

    return _make_space


@pytest.fixture
def make_room(client):
    async def _make_room(jwt, space_id, name="Board room", capacity=8):
        r = await client.post("/rooms", headers={"jwt": jwt}, json={
            "space_id": space_id,
            "name": name,
            "description": "This is a new room",
            "capacity": capacity,
        })
        assert r.status_code == 201, r.text
        return r.json()

    return _make_room


@pytest.fixture
def make_booking(client):
    async def _make_booking(jwt, room_id, start, end, **extra):
        r = await client.post("/bookings", headers={"jwt": jwt}, json={
            "room_id": room_id,
            "title": "Test Booking",
            "description": "Weekly sync",
            "start_time": start.isoformat(),
            "end_time": end.isoformat(),
            **extra,
        })
        return r

    return _make_booking
