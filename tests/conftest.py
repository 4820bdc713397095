"""Pytest configuration and fixtures."""
import os
import tempfile
from contextlib import AsyncExitStack

# Set test env BEFORE any imports that use config
_tmpdir = tempfile.mkdtemp(prefix="linkpage-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_tmpdir, 'test.db')}"
os.environ["COOKIE_SECRET"] = "test-cookie-secret-0123456789abcdef"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["INITIAL_ADMIN_PASSWORD"] = "testpass123"
os.environ["INITIAL_ADMIN_USERNAME"] = "admin"

import pytest
from httpx import ASGITransport, AsyncClient

from core.models.base import Base, async_session_factory, engine, init_db
from web.api.main import app

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "testpass123"
USER_PASSWORD = "hunter22"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
async def _fresh_db():
    """Start every test from empty tables (ASGI lifespan doesn't run with httpx)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await init_db()
    yield
    await engine.dispose()


@pytest.fixture
async def db():
    """A database session for calling services directly."""
    async with async_session_factory() as session:
        yield session


def _new_client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.fixture
async def client():
    """Anonymous HTTP client. Keeps cookies like a browser."""
    async with _new_client() as ac:
        yield ac


@pytest.fixture
async def admin_client():
    """Client logged in as the bootstrap administrator (user id 1)."""
    async with _new_client() as ac:
        r = await ac.post("/login", data={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
        assert r.status_code == 303, f"Login failed: {r.text}"
        yield ac


async def mint_key(admin_client: AsyncClient) -> str:
    """Mint an invite key through the admin UI and return it."""
    r = await admin_client.post("/admin/keys")
    assert r.status_code == 303
    r = await admin_client.get("/admin/keys")
    return r.json()["keys"][0]["key"]


async def user_id_of(admin_client: AsyncClient, username: str) -> int:
    r = await admin_client.get("/admin/users")
    return next(u["id"] for u in r.json()["users"] if u["username"] == username)


@pytest.fixture
async def signed_up(admin_client):
    """Factory: sign up a new user with a fresh invite and return their logged-in client."""
    async with AsyncExitStack() as stack:

        async def make(username: str, password: str = USER_PASSWORD) -> AsyncClient:
            key = await mint_key(admin_client)
            ac = await stack.enter_async_context(_new_client())
            r = await ac.post("/signup", data={"username": username, "password": password, "invite": key})
            assert r.status_code == 303, f"Signup failed: {r.text}"
            return ac

        yield make
