import asyncio
import os

# configuration is read at import time of app.main; keep tests on the local backend
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ["BACKEND"] = "local"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOCALE"] = "en"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.backend.base import BackendError
from app.backend.local import LocalBackend
from app.config import load_settings
from app.main import create_app

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FlakyBackend(LocalBackend):
    """Local backend whose table calls can be made to fail or to wait."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail: set[str] = set()
        self.pause: dict[str, asyncio.Event] = {}
        self.calls: list[str] = []

    async def _hook(self, op: str) -> None:
        self.calls.append(op)
        if op in self.pause:
            await self.pause[op].wait()
        if op in self.fail:
            raise BackendError(f"{op} failed: network error", 503)

    async def select(self, access_token, table, filters, order="id.asc"):
        await self._hook("select")
        return await super().select(access_token, table, filters, order)

    async def insert(self, access_token, table, row):
        await self._hook("insert")
        return await super().insert(access_token, table, row)

    async def update(self, access_token, table, filters, patch):
        await self._hook("update")
        return await super().update(access_token, table, filters, patch)

    async def delete(self, access_token, table, filters):
        await self._hook("delete")
        return await super().delete(access_token, table, filters)


@pytest.fixture
def settings():
    return load_settings()


@pytest_asyncio.fixture
async def backend(settings):
    b = FlakyBackend(TEST_DATABASE_URL, settings.service_role_key)
    await b.init()
    yield b
    await b.aclose()


@pytest.fixture
def app(settings, backend):
    return create_app(settings, backend)


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def session_factory(backend):
    """Create a user through the backend and return a signed-in session."""

    async def make(email: str, password: str = "s3cret-pw"):
        await backend.sign_up(email, password)
        return await backend.sign_in(email, password)

    return make


@pytest.fixture
def login():
    """Sign up and log in through the HTML forms; the cookie lands in the client jar."""

    async def do(client, email: str, password: str = "s3cret-pw"):
        await client.post("/signup", data={"email": email, "password": password, "confirm_password": password})
        res = await client.post("/login", data={"email": email, "password": password})
        assert res.status_code == 303
        return res

    return do


@pytest.fixture
def wait_for_call(backend):
    """Wait until a concurrently running request has reached a backend call."""

    async def wait(op: str):
        for _ in range(200):
            if op in backend.calls:
                return
            await asyncio.sleep(0.01)
        raise AssertionError(f"{op} was never called")

    return wait
