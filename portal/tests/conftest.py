"""
portal/tests/conftest.py
Shared fixtures: a fresh seeded in-memory database per test and an
ASGI client bound to it.
"""
import os

# Must be set before portal.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["GEMINI_API_KEY"] = ""

import pytest
from httpx import AsyncClient, ASGITransport

from portal.ai import service as ai_service
from portal.config.settings import Settings
from portal.database import build_engine, build_session_factory, get_db, init_db, session_scope
from portal.main import app
from portal.seed.seed_portal import seed_portal


@pytest.fixture
async def session_factory():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await init_db(bind=engine)
    factory = build_session_factory(engine)
    async with factory() as session:
        await seed_portal(session)
    yield factory
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_scope(session_factory) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def fake_llm(monkeypatch):
    """Replace the Gemini call; yields the list of prompts sent."""
    prompts = []

    async def _fake_call(prompt: str) -> str:
        prompts.append(prompt)
        return f"Generated reply #{len(prompts)}"

    monkeypatch.setattr(ai_service, "_call_llm", _fake_call)
    monkeypatch.setattr(Settings, "GEMINI_API_KEY", "test-key")
    ai_service.clear_cache()
    yield prompts
    ai_service.clear_cache()


async def login(client, username: str, role: str, password: str = None) -> str:
    response = await client.post("/api/auth/login", json={
        "username": username,
        "password": password or username,
        "role": role,
    })
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
