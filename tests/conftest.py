from __future__ import annotations

import asyncio
from collections.abc import Generator
from pathlib import Path
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from backend.app.core.config import get_settings
from backend.db import create_engine, create_session_factory, init_db


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def app_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[None, None, None]:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("VERSION", "0.1.0-test")
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "test.log"))

    db_path = tmp_path / f"test_{uuid4().hex}.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def test_client(app_env: None) -> Generator[TestClient, None, None]:
    from backend.app.main import app

    with TestClient(app) as client:
        yield client


@pytest.fixture()
def auth_headers(test_client: TestClient) -> dict[str, str]:
    response = test_client.post(
        "/api/v1/auth/signup",
        json={"name": "Ada Lovelace", "email": "ada@example.com", "password": "analytical1"},
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture()
def temp_session_factory(tmp_path: Path):
    db_path = tmp_path / f"unit_{uuid4().hex}.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"
    engine = create_engine(database_url)
    session_factory = create_session_factory(engine)

    async def _prepare() -> None:
        await init_db(engine, session_factory, "test", database_url)
        # drop pooled connections bound to this short-lived loop
        await engine.dispose()

    asyncio.run(_prepare())
    try:
        yield session_factory
    finally:
        asyncio.run(engine.dispose())
