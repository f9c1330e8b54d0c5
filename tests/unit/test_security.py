from __future__ import annotations

from datetime import datetime, timedelta
from types import SimpleNamespace

from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from backend.app.core.config import Settings
from backend.app.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    resolve_authenticated_user,
    verify_password,
)


def _settings(**overrides) -> Settings:
    values = {"JWT_SECRET": "unit-secret", "BCRYPT_ROUNDS": 4}
    values.update(overrides)
    return Settings(**values)


class _StubStorage:
    def __init__(self, known_ids: set[int]) -> None:
        self.known_ids = known_ids

    async def get_user_by_id(self, user_id: int):
        if user_id in self.known_ids:
            return SimpleNamespace(id=user_id)
        return None


def _app_with_security(storage: _StubStorage, settings: Settings) -> FastAPI:
    app = FastAPI()
    app.state.storage_service = storage
    app.state.settings = settings

    @app.get("/secure")
    async def secure_endpoint(
        request: Request,
        user_id: int = Depends(resolve_authenticated_user),
    ) -> dict[str, object]:
        return {"user": user_id, "telemetry": request.state.telemetry_user}

    return app


def test_password_hash_roundtrip() -> None:
    hashed = hash_password("correct horse", rounds=4)
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)
    assert not verify_password("correct horse", "not-a-bcrypt-hash")


def test_password_longer_than_bcrypt_limit() -> None:
    base = "x" * 72
    hashed = hash_password(base + "tail", rounds=4)
    assert verify_password(base + "other", hashed)


def test_token_roundtrip_and_expiry() -> None:
    settings = _settings()
    token = create_access_token(7, settings)
    assert decode_access_token(token, settings) == 7

    expired = create_access_token(
        7,
        settings,
        now=datetime.utcnow() - timedelta(minutes=settings.access_token_expire_minutes + 1),
    )
    assert decode_access_token(expired, settings) is None
    assert decode_access_token(token, _settings(JWT_SECRET="other")) is None
    assert decode_access_token("garbage", settings) is None


def test_resolve_authenticated_user_bearer() -> None:
    settings = _settings()
    app = _app_with_security(_StubStorage({3}), settings)
    token = create_access_token(3, settings)
    with TestClient(app) as client:
        response = client.get("/secure", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        body = response.json()
        assert body["user"] == 3
        assert len(body["telemetry"]) == 12


def test_resolve_authenticated_user_missing_header() -> None:
    app = _app_with_security(_StubStorage({3}), _settings())
    with TestClient(app) as client:
        response = client.get("/secure")
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"


def test_resolve_authenticated_user_invalid_token() -> None:
    app = _app_with_security(_StubStorage({3}), _settings())
    with TestClient(app) as client:
        response = client.get("/secure", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401


def test_resolve_authenticated_user_deleted_user() -> None:
    settings = _settings()
    app = _app_with_security(_StubStorage(set()), settings)
    token = create_access_token(3, settings)
    with TestClient(app) as client:
        response = client.get("/secure", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
