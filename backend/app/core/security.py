from __future__ import annotations

import hashlib
from datetime import datetime, timedelta

import bcrypt
from fastapi import Header, HTTPException, Request, status
from jose import JWTError, jwt

from ..services.storage import StorageService
from .config import Settings

# bcrypt only looks at the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72


def _hash_identifier(value: int) -> str:
    return hashlib.sha256(str(value).encode("utf-8")).hexdigest()[:12]


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str, *, rounds: int = 12) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(user_id: int, settings: Settings, *, now: datetime | None = None) -> str:
    issued = now or datetime.utcnow()
    expires = issued + timedelta(minutes=settings.access_token_expire_minutes)
    claims = {"sub": str(user_id), "iat": issued, "exp": expires}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> int | None:
    """Return the user id carried by ``token``, or ``None`` if it is invalid or expired."""

    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        return None
    return user_id if user_id > 0 else None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def resolve_authenticated_user(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> int:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise _unauthorized("Authentication required. Please log in.")

    token = authorization.split(" ", 1)[1].strip()
    settings: Settings = request.app.state.settings
    user_id = decode_access_token(token, settings)
    if user_id is None:
        raise _unauthorized("Invalid or expired token.")

    storage: StorageService = request.app.state.storage_service
    user = await storage.get_user_by_id(user_id)
    if user is None:
        raise _unauthorized("User no longer exists.")

    request.state.current_user_id = user_id
    request.state.telemetry_user = _hash_identifier(user_id)
    return user_id


__all__ = [
    "create_access_token",
    "decode_access_token",
    "hash_password",
    "resolve_authenticated_user",
    "verify_password",
]
