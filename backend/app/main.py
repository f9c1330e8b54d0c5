from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from backend.db import create_engine, create_session_factory, init_db

from .ai import MoodInsightGenerator, OpenAIClient
from .analytics import AnalyticsEngine
from .api.v1.routes import router as v1_router
from .core.config import Settings, get_settings
from .core.errors import Unauthenticated
from .core.logging import configure_logging
from .middleware import RequestLoggingMiddleware
from .services.ratelimit import RateLimiter
from .services.storage import StorageService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure application services during startup and ensure graceful shutdown."""

    configure_logging()
    settings: Settings = get_settings()

    engine = create_engine(settings.database_url)
    session_factory = create_session_factory(engine)
    await init_db(engine, session_factory, settings.version, settings.database_url)
    storage_service = StorageService(session_factory)
    rate_limiter = RateLimiter()
    openai_client = OpenAIClient(
        settings.openai_api_key,
        timeout=settings.insights_timeout_seconds,
    )
    analytics_engine = AnalyticsEngine(
        storage_service,
        default_days=settings.analytics_default_days,
        max_days=settings.analytics_max_days,
    )
    insight_generator = MoodInsightGenerator(
        analytics_engine,
        openai_client,
        model=settings.openai_model_primary,
        enabled=settings.insights_ai_enabled and openai_client.available,
        timeout=settings.insights_timeout_seconds,
        attempts=settings.insights_retry_attempts,
        max_tokens=settings.insights_max_tokens,
    )

    app.state.settings = settings
    app.state.storage_service = storage_service
    app.state.db_engine = engine
    app.state.db_session_factory = session_factory
    app.state.rate_limiter = rate_limiter
    app.state.openai_client = openai_client
    app.state.analytics_engine = analytics_engine
    app.state.insight_generator = insight_generator

    logger.info(
        "ZenJournal started version=%s ai_insights=%s",
        settings.version,
        "on" if openai_client.available and settings.insights_ai_enabled else "fallback",
    )

    try:
        yield
    finally:
        await openai_client.close()
        await app.state.db_engine.dispose()


app = FastAPI(title="ZenJournal", version=get_settings().version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(v1_router)


@app.exception_handler(Unauthenticated)
async def handle_unauthenticated(request: Request, exc: Unauthenticated) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": exc.detail},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": "Welcome to ZenJournal - a Mental Health Logging + AI Reflection app"}


@app.get("/healthz")
async def healthz(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    return {"status": "ok", "version": settings.version}


@app.get("/readyz")
async def readyz(request: Request) -> dict[str, Any]:
    storage: StorageService = request.app.state.storage_service

    db_ok = True
    db_detail = "ok"
    schema_version = None
    try:
        await storage.healthcheck()
        schema_version = await storage.get_setting("schema_version")
    except Exception as exc:  # pragma: no cover - defensive logging
        logger.exception("Database readiness check failed: %s", exc)
        db_ok = False
        db_detail = str(exc)

    return {
        "ready": db_ok,
        "db": {"ok": db_ok, "detail": db_detail, "schema_version": schema_version},
    }


@app.get("/metrics")
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
