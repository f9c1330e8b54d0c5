from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, Response, status
from fastapi.responses import StreamingResponse

from ...ai.insights import MoodInsightGenerator
from ...analytics.engine import AnalyticsEngine
from ...core.config import Settings
from ...core.security import (
    create_access_token,
    hash_password,
    resolve_authenticated_user,
    verify_password,
)
from ...metrics import USER_API_COUNTER
from ...schemas.analytics import ActivityResponse, OverviewResponse, TrendsResponse
from ...schemas.auth import (
    LoginRequest,
    NotificationSettings,
    NotificationSettingsUpdate,
    PasswordChange,
    ProfileUpdate,
    SignupRequest,
    TokenResponse,
    UserModel,
)
from ...schemas.journal import (
    JournalCreate,
    JournalEntryModel,
    JournalFilters,
    JournalListResponse,
    JournalUpdate,
    Pagination,
)
from ...schemas.mood import (
    CalendarResponse,
    InsightsResponse,
    MoodLogRequest,
    MoodLogResponse,
    StatsResponse,
)
from ...services.ratelimit import (
    ENTRY_CREATE_RULE,
    LOGIN_RULE,
    SIGNUP_RULE,
    RateLimiter,
    RateRule,
)
from ...services.storage import (
    SORT_ORDERS,
    DuplicateEmail,
    EntryForbidden,
    EntryNotFound,
    StorageService,
)

router = APIRouter(prefix="/api/v1", tags=["core"])

# SQLite and PostgreSQL integer keys are signed 64-bit.
MAX_ENTRY_ID = 2**63 - 1
MAX_PAGE = 100_000


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_storage_service(request: Request) -> StorageService:
    return request.app.state.storage_service


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_analytics_engine(request: Request) -> AnalyticsEngine:
    return request.app.state.analytics_engine


def get_insight_generator(request: Request) -> MoodInsightGenerator:
    return request.app.state.insight_generator


def _client_key(request: Request) -> str:
    return request.client.host if request.client else "anonymous"


def _enforce_rate_limit(limiter: RateLimiter, key: str, rule: RateRule) -> None:
    if limiter.check(key, rule):
        return
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Too many requests. Please try again later.",
        headers={"Retry-After": str(limiter.retry_after(key, rule))},
    )


def _entry_errors(exc: Exception) -> HTTPException:
    if isinstance(exc, EntryForbidden):
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not allowed to modify this entry.",
        )
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Journal entry not found.")


# -- auth -------------------------------------------------------------------
@router.post("/auth/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    request: Request,
    storage: StorageService = Depends(get_storage_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_settings_dep),
) -> TokenResponse:
    _enforce_rate_limit(limiter, f"signup:{_client_key(request)}", SIGNUP_RULE)
    try:
        user = await storage.create_user(
            name=payload.name,
            email=payload.email,
            password_hash=hash_password(payload.password, rounds=settings.bcrypt_rounds),
        )
    except DuplicateEmail as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists.",
        ) from exc
    USER_API_COUNTER.labels(endpoint="auth_signup").inc()
    return TokenResponse(
        token=create_access_token(user.id, settings),
        user=UserModel.model_validate(user),
    )


@router.post("/auth/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    request: Request,
    storage: StorageService = Depends(get_storage_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_settings_dep),
) -> TokenResponse:
    _enforce_rate_limit(
        limiter,
        f"login:{_client_key(request)}:{payload.email.lower()}",
        LOGIN_RULE,
    )
    user = await storage.get_user_by_email(payload.email)
    if user is None or not verify_password(payload.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )
    USER_API_COUNTER.labels(endpoint="auth_login").inc()
    return TokenResponse(
        token=create_access_token(user.id, settings),
        user=UserModel.model_validate(user),
    )


@router.get("/auth/me", response_model=UserModel)
async def read_me(
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> UserModel:
    user = await storage.get_user_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    USER_API_COUNTER.labels(endpoint="auth_me").inc()
    return UserModel.model_validate(user)


@router.put("/auth/profile", response_model=UserModel)
async def update_profile(
    payload: ProfileUpdate,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> UserModel:
    try:
        user = await storage.update_profile(user_id, name=payload.name, email=payload.email)
    except DuplicateEmail as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email is already in use by another account.",
        ) from exc
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    USER_API_COUNTER.labels(endpoint="auth_profile").inc()
    return UserModel.model_validate(user)


@router.put("/auth/change-password")
async def change_password(
    payload: PasswordChange,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
    settings: Settings = Depends(get_settings_dep),
) -> dict[str, Any]:
    user = await storage.get_user_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    if not verify_password(payload.current_password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect.",
        )
    await storage.update_password(
        user_id,
        hash_password(payload.new_password, rounds=settings.bcrypt_rounds),
    )
    USER_API_COUNTER.labels(endpoint="auth_change_password").inc()
    return {"ok": True}


@router.delete("/auth/account", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> Response:
    await storage.delete_user(user_id)
    USER_API_COUNTER.labels(endpoint="auth_account_delete").inc()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/auth/notification-settings", response_model=NotificationSettings)
async def read_notification_settings(
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> NotificationSettings:
    settings = await storage.get_notification_settings(user_id)
    if settings is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    USER_API_COUNTER.labels(endpoint="notification_settings_get").inc()
    return NotificationSettings.model_validate(settings)


@router.put("/auth/notification-settings", response_model=NotificationSettings)
async def update_notification_settings(
    payload: NotificationSettingsUpdate,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> NotificationSettings:
    settings = await storage.update_notification_settings(
        user_id, payload.model_dump(exclude_none=True)
    )
    if settings is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    USER_API_COUNTER.labels(endpoint="notification_settings_put").inc()
    return NotificationSettings.model_validate(settings)


@router.get("/auth/export-data", response_model=None)
async def export_data(
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
    format: Literal["json", "csv"] = Query(default="json"),
) -> StreamingResponse | dict[str, Any]:
    USER_API_COUNTER.labels(endpoint=f"export_{format}").inc()
    if format == "csv":
        content = await storage.export_user_csv(user_id)
        return StreamingResponse(
            iter([content]),
            media_type="text/csv",
            headers={"Content-Disposition": "attachment; filename=zenjournal-export.csv"},
        )
    data = await storage.export_user_json(user_id)
    if data is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return data


# -- journal ----------------------------------------------------------------
@router.post(
    "/journal",
    response_model=JournalEntryModel,
    status_code=status.HTTP_201_CREATED,
)
async def create_journal_entry(
    payload: JournalCreate,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> JournalEntryModel:
    _enforce_rate_limit(limiter, f"journal:{user_id}", ENTRY_CREATE_RULE)
    entry = await storage.add_journal_entry(
        user_id=user_id,
        title=payload.title,
        content=payload.content,
    )
    USER_API_COUNTER.labels(endpoint="journal_post").inc()
    return JournalEntryModel.model_validate(entry)


async def _list_page(
    storage: StorageService,
    user_id: int,
    *,
    page: int,
    limit: int,
    search: str | None,
    sort: str,
) -> JournalListResponse:
    sort_key = sort if sort in SORT_ORDERS else "newest"
    entries, total = await storage.page_entries(
        user_id,
        page=page,
        limit=limit,
        search=search,
        sort=sort_key,
    )
    total_pages = math.ceil(total / limit)
    return JournalListResponse(
        entries=[JournalEntryModel.model_validate(entry) for entry in entries],
        pagination=Pagination(
            current_page=page,
            total_pages=total_pages,
            total_entries=total,
            entries_per_page=limit,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        ),
        filters=JournalFilters(search=search or "", sort=sort_key),
    )


@router.get("/journal", response_model=JournalListResponse)
async def list_journal_entries(
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
    page: int = Query(default=1, ge=1, le=MAX_PAGE),
    limit: int = Query(default=10, ge=1, le=100),
    search: str | None = Query(default=None, max_length=200),
    sort: str = Query(default="newest"),
) -> JournalListResponse:
    response = await _list_page(storage, user_id, page=page, limit=limit, search=search, sort=sort)
    USER_API_COUNTER.labels(endpoint="journal_get").inc()
    return response


@router.get("/journal/recent", response_model=JournalListResponse)
async def list_recent_journal_entries(
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
    page: int = Query(default=1, ge=1, le=MAX_PAGE),
    limit: int = Query(default=12, ge=1, le=100),
    search: str | None = Query(default=None, max_length=200),
    sort: str = Query(default="newest"),
) -> JournalListResponse:
    response = await _list_page(storage, user_id, page=page, limit=limit, search=search, sort=sort)
    USER_API_COUNTER.labels(endpoint="journal_recent").inc()
    return response


@router.put("/journal/{entry_id}", response_model=JournalEntryModel)
async def update_journal_entry(
    payload: JournalUpdate,
    entry_id: int = Path(le=MAX_ENTRY_ID),
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> JournalEntryModel:
    try:
        entry = await storage.update_journal_entry(
            entry_id,
            user_id,
            title=payload.title,
            content=payload.content,
        )
    except (EntryNotFound, EntryForbidden) as exc:
        raise _entry_errors(exc) from exc
    USER_API_COUNTER.labels(endpoint="journal_put").inc()
    return JournalEntryModel.model_validate(entry)


@router.delete("/journal/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_journal_entry(
    entry_id: int = Path(le=MAX_ENTRY_ID),
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> Response:
    try:
        await storage.delete_journal_entry(entry_id, user_id)
    except (EntryNotFound, EntryForbidden) as exc:
        raise _entry_errors(exc) from exc
    USER_API_COUNTER.labels(endpoint="journal_delete").inc()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -- analytics --------------------------------------------------------------
@router.get("/analytics/overview", response_model=OverviewResponse)
async def analytics_overview(
    engine: AnalyticsEngine = Depends(get_analytics_engine),
    user_id: int = Depends(resolve_authenticated_user),
) -> OverviewResponse:
    result = await engine.overview(user_id)
    USER_API_COUNTER.labels(endpoint="analytics_overview").inc()
    return OverviewResponse.model_validate(result)


@router.get("/analytics/trends", response_model=TrendsResponse)
async def analytics_trends(
    engine: AnalyticsEngine = Depends(get_analytics_engine),
    user_id: int = Depends(resolve_authenticated_user),
    period: str | None = Query(default=None),
) -> TrendsResponse:
    result = await engine.trends(user_id, period)
    USER_API_COUNTER.labels(endpoint="analytics_trends").inc()
    return TrendsResponse.model_validate(result)


@router.get("/analytics/activity", response_model=ActivityResponse)
async def analytics_activity(
    engine: AnalyticsEngine = Depends(get_analytics_engine),
    user_id: int = Depends(resolve_authenticated_user),
) -> ActivityResponse:
    result = await engine.activity(user_id)
    USER_API_COUNTER.labels(endpoint="analytics_activity").inc()
    return ActivityResponse.model_validate(result)


# -- mood -------------------------------------------------------------------
@router.get("/mood/calendar", response_model=CalendarResponse)
async def mood_calendar(
    engine: AnalyticsEngine = Depends(get_analytics_engine),
    user_id: int = Depends(resolve_authenticated_user),
    month: str | None = Query(default=None),
    year: str | None = Query(default=None),
) -> CalendarResponse:
    result = await engine.calendar(user_id, month, year)
    USER_API_COUNTER.labels(endpoint="mood_calendar").inc()
    return CalendarResponse.model_validate(result)


@router.get("/mood/stats", response_model=StatsResponse)
async def mood_stats(
    engine: AnalyticsEngine = Depends(get_analytics_engine),
    user_id: int = Depends(resolve_authenticated_user),
    days: str | None = Query(default=None),
) -> StatsResponse:
    result = await engine.stats(user_id, days)
    USER_API_COUNTER.labels(endpoint="mood_stats").inc()
    return StatsResponse.model_validate(result)


@router.get("/mood/insights", response_model=InsightsResponse)
async def mood_insights(
    generator: MoodInsightGenerator = Depends(get_insight_generator),
    user_id: int = Depends(resolve_authenticated_user),
) -> InsightsResponse:
    result = await generator.generate(user_id)
    USER_API_COUNTER.labels(endpoint="mood_insights").inc()
    return InsightsResponse.model_validate(result)


@router.post("/mood/log", response_model=MoodLogResponse, status_code=status.HTTP_201_CREATED)
async def log_mood(
    payload: MoodLogRequest,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> MoodLogResponse:
    _enforce_rate_limit(limiter, f"journal:{user_id}", ENTRY_CREATE_RULE)
    today = datetime.utcnow().date().isoformat()
    entry = await storage.add_journal_entry(
        user_id=user_id,
        title=f"Mood Check - {today}",
        content=payload.note or f"Feeling {payload.mood} today.",
    )
    USER_API_COUNTER.labels(endpoint="mood_log").inc()
    return MoodLogResponse(entry=JournalEntryModel.model_validate(entry), mood=payload.mood)
