from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "zenjournal_requests_total",
    "Total HTTP requests processed by ZenJournal",
    ("method", "path", "status"),
)

REQUEST_LATENCY = Histogram(
    "zenjournal_request_latency_seconds",
    "HTTP request latency in seconds",
    ("method", "path"),
)

REQUEST_ERRORS = Counter(
    "zenjournal_request_errors_total",
    "HTTP requests resulting in server errors",
    ("method", "path", "status"),
)

USER_API_COUNTER = Counter(
    "zenjournal_user_api_hits_total",
    "Authenticated API hits per endpoint",
    ("endpoint",),
)

AI_REQUESTS = Counter(
    "zenjournal_ai_insights_total",
    "Mood insight responses by source",
    ("source",),
)

__all__ = [
    "AI_REQUESTS",
    "REQUEST_COUNT",
    "REQUEST_ERRORS",
    "REQUEST_LATENCY",
    "USER_API_COUNTER",
]
