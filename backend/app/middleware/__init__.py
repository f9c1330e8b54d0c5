from __future__ import annotations

from .logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
