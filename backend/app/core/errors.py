from __future__ import annotations


class Unauthenticated(Exception):
    """Raised when an operation runs without a valid caller identity."""

    def __init__(self, detail: str = "Authentication required. Please log in.") -> None:
        super().__init__(detail)
        self.detail = detail


class UpstreamUnavailable(Exception):
    """The external language model could not be reached or is not configured."""


__all__ = ["Unauthenticated", "UpstreamUnavailable"]
