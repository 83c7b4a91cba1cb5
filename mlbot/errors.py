"""Exception hierarchy for mlbot."""

from __future__ import annotations

from typing import Any


class MLBotError(Exception):
    """Base error carrying a machine-readable code and details."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class AuthExchangeError(MLBotError):
    """Authorization code was missing, replayed, or rejected by the provider."""


class RefreshFailedError(MLBotError):
    """Refresh grant returned no access token."""


class NotFoundError(RefreshFailedError):
    """No stored credential or refresh token for the requested account."""


class MalformedResponseError(MLBotError):
    """Upstream payload did not match the expected shape."""


class GenerationError(MLBotError):
    """Text generation call failed. Always recovered with the fallback reply."""


class UpstreamError(MLBotError):
    """Non-success response from the marketplace API."""

    def __init__(self, status_code: int, body: str = "", reason: str = ""):
        super().__init__(
            f"ML {status_code} {reason} - {body}".strip(" -"),
            error_code="upstream_error",
            details={"status_code": status_code, "body": body},
        )
        self.status_code = status_code
        self.body = body
