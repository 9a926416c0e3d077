"""Request-level errors surfaced to API clients.

Every error renders as ``{"error": <code>, "message": <text>, ...}``.
Upstream failures, exhausted sources and cache I/O problems are absorbed
inside the data layer and never reach this module.
"""
from fastapi import Request
from fastapi.responses import JSONResponse


class DashboardError(Exception):
    """Base class for errors returned to the caller."""

    status_code: int = 500
    error: str = "internal_error"

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message, **self.extra}


class ConfigurationError(DashboardError):
    """A required API key or setting is missing."""

    status_code = 500
    error = "configuration_error"


class UnsupportedSport(DashboardError):
    status_code = 404
    error = "unsupported_sport"

    def __init__(self, sport: str, supported: list[str]):
        super().__init__(
            f"Sport '{sport}' is not supported. Valid options: {', '.join(supported)}",
            supported=supported,
        )
        self.sport = sport
        self.supported = supported


class RateLimitExceeded(DashboardError):
    status_code = 429
    error = "rate_limited"

    def __init__(self, identity: str, retry_after: int):
        super().__init__(
            f"Too many requests. Try again in {retry_after} seconds.",
            retry_after=retry_after,
        )
        self.identity = identity
        self.retry_after = retry_after


class AIProviderError(DashboardError):
    """The generative-AI provider call failed."""

    status_code = 502
    error = "ai_provider_error"


class ReportWriteError(DashboardError):
    """A generated report could not be saved."""

    status_code = 500
    error = "report_write_error"


async def dashboard_error_handler(request: Request, exc: DashboardError) -> JSONResponse:
    """Render a DashboardError as a JSON error envelope."""
    headers = None
    if isinstance(exc, RateLimitExceeded):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)
