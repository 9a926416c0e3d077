"""FastAPI dependencies.

Services are built once per app in the lifespan and stored on
``app.state``; routes reach them through these functions.
"""
from fastapi import Request

from app.core.rate_limiting import RateLimiter, client_identity
from app.services.ai_insights import GeminiClient
from app.services.dispatcher import DataDispatcher


def get_dispatcher(request: Request) -> DataDispatcher:
    return request.app.state.dispatcher


def get_ai_client(request: Request) -> GeminiClient:
    return request.app.state.ai_client


def get_identity(request: Request) -> str:
    return client_identity(request)


async def enforce_ai_rate_limit(request: Request) -> None:
    """Apply the stricter AI limiter to the calling client."""
    limiter: RateLimiter = request.app.state.ai_limiter
    limiter.check(client_identity(request))
