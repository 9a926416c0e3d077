"""Sports Stats Dashboard API - FastAPI application."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.config import Settings, get_settings
from app.core.errors import DashboardError, dashboard_error_handler
from app.core.logging_config import configure_logging
from app.core.rate_limiting import RateLimiter
from app.integrations.upstream import UpstreamClient
from app.services.ai_insights import GeminiClient
from app.services.cache import ResponseCache
from app.services.dispatcher import DataDispatcher
from app.api.v1.router import router as api_router

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build an app with its own cache, limiters and clients.

    ``transport`` replaces the network for every outbound HTTP call.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan - startup and shutdown."""
        configure_logging(settings.log_level)
        app.state.settings = settings
        app.state.dispatcher = DataDispatcher(
            settings=settings,
            cache=ResponseCache(
                settings.cache_dir,
                ttl_seconds=settings.cache_ttl_seconds,
                max_entries=settings.cache_max_entries,
            ),
            limiter=RateLimiter(
                max_requests=settings.rate_limit_per_window,
                window_seconds=settings.rate_limit_window_seconds,
                max_identities=settings.rate_limit_max_identities,
            ),
            upstream=UpstreamClient(transport=transport),
        )
        app.state.ai_limiter = RateLimiter(
            max_requests=settings.ai_rate_limit_per_window,
            window_seconds=settings.rate_limit_window_seconds,
            max_identities=settings.rate_limit_max_identities,
        )
        app.state.ai_client = GeminiClient(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            timeout=settings.ai_timeout_seconds,
            context_max_chars=settings.ai_context_max_chars,
            reports_dir=settings.reports_dir,
            transport=transport,
        )
        if not settings.sports_api_key:
            logger.warning("SPORTS_API_KEY not set; only keyless sports (f1) will load")
        if not settings.gemini_api_key:
            logger.warning("GEMINI_API_KEY not set; AI endpoints are disabled")
        try:
            settings.reports_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Could not create reports dir %s: %s", settings.reports_dir, e)
        logger.info("Cache dir %s, TTL %.1fh", settings.cache_dir, settings.cache_ttl_hours)
        yield

    app = FastAPI(
        title=settings.app_name,
        description="Sports data proxy with disk cache, rate limiting and AI insights",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,  # Disable docs in production
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    app.add_exception_handler(DashboardError, dashboard_error_handler)

    # CORS - strict in production
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list if settings.is_production else ["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        max_age=600,  # Cache preflight for 10 minutes
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        """Add security headers to all responses."""
        response = await call_next(request)

        if settings.is_production:
            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log requests in development."""
        if settings.is_development:
            logger.debug("[%s] %s", request.method, request.url.path)
        return await call_next(request)

    app.include_router(api_router, prefix=settings.api_prefix)

    # Generated AI reports
    app.mount(
        "/reports",
        StaticFiles(directory=settings.reports_dir, check_dir=False),
        name="reports",
    )

    @app.get("/")
    async def root():
        """Root endpoint - health check."""
        return {
            "name": settings.app_name,
            "version": VERSION,
            "status": "healthy",
            "environment": settings.environment.value,
        }

    @app.get("/health")
    async def health():
        """Detailed health check for monitoring."""
        return {
            "status": "healthy",
            "service": "sports-dashboard-api",
            "version": VERSION,
        }

    return app


app = create_app()
