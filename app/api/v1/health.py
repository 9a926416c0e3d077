"""Health check endpoints."""
from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Basic health check."""
    settings = request.app.state.settings
    return {
        "status": "healthy",
        "service": "sports-dashboard-api",
        "sports_api_configured": bool(settings.sports_api_key),
        "ai_configured": bool(settings.gemini_api_key),
    }
