"""Main API router."""
from fastapi import APIRouter

from app.api.v1 import ai, data, health

router = APIRouter()

router.include_router(health.router, tags=["health"])
router.include_router(data.router)
router.include_router(ai.router)
