"""
AI endpoints - Gemini-generated narrative for the dashboard.

All routes share the AI rate limiter (stricter than the data limiter) and
require GEMINI_API_KEY.
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.api.deps import enforce_ai_rate_limit, get_ai_client
from app.services.ai_insights import GeminiClient

router = APIRouter(
    prefix="/ai",
    tags=["ai"],
    dependencies=[Depends(enforce_ai_rate_limit)],
)


class DataRequest(BaseModel):
    """A dataset to reason about (usually the current chart data)."""
    data: list[Any] | dict[str, Any] = Field(..., description="Records shown in the chart")


class ChatRequest(BaseModel):
    question: str = Field(..., min_length=1, description="User question")
    context: Optional[Any] = Field(default=None, description="Optional chart data")


class SemanticRequest(BaseModel):
    query: str = Field(..., min_length=1)
    data: list[Any] | dict[str, Any]


class ExplainRequest(BaseModel):
    anomaly: list[Any] | dict[str, Any] = Field(..., description="The anomalous data point(s)")


class RecommendationRequest(BaseModel):
    selections: list[Any] = Field(..., description="User's past sport/team selections")


class ReportRequest(BaseModel):
    data: list[Any] = Field(..., min_length=1, description="Teams with recent games")


@router.post("/insights/{sport}")
async def insights(sport: str, request: DataRequest, ai: GeminiClient = Depends(get_ai_client)):
    """Top trends and standout performances."""
    return await ai.insights(sport, request.data)


@router.post("/chat")
async def chat(request: ChatRequest, ai: GeminiClient = Depends(get_ai_client)):
    return await ai.chat(request.question, request.context)


@router.post("/semantic")
async def semantic(request: SemanticRequest, ai: GeminiClient = Depends(get_ai_client)):
    """Natural-language query -> chart metric filters."""
    return await ai.semantic(request.query, request.data)


@router.post("/explain/{sport}")
async def explain(sport: str, request: ExplainRequest, ai: GeminiClient = Depends(get_ai_client)):
    return await ai.explain(sport, request.anomaly)


@router.post("/recommendations")
async def recommendations(request: RecommendationRequest, ai: GeminiClient = Depends(get_ai_client)):
    return await ai.recommendations(request.selections)


@router.post("/predict/{sport}")
async def predict(sport: str, request: DataRequest, ai: GeminiClient = Depends(get_ai_client)):
    """Predicted next outcomes. ``predictions`` is ``[]`` if the reply is not JSON."""
    return await ai.predict(sport, request.data)


@router.post("/sentiment/{team}")
async def sentiment(team: str, ai: GeminiClient = Depends(get_ai_client)):
    return await ai.sentiment(team)


@router.post("/dashboard/recommend")
async def dashboard_recommend(ai: GeminiClient = Depends(get_ai_client)):
    """Suggested dashboard layout."""
    return await ai.dashboard_layout()


@router.post("/reports/{sport}")
async def report(sport: str, request: ReportRequest, ai: GeminiClient = Depends(get_ai_client)):
    """Markdown performance report, also saved for download."""
    return await ai.report(sport, request.data)
