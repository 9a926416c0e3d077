"""Sports data endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_dispatcher, get_identity
from app.services.dispatcher import DataDispatcher
from app.services.normalizer import available_metrics, chart_points
from app.services.sports import SPORTS, get_sport

router = APIRouter(tags=["data"])


@router.get("/data/{sport}")
async def get_data(
    sport: str,
    season: Optional[str] = Query(default=None, description="Season, e.g. 2024"),
    dispatcher: DataDispatcher = Depends(get_dispatcher),
    identity: str = Depends(get_identity),
):
    """
    Normalized team/driver stats for a sport and season.

    Served from the disk cache when fresh, otherwise fetched upstream with
    fallback sources. When every source fails the response carries mock
    data and ``source: "mock"``.
    """
    envelope = await dispatcher.get_data(sport, season, identity)
    return envelope.to_dict()


@router.get("/sports")
async def list_sports():
    """List supported sports and their chartable metrics."""
    return {
        "sports": [
            {
                "code": code,
                "name": definition.name,
                "metrics": [m.as_dict() for m in definition.metrics],
            }
            for code, definition in SPORTS.items()
        ]
    }


@router.get("/metrics/{sport}")
async def get_metrics(
    sport: str,
    season: Optional[str] = Query(default=None),
    dispatcher: DataDispatcher = Depends(get_dispatcher),
    identity: str = Depends(get_identity),
):
    """Metrics present in the current data for a sport (for the axis selectors)."""
    envelope = await dispatcher.get_data(sport, season, identity)
    sample = envelope.data[0] if envelope.data else None
    return {
        "sport": envelope.sport,
        "season": envelope.season,
        "metrics": available_metrics(envelope.sport, sample),
    }


@router.get("/chart/{sport}")
async def get_chart(
    sport: str,
    x: str = Query(..., description="Metric path for the x axis"),
    y: str = Query(..., description="Metric path for the y axis"),
    season: Optional[str] = Query(default=None),
    dispatcher: DataDispatcher = Depends(get_dispatcher),
    identity: str = Depends(get_identity),
):
    """Chart-ready ``{x, y, label}`` points for two metrics."""
    definition = get_sport(sport)
    if definition is not None:
        unknown = [m for m in (x, y) if m not in definition.metric_keys]
        if unknown:
            raise HTTPException(
                status_code=400,
                detail=f"Unknown metric(s) {unknown}. Available: {definition.metric_keys}",
            )

    envelope = await dispatcher.get_data(sport, season, identity)
    return {
        "sport": envelope.sport,
        "season": envelope.season,
        "x": x,
        "y": y,
        "source": envelope.source,
        "points": chart_points(envelope.data, x, y),
    }
