"""Data request dispatcher.

Order: sport check -> rate limit -> API key -> cache -> upstream fallback
chain -> normalize (or mock data) -> cache write.
"""
import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Optional

from app.config import Settings
from app.core.errors import ConfigurationError, UnsupportedSport
from app.core.rate_limiting import RateLimiter
from app.integrations.upstream import UpstreamClient
from app.services.cache import ResponseCache
from app.services.normalizer import mock_data, normalize
from app.services.sports import build_sources, get_sport, supported_sports

logger = logging.getLogger(__name__)

SOURCE_UPSTREAM = "upstream"
SOURCE_CACHE = "cache"
SOURCE_MOCK = "mock"


@dataclass
class DataEnvelope:
    """What ``GET /data/{sport}`` returns."""
    sport: str
    season: str
    data: list[dict]
    cached: bool
    count: int
    source: str                     # upstream | cache | mock
    provider: Optional[str] = None  # upstream source that answered

    def to_dict(self) -> dict:
        return asdict(self)


class DataDispatcher:
    """Entry point for sports data.

    Owns nothing global: the cache, limiter and upstream client are passed
    in, so independent instances never share state.
    """

    def __init__(
        self,
        settings: Settings,
        cache: ResponseCache,
        limiter: RateLimiter,
        upstream: UpstreamClient,
    ):
        self.settings = settings
        self.cache = cache
        self.limiter = limiter
        self.upstream = upstream

    def resolve_sport(self, sport: str) -> str:
        """Lower-cased sport code, or UnsupportedSport."""
        definition = get_sport(sport)
        if definition is None:
            raise UnsupportedSport(sport, supported_sports())
        return definition.code

    async def get_data(
        self,
        sport: str,
        season: Optional[str] = None,
        identity: str = "anonymous",
    ) -> DataEnvelope:
        sport = self.resolve_sport(sport)
        season = str(season or self.settings.default_season)

        self.limiter.check(identity)

        if get_sport(sport).requires_api_key and not self.settings.sports_api_key:
            raise ConfigurationError("Sports API key not configured (SPORTS_API_KEY)")

        entry = await asyncio.to_thread(self.cache.get, sport, season)
        if entry is not None:
            logger.debug("Cache hit for %s/%s", sport, season)
            return DataEnvelope(
                sport=sport,
                season=season,
                data=entry.payload,
                cached=True,
                count=len(entry.payload),
                source=SOURCE_CACHE,
            )

        success = await self.upstream.fetch_first(
            build_sources(sport, season, self.settings),
            accept=lambda items: bool(normalize(sport, items)),
        )
        records = normalize(sport, success.data) if success else []

        if not records:
            logger.warning(
                "All sources exhausted for %s/%s, serving mock data", sport, season
            )
            records = mock_data(sport)
            return DataEnvelope(
                sport=sport,
                season=season,
                data=records,
                cached=False,
                count=len(records),
                source=SOURCE_MOCK,
            )

        await asyncio.to_thread(self.cache.put, sport, season, records)
        return DataEnvelope(
            sport=sport,
            season=season,
            data=records,
            cached=False,
            count=len(records),
            source=SOURCE_UPSTREAM,
            provider=success.source.name,
        )
