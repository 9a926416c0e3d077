"""Tests for the data dispatcher: cache, fallback chain and error surfacing."""
import json
import os
import time

import httpx
import pytest

from app.config import Settings
from app.core.errors import ConfigurationError, RateLimitExceeded, UnsupportedSport
from app.core.rate_limiting import RateLimiter
from app.integrations.upstream import UpstreamClient
from app.services.cache import ResponseCache
from app.services.dispatcher import DataDispatcher
from app.services.normalizer import mock_data
from fakes import (
    BASEBALL_HOST,
    ERGAST_HOST,
    JOLPICA_HOST,
    api_sports,
    baseball_team,
    ergast_constructors,
)

TEAMS = [baseball_team("Cubs", 0.712, 4.10), baseball_team("Mets", 0.701, 3.95)]


class TestValidation:
    async def test_unsupported_sport_makes_no_upstream_call(self, dispatcher, network):
        with pytest.raises(UnsupportedSport) as exc_info:
            await dispatcher.get_data("cricket", "2024")

        body = exc_info.value.to_dict()
        assert body["error"] == "unsupported_sport"
        assert body["supported"] == ["baseball", "basketball", "football", "american_football", "f1"]
        assert network.requests == []

    async def test_sport_is_case_insensitive(self, dispatcher, network):
        network.json(BASEBALL_HOST, "/games", api_sports(TEAMS))

        envelope = await dispatcher.get_data("Baseball", "2024")

        assert envelope.sport == "baseball"

    async def test_missing_api_key_is_configuration_error(self, settings, cache, limiter, network):
        keyless = settings.model_copy(update={"sports_api_key": ""})
        dispatcher = DataDispatcher(keyless, cache, limiter, UpstreamClient(transport=network.transport))

        with pytest.raises(ConfigurationError):
            await dispatcher.get_data("baseball", "2024")
        assert network.requests == []

    async def test_f1_needs_no_api_key(self, settings, cache, limiter, network):
        keyless = settings.model_copy(update={"sports_api_key": ""})
        dispatcher = DataDispatcher(keyless, cache, limiter, UpstreamClient(transport=network.transport))
        network.json(JOLPICA_HOST, "/ergast/f1/2024/constructorStandings.json", ergast_constructors([
            {"position": "1", "points": "666", "wins": "6", "Constructor": {"name": "McLaren"}},
        ]))

        envelope = await dispatcher.get_data("f1", "2024")

        assert envelope.source == "upstream"
        assert envelope.data == [{"label": "McLaren", "points": 666, "wins": 6, "position": 1}]


class TestCaching:
    async def test_second_call_is_cached_and_identical(self, dispatcher, network):
        network.json(BASEBALL_HOST, "/games", api_sports(TEAMS))

        first = await dispatcher.get_data("baseball", "2024")
        second = await dispatcher.get_data("baseball", "2024")

        assert first.cached is False
        assert first.source == "upstream"
        assert first.provider == "api-sports:baseball:games"
        assert second.cached is True
        assert second.source == "cache"
        assert json.dumps(second.data) == json.dumps(first.data)
        assert second.count == first.count == 2
        assert len(network.requests) == 1

    async def test_default_season(self, dispatcher, network):
        network.json(BASEBALL_HOST, "/games", api_sports(TEAMS))

        envelope = await dispatcher.get_data("baseball")

        assert envelope.season == "2024"
        assert network.requests[0].url.params["season"] == "2024"

    async def test_stale_cache_is_ignored(self, dispatcher, cache, network):
        cache.put("baseball", "2024", [{"label": "SENTINEL"}])
        old = time.time() - 7 * 3600
        os.utime(cache.path_for("baseball", "2024"), (old, old))
        network.json(BASEBALL_HOST, "/games", api_sports(TEAMS))

        envelope = await dispatcher.get_data("baseball", "2024")

        assert envelope.cached is False
        assert "SENTINEL" not in [r["label"] for r in envelope.data]
        assert len(network.requests) == 1

    async def test_fresh_cache_skips_upstream(self, dispatcher, cache, network):
        cache.put("baseball", "2024", [{"label": "SENTINEL"}])

        envelope = await dispatcher.get_data("baseball", "2024")

        assert envelope.data == [{"label": "SENTINEL"}]
        assert envelope.cached is True
        assert network.requests == []

    async def test_corrupt_cache_file_refetches(self, dispatcher, cache, network):
        cache.directory.mkdir(parents=True, exist_ok=True)
        cache.path_for("baseball", "2024").write_text("{{{")
        network.json(BASEBALL_HOST, "/games", api_sports(TEAMS))

        envelope = await dispatcher.get_data("baseball", "2024")

        assert envelope.source == "upstream"
        assert cache.get("baseball", "2024").payload == envelope.data


class TestFallback:
    async def test_secondary_source_used_after_primary_failure(self, dispatcher, network):
        network.json(BASEBALL_HOST, "/games", {"message": "server error"}, status=500)
        network.json(BASEBALL_HOST, "/standings", api_sports([TEAMS[1:]]))

        envelope = await dispatcher.get_data("baseball", "2024")

        assert envelope.source == "upstream"
        assert envelope.provider == "api-sports:baseball:standings"
        assert [r["label"] for r in envelope.data] == ["Mets"]

    async def test_previous_season_is_last_resort(self, dispatcher, network):
        def by_season(request):
            if request.url.params["season"] == "2023":
                return httpx.Response(200, json=api_sports(TEAMS))
            return httpx.Response(200, json=api_sports([]))

        network.route(BASEBALL_HOST, "/games", by_season)
        network.json(BASEBALL_HOST, "/standings", api_sports([]))

        envelope = await dispatcher.get_data("baseball", "2024")

        assert envelope.provider == "api-sports:baseball:games:2023"
        assert envelope.season == "2024"
        assert [r.url.params["season"] for r in network.requests] == ["2024", "2024", "2023"]

    async def test_f1_falls_back_to_ergast_mirror(self, dispatcher, network):
        network.json(JOLPICA_HOST, "/ergast/f1/2024/constructorStandings.json", {}, status=502)
        network.json(ERGAST_HOST, "/api/f1/2024/constructorStandings.json", ergast_constructors([
            {"position": "2", "points": "652", "wins": "5", "Constructor": {"name": "Ferrari"}},
        ]))

        envelope = await dispatcher.get_data("f1", "2024")

        assert envelope.provider == "ergast:constructorStandings"
        assert envelope.data[0]["label"] == "Ferrari"

    async def test_exhaustion_serves_mock_data(self, dispatcher, cache, network):
        envelope = await dispatcher.get_data("baseball", "2024")

        assert envelope.source == "mock"
        assert envelope.cached is False
        assert envelope.data == mock_data("baseball")
        assert envelope.count == len(envelope.data) > 0
        assert len(network.requests) == 3
        # mock data is not cached; the next request tries upstream again
        assert cache.get("baseball", "2024") is None

    async def test_unlabelled_upstream_records_fall_back_to_mock(self, dispatcher, network):
        network.json(BASEBALL_HOST, "/games", api_sports([{"id": 1}, {"id": 2}]))

        envelope = await dispatcher.get_data("baseball", "2024")

        assert envelope.source == "mock"
        assert [r.url.path for r in network.requests] == ["/games", "/standings", "/games"]

    async def test_unlabelled_games_fall_through_to_standings(self, dispatcher, network):
        fixture = {"teams": {"home": {"name": "Cubs"}, "away": {"name": "Mets"}}}
        network.json(BASEBALL_HOST, "/games", api_sports([fixture]))
        network.json(BASEBALL_HOST, "/standings", api_sports([TEAMS]))

        envelope = await dispatcher.get_data("baseball", "2024")

        assert envelope.source == "upstream"
        assert envelope.provider == "api-sports:baseball:standings"
        assert [r["label"] for r in envelope.data] == ["Cubs", "Mets"]
        assert [r.url.path for r in network.requests] == ["/games", "/standings"]


class TestRateLimit:
    async def test_over_limit_is_rejected_before_cache(self, settings, cache, network):
        dispatcher = DataDispatcher(
            settings, cache, RateLimiter(max_requests=2, window_seconds=60),
            UpstreamClient(transport=network.transport),
        )
        network.json(BASEBALL_HOST, "/games", api_sports(TEAMS))

        await dispatcher.get_data("baseball", "2024", identity="1.2.3.4")
        await dispatcher.get_data("baseball", "2024", identity="1.2.3.4")
        with pytest.raises(RateLimitExceeded) as exc_info:
            await dispatcher.get_data("baseball", "2024", identity="1.2.3.4")

        assert 0 < exc_info.value.retry_after <= 60
        other = await dispatcher.get_data("baseball", "2024", identity="5.6.7.8")
        assert other.cached is True


class TestIsolation:
    async def test_instances_do_not_share_state(self, tmp_path, network):
        def build(name):
            settings = Settings(_env_file=None, sports_api_key="k", cache_dir=tmp_path / name)
            return DataDispatcher(
                settings,
                ResponseCache(settings.cache_dir),
                RateLimiter(max_requests=1, window_seconds=60),
                UpstreamClient(transport=network.transport),
            )

        network.json(BASEBALL_HOST, "/games", api_sports(TEAMS))
        a, b = build("a"), build("b")

        await a.get_data("baseball", "2024", identity="ip")
        envelope = await b.get_data("baseball", "2024", identity="ip")

        assert envelope.cached is False
