"""Tests for per-sport normalization and metric discovery."""
import math

import pytest

from app.integrations.upstream import get_path
from app.services.normalizer import (
    available_metrics,
    chart_points,
    mock_data,
    normalize,
    to_number,
)
from app.services.sports import SPORTS, build_sources, previous_season
from fakes import baseball_team


class TestToNumber:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (3, 3),
            (0.75, 0.75),
            ("666", 666),
            ("3.74", 3.74),
            ("45%", 45),
            (None, 0),
            (True, 0),
            ("n/a", 0),
            (float("nan"), 0),
            (float("inf"), 0),
            ({"total": 3}, 0),
        ],
    )
    def test_coercion(self, value, expected):
        assert to_number(value) == expected


class TestNormalize:
    def test_baseball_metrics_at_dotted_paths(self):
        records = normalize("baseball", [baseball_team("Cubs", "0.712", 4.1)])

        assert records == [
            {
                "label": "Cubs",
                "batting": {"ops": 0.712, "avg": 0.25, "hr": 0, "runs": 0, "rbi": 0},
                "pitching": {"era": 4.1, "wins": 0},
            }
        ]

    def test_metrics_found_at_top_level(self):
        records = normalize("basketball", [{"name": "Celtics", "ppg": "120.6"}])

        assert records[0]["label"] == "Celtics"
        assert records[0]["ppg"] == 120.6
        assert records[0]["rpg"] == 0

    def test_f1_constructor_standings(self):
        raw = [{"position": "1", "points": "666", "wins": "6", "Constructor": {"name": "McLaren"}}]

        assert normalize("f1", raw) == [
            {"label": "McLaren", "points": 666, "wins": 6, "position": 1}
        ]

    def test_f1_driver_standings_label(self):
        raw = [{"points": "437", "wins": "9", "Driver": {"givenName": "Max", "familyName": "Verstappen"}}]

        assert normalize("f1", raw)[0]["label"] == "Max Verstappen"

    def test_records_without_label_are_dropped(self):
        raw = [{"statistics": {"ppg": 100}}, "garbage", None, {"team": {"name": "  "}}]

        assert normalize("basketball", raw) == []

    @pytest.mark.parametrize("sport", list(SPORTS))
    def test_every_metric_is_a_finite_number(self, sport):
        raw = [{"team": {"name": "X"}, "name": "X", "statistics": {"garbage": "yes"}}]

        record = normalize(sport, raw)[0]

        for key in SPORTS[sport].metric_keys:
            value = get_path(record, key)
            assert isinstance(value, (int, float)) and not isinstance(value, bool)
            assert math.isfinite(value)


class TestMockData:
    @pytest.mark.parametrize("sport", list(SPORTS))
    def test_mock_dataset_is_well_formed(self, sport):
        records = mock_data(sport)

        assert 3 <= len(records) <= 5
        for record in records:
            assert record["label"]
            for key in SPORTS[sport].metric_keys:
                assert isinstance(get_path(record, key), (int, float))

    def test_mock_data_is_a_fresh_copy(self):
        first = mock_data("baseball")
        first[0]["label"] = "changed"

        assert mock_data("baseball")[0]["label"] != "changed"


class TestAvailableMetrics:
    def test_filters_to_paths_in_sample(self):
        sample = baseball_team("Cubs", 0.7, 4.0)

        keys = [m["key"] for m in available_metrics("baseball", sample)]

        assert keys == ["batting.ops", "batting.avg", "pitching.era"]

    def test_normalized_record_exposes_all_metrics(self):
        sample = mock_data("football")[0]

        assert available_metrics("football", sample) == [
            m.as_dict() for m in SPORTS["football"].metrics
        ]

    def test_empty_sample(self):
        assert available_metrics("f1", None) == []
        assert available_metrics("f1", {}) == []


class TestChartPoints:
    def test_points_from_normalized_records(self):
        records = mock_data("f1")

        points = chart_points(records, "points", "wins")

        assert points[0] == {"x": 666, "y": 6, "label": "McLaren"}
        assert len(points) == len(records)


class TestSources:
    def test_previous_season(self):
        assert previous_season("2024") == "2023"
        assert previous_season("2023-2024") == "2022-2023"
        assert previous_season("current") is None

    def test_baseball_chain_order(self, settings):
        sources = build_sources("baseball", "2024", settings)

        assert [s.name for s in sources] == [
            "api-sports:baseball:games",
            "api-sports:baseball:standings",
            "api-sports:baseball:games:2023",
        ]
        assert sources[0].params == {"league": 1, "season": "2024"}
        assert sources[0].headers == {"x-apisports-key": "test-key"}
        assert sources[0].timeout == 10.0

    def test_f1_chain_needs_no_key(self, settings):
        sources = build_sources("f1", "2024", settings)

        assert sources[0].url == "https://api.jolpi.ca/ergast/f1/2024/constructorStandings.json"
        assert all(not s.headers for s in sources)
        assert sources[-1].url.endswith("/current/constructorStandings.json")
