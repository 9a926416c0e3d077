"""Sport catalog.

Per sport: the metrics the dashboard can chart, where those metrics live in
upstream payloads, the ordered list of upstream sources to try, and a small
mock dataset served when every source fails.

Data sources:
- API-Sports (baseball, basketball, football, american football), keyed
- Jolpica / Ergast F1 API (free, no key)
"""
from dataclasses import dataclass, field
from typing import Callable, Optional

from app.config import Settings
from app.integrations.upstream import SourceDescriptor

API_SPORTS_KEY_HEADER = "x-apisports-key"

API_SPORTS_BASE = {
    "baseball": "https://v1.baseball.api-sports.io",
    "basketball": "https://v1.basketball.api-sports.io",
    "football": "https://v3.football.api-sports.io",
    "american_football": "https://v1.american-football.api-sports.io",
}

JOLPICA_BASE = "https://api.jolpi.ca/ergast/f1"
ERGAST_BASE = "https://ergast.com/api/f1"
F1_STANDINGS = "MRData.StandingsTable.StandingsLists.0"


@dataclass(frozen=True)
class Metric:
    key: str    # dotted path, e.g. "batting.ops"
    label: str

    def as_dict(self) -> dict:
        return {"key": self.key, "label": self.label}


@dataclass
class SportDefinition:
    """Everything the data layer needs to know about one sport."""
    code: str
    name: str
    metrics: list[Metric]
    mock_records: list[dict]
    build_sources: Callable[[str, Settings], list[SourceDescriptor]]
    requires_api_key: bool = True
    stats_root: Optional[str] = "statistics"
    label_paths: list[str] = field(default_factory=lambda: ["team.name", "player.name", "name"])

    @property
    def metric_keys(self) -> list[str]:
        return [m.key for m in self.metrics]


def previous_season(season: str) -> Optional[str]:
    """``"2024"`` -> ``"2023"``; seasons like ``"2023-2024"`` shift both years."""
    parts = season.split("-")
    if not all(p.isdigit() for p in parts):
        return None
    return "-".join(str(int(p) - 1) for p in parts)


def _api_sports_sources(
    sport: str,
    endpoints: list[tuple[str, dict]],
) -> Callable[[str, Settings], list[SourceDescriptor]]:
    """Build an API-Sports fallback chain.

    Order: each endpoint for the requested season, then the first endpoint
    for the previous season.
    """
    base = API_SPORTS_BASE[sport]

    def build(season: str, settings: Settings) -> list[SourceDescriptor]:
        headers = {API_SPORTS_KEY_HEADER: settings.sports_api_key}
        timeout = settings.upstream_timeout_seconds
        sources = [
            SourceDescriptor(
                name=f"api-sports:{sport}:{path}",
                url=f"{base}/{path}",
                params={**params, "season": season},
                headers=headers,
                timeout=timeout,
            )
            for path, params in endpoints
        ]
        prior = previous_season(season)
        if prior:
            path, params = endpoints[0]
            sources.append(
                SourceDescriptor(
                    name=f"api-sports:{sport}:{path}:{prior}",
                    url=f"{base}/{path}",
                    params={**params, "season": prior},
                    headers=headers,
                    timeout=timeout,
                )
            )
        return sources

    return build


def _f1_sources(season: str, settings: Settings) -> list[SourceDescriptor]:
    """Jolpica constructors -> Ergast mirror -> Jolpica drivers -> current season."""
    timeout = settings.upstream_timeout_seconds
    constructors = f"{F1_STANDINGS}.ConstructorStandings"
    return [
        SourceDescriptor(
            name="jolpica:constructorStandings",
            url=f"{JOLPICA_BASE}/{season}/constructorStandings.json",
            timeout=timeout,
            extract=constructors,
        ),
        SourceDescriptor(
            name="ergast:constructorStandings",
            url=f"{ERGAST_BASE}/{season}/constructorStandings.json",
            timeout=timeout,
            extract=constructors,
        ),
        SourceDescriptor(
            name="jolpica:driverStandings",
            url=f"{JOLPICA_BASE}/{season}/driverStandings.json",
            timeout=timeout,
            extract=f"{F1_STANDINGS}.DriverStandings",
        ),
        SourceDescriptor(
            name="jolpica:constructorStandings:current",
            url=f"{JOLPICA_BASE}/current/constructorStandings.json",
            timeout=timeout,
            extract=constructors,
        ),
    ]


SPORTS: dict[str, SportDefinition] = {
    "baseball": SportDefinition(
        code="baseball",
        name="Baseball",
        metrics=[
            Metric("batting.ops", "OPS"),
            Metric("batting.avg", "AVG"),
            Metric("batting.hr", "HR"),
            Metric("batting.runs", "Runs"),
            Metric("batting.rbi", "RBI"),
            Metric("pitching.era", "ERA"),
            Metric("pitching.wins", "Wins"),
        ],
        mock_records=[
            {"team": {"name": "Yankees"}, "statistics": {
                "batting": {"ops": 0.780, "avg": 0.254, "hr": 237, "runs": 815, "rbi": 780},
                "pitching": {"era": 3.74, "wins": 94}}},
            {"team": {"name": "Dodgers"}, "statistics": {
                "batting": {"ops": 0.781, "avg": 0.258, "hr": 233, "runs": 842, "rbi": 812},
                "pitching": {"era": 3.90, "wins": 98}}},
            {"team": {"name": "Braves"}, "statistics": {
                "batting": {"ops": 0.716, "avg": 0.243, "hr": 190, "runs": 704, "rbi": 681},
                "pitching": {"era": 3.49, "wins": 89}}},
            {"team": {"name": "Astros"}, "statistics": {
                "batting": {"ops": 0.749, "avg": 0.262, "hr": 190, "runs": 740, "rbi": 712},
                "pitching": {"era": 3.74, "wins": 88}}},
        ],
        build_sources=_api_sports_sources(
            "baseball",
            [("games", {"league": 1}), ("standings", {"league": 1})],
        ),
    ),
    "basketball": SportDefinition(
        code="basketball",
        name="Basketball",
        metrics=[
            Metric("ppg", "Points Per Game (PPG)"),
            Metric("rpg", "Rebounds Per Game (RPG)"),
            Metric("apg", "Assists Per Game (APG)"),
            Metric("pie", "PIE"),
        ],
        mock_records=[
            {"team": {"name": "Celtics"}, "statistics": {"ppg": 120.6, "rpg": 46.3, "apg": 26.9, "pie": 0.56}},
            {"team": {"name": "Nuggets"}, "statistics": {"ppg": 114.9, "rpg": 44.5, "apg": 29.5, "pie": 0.54}},
            {"team": {"name": "Thunder"}, "statistics": {"ppg": 120.1, "rpg": 42.6, "apg": 26.9, "pie": 0.55}},
            {"team": {"name": "Knicks"}, "statistics": {"ppg": 112.8, "rpg": 45.3, "apg": 24.2, "pie": 0.53}},
        ],
        build_sources=_api_sports_sources(
            "basketball",
            [("games", {"league": 12}), ("standings", {"league": 12})],
        ),
    ),
    "football": SportDefinition(
        code="football",
        name="Football",
        metrics=[
            Metric("goals.for", "Goals For"),
            Metric("goals.against", "Goals Against"),
            Metric("assists", "Assists"),
            Metric("xg", "Expected Goals (xG)"),
        ],
        mock_records=[
            {"team": {"name": "Manchester City"}, "statistics": {"goals": {"for": 96, "against": 34}, "assists": 68, "xg": 84.1}},
            {"team": {"name": "Arsenal"}, "statistics": {"goals": {"for": 91, "against": 29}, "assists": 66, "xg": 76.2}},
            {"team": {"name": "Liverpool"}, "statistics": {"goals": {"for": 86, "against": 41}, "assists": 62, "xg": 87.8}},
            {"team": {"name": "Aston Villa"}, "statistics": {"goals": {"for": 76, "against": 61}, "assists": 54, "xg": 68.4}},
        ],
        build_sources=_api_sports_sources(
            "football",
            [("teams/statistics", {"league": 39, "team": 33}), ("standings", {"league": 39})],
        ),
    ),
    "american_football": SportDefinition(
        code="american_football",
        name="American Football",
        metrics=[
            Metric("passing_yards", "Passing Yards"),
            Metric("rushing_yards", "Rushing Yards"),
            Metric("receptions", "Receptions"),
            Metric("sacks", "Sacks"),
        ],
        mock_records=[
            {"team": {"name": "Chiefs"}, "statistics": {"passing_yards": 4183, "rushing_yards": 1793, "receptions": 389, "sacks": 41}},
            {"team": {"name": "Ravens"}, "statistics": {"passing_yards": 3845, "rushing_yards": 3189, "receptions": 307, "sacks": 54}},
            {"team": {"name": "Lions"}, "statistics": {"passing_yards": 4657, "rushing_yards": 2488, "receptions": 377, "sacks": 44}},
            {"team": {"name": "Eagles"}, "statistics": {"passing_yards": 3331, "rushing_yards": 2947, "receptions": 284, "sacks": 41}},
        ],
        build_sources=_api_sports_sources(
            "american_football",
            [("standings", {"league": 1}), ("games", {"league": 1})],
        ),
    ),
    "f1": SportDefinition(
        code="f1",
        name="Formula 1",
        metrics=[
            Metric("points", "Points"),
            Metric("wins", "Wins"),
            Metric("position", "Position"),
        ],
        mock_records=[
            {"position": "1", "points": "666", "wins": "6", "Constructor": {"name": "McLaren"}},
            {"position": "2", "points": "652", "wins": "5", "Constructor": {"name": "Ferrari"}},
            {"position": "3", "points": "589", "wins": "9", "Constructor": {"name": "Red Bull"}},
            {"position": "4", "points": "468", "wins": "4", "Constructor": {"name": "Mercedes"}},
        ],
        build_sources=_f1_sources,
        requires_api_key=False,
        stats_root=None,
        label_paths=["Constructor.name", "Driver", "team.name", "name"],
    ),
}


def supported_sports() -> list[str]:
    return list(SPORTS.keys())


def get_sport(sport: str) -> Optional[SportDefinition]:
    return SPORTS.get(sport.lower()) if sport else None


def build_sources(sport: str, season: str, settings: Settings) -> list[SourceDescriptor]:
    """Ordered upstream candidates for (sport, season)."""
    return SPORTS[sport].build_sources(season, settings)
