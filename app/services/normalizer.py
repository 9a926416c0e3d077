"""Map provider records onto the dashboard's canonical entity shape.

A normalized record is ``{"label": str, ...metrics}`` where each metric sits
at its dotted path (``batting.ops`` -> ``{"batting": {"ops": 0.78}}``) and is
always a finite number.
"""
import copy
import math
from typing import Any, Optional

from app.integrations.upstream import get_path
from app.services.sports import SPORTS, SportDefinition


def to_number(value: Any) -> float | int:
    """Coerce an upstream value to a finite number, 0 when impossible."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else 0
    if isinstance(value, str):
        text = value.strip().rstrip("%")
        try:
            number = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                return 0
            return number if math.isfinite(number) else 0
        return number
    return 0


def _set_path(record: dict, path: str, value: Any) -> None:
    *parents, leaf = path.split(".")
    node = record
    for part in parents:
        node = node.setdefault(part, {})
    node[leaf] = value


def lookup_metric(raw: dict, path: str, stats_root: Optional[str]) -> Any:
    """Metric value from the stats root if present there, else the top level."""
    if stats_root:
        value = get_path(raw.get(stats_root), path) if isinstance(raw.get(stats_root), dict) else None
        if value is not None:
            return value
    return get_path(raw, path)


def resolve_label(raw: dict, definition: SportDefinition) -> Optional[str]:
    for path in definition.label_paths:
        value = get_path(raw, path)
        if isinstance(value, dict):
            # Ergast Driver objects
            value = " ".join(
                part for part in (value.get("givenName"), value.get("familyName")) if part
            )
        if isinstance(value, (str, int)) and not isinstance(value, bool):
            label = str(value).strip()
            if label:
                return label
    return None


def normalize(sport: str, raw_list: list[Any]) -> list[dict]:
    """Normalize raw provider records for ``sport``.

    Records that are not objects or have no resolvable name are dropped.
    """
    definition = SPORTS[sport]
    records = []
    for raw in raw_list:
        if not isinstance(raw, dict):
            continue
        label = resolve_label(raw, definition)
        if label is None:
            continue
        record: dict[str, Any] = {"label": label}
        for key in definition.metric_keys:
            _set_path(record, key, to_number(lookup_metric(raw, key, definition.stats_root)))
        records.append(record)
    return records


def available_metrics(sport: str, sample_record: Optional[dict]) -> list[dict]:
    """The sport's metrics actually present in ``sample_record``."""
    if not sample_record:
        return []
    definition = SPORTS[sport]
    return [
        metric.as_dict()
        for metric in definition.metrics
        if lookup_metric(sample_record, metric.key, definition.stats_root) is not None
    ]


def mock_data(sport: str) -> list[dict]:
    """The fixed fallback dataset for ``sport``, normalized."""
    return normalize(sport, copy.deepcopy(SPORTS[sport].mock_records))


def chart_points(records: list[dict], x_metric: str, y_metric: str) -> list[dict]:
    """Reshape normalized records into ``{x, y, label}`` points."""
    return [
        {
            "x": to_number(get_path(record, x_metric)),
            "y": to_number(get_path(record, y_metric)),
            "label": record.get("label", ""),
        }
        for record in records
    ]
