"""FunilDash — Time-Series Builder.

One point per calendar day of the period, both ends inclusive.

Two sources:
  snapshots   — sums the day-granularity snapshots (periodo_inicio ==
                periodo_fim) of the dashboard scope; days without data are zero.
  placeholder — random stand-in values, flagged ``simulado``. Kept for
                deployments that only store multi-day snapshots.
"""

import random
from collections import defaultdict
from typing import Any, Iterable, List, Optional

from funildash.analyzer.aggregator import sum_counters
from funildash.config import settings
from funildash.core.dates import period_days
from funildash.core.logging import get_logger
from funildash.models.dashboard_models import TimeSeriesPoint

logger = get_logger("analyzer.time_series")

# field → (base, spread): value = base + random() * spread
PLACEHOLDER_RANGES = {
    "investimento": (100.0, 500.0),
    "leads": (10.0, 50.0),
    "vendas": (1.0, 10.0),
    "cliques": (50.0, 200.0),
    "alcance": (1000.0, 5000.0),
}

SERIES_FIELDS = tuple(PLACEHOLDER_RANGES)


def _placeholder_series(days: List[str], rng: random.Random) -> List[TimeSeriesPoint]:
    logger.warning(f"Time series for {len(days)} days is simulated placeholder data")
    return [
        TimeSeriesPoint(
            data=day,
            simulado=True,
            **{
                name: base + rng.random() * spread
                for name, (base, spread) in PLACEHOLDER_RANGES.items()
            },
        )
        for day in days
    ]


def _daily_series(days: List[str], snapshots: Iterable[Any]) -> List[TimeSeriesPoint]:
    by_day: dict[str, list] = defaultdict(list)
    for snapshot in snapshots:
        if snapshot.periodo_inicio == snapshot.periodo_fim:
            by_day[snapshot.periodo_inicio].append(snapshot)

    points = []
    for day in days:
        totals = sum_counters(by_day.get(day, []))
        points.append(TimeSeriesPoint(data=day, **{f: totals[f] for f in SERIES_FIELDS}))
    return points


def build_time_series(
    periodo_inicio: str,
    periodo_fim: str,
    snapshots: Optional[Iterable[Any]] = None,
    source: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> List[TimeSeriesPoint]:
    """Build the per-day chart series for the period."""
    days = period_days(periodo_inicio, periodo_fim)
    if (source or settings.time_series_source) == "placeholder":
        return _placeholder_series(days, rng or random.Random())
    return _daily_series(days, snapshots or [])
