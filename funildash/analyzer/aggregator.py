"""FunilDash — Metrics Aggregator.

Reduces a list of metric snapshots into one totals object and derives
ROAS, CTR, CPM, CPC, CPL and conversion rate from the totals.
"""

from typing import Any, Iterable, Mapping

from funildash.core.metric_registry import COUNTER_NAMES
from funildash.models.dashboard_models import AggregatedMetrics


def _counter(snapshot: Any, name: str) -> float:
    """Read one counter from an ORM row or a dict; missing/null counts as 0."""
    if isinstance(snapshot, Mapping):
        value = snapshot.get(name)
    else:
        value = getattr(snapshot, name, None)
    return value or 0


def sum_counters(snapshots: Iterable[Any]) -> dict[str, float]:
    """Element-wise sum of the nine raw counters."""
    totals: dict[str, float] = {name: 0 for name in COUNTER_NAMES}
    for snapshot in snapshots:
        for name in COUNTER_NAMES:
            totals[name] += _counter(snapshot, name)
    return totals


def derive_ratios(totals: Mapping[str, float]) -> dict[str, float]:
    """Ratios computed from summed counters. Every division guards its denominator."""
    spend = totals["investimento"]
    impressions = totals["impressoes"]
    clicks = totals["cliques"]
    leads = totals["leads"]

    return {
        "roas": (totals["faturamento"] / spend) if spend > 0 else 0.0,
        "ctr": (clicks / impressions * 100) if impressions > 0 else 0.0,
        "cpm": (spend / impressions * 1000) if impressions > 0 else 0.0,
        "cpc": (spend / clicks) if clicks > 0 else 0.0,
        "cpl": (spend / leads) if leads > 0 else 0.0,
        "taxa_conversao": (totals["vendas"] / leads * 100) if leads > 0 else 0.0,
    }


def aggregate_metrics(snapshots: Iterable[Any]) -> AggregatedMetrics:
    """Sum the snapshots and recompute the derived ratios from the sums."""
    totals = sum_counters(snapshots)
    return AggregatedMetrics(**totals, **derive_ratios(totals))
