"""FunilDash — Unified Metric Registry.

Defines the canonical set of counters stored on a snapshot and the ratios
derived from them. The aggregator, the metric store and the time-series
builder read their counter lists from here; the dashboard output models take
their field descriptions from it.
"""

from typing import Dict


class MetricDefinition:
    """Describes a single metric."""

    def __init__(self, name: str, unit: str = "", description: str = ""):
        self.name = name
        self.unit = unit
        self.description = description

    def __repr__(self) -> str:
        return f"<Metric {self.name} ({self.unit})>"


# ─────────────────────────────────────────────
# RAW COUNTERS — stored on every snapshot
# ─────────────────────────────────────────────

RAW_METRICS: Dict[str, MetricDefinition] = {
    # Volume
    "alcance": MetricDefinition("alcance", "count", "Unique users reached"),
    "impressoes": MetricDefinition("impressoes", "count", "Times the ads were shown"),
    "cliques": MetricDefinition("cliques", "count", "Total clicks"),
    "visualizacoes_pagina": MetricDefinition(
        "visualizacoes_pagina", "count", "Landing page views"
    ),
    # Conversion
    "leads": MetricDefinition("leads", "count", "Leads captured"),
    "checkouts": MetricDefinition("checkouts", "count", "Checkouts started"),
    "vendas": MetricDefinition("vendas", "count", "Sales"),
    # Money
    "investimento": MetricDefinition("investimento", "currency", "Total ad spend"),
    "faturamento": MetricDefinition("faturamento", "currency", "Attributed revenue"),
}


# ─────────────────────────────────────────────
# DERIVED METRICS — recomputed from summed counters
# ─────────────────────────────────────────────

DERIVED_METRICS: Dict[str, MetricDefinition] = {
    "roas": MetricDefinition("roas", "ratio", "Return on ad spend: faturamento / investimento"),
    "ctr": MetricDefinition("ctr", "%", "Click-through rate: cliques / impressoes × 100"),
    "cpm": MetricDefinition("cpm", "currency", "Cost per 1000 impressions"),
    "cpc": MetricDefinition("cpc", "currency", "Cost per click"),
    "cpl": MetricDefinition("cpl", "currency", "Cost per lead"),
    "taxa_conversao": MetricDefinition("taxa_conversao", "%", "Sales per lead × 100"),
}


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

COUNTER_NAMES: tuple[str, ...] = tuple(RAW_METRICS)
RATIO_NAMES: tuple[str, ...] = tuple(DERIVED_METRICS)


def describe(name: str) -> str:
    """Field description for API schemas, e.g. ``"Cost per click (currency)"``."""
    metric = RAW_METRICS.get(name) or DERIVED_METRICS[name]
    return f"{metric.description} ({metric.unit})"
