"""FunilDash — Creative Comparison.

Aggregates every active creative of one ad set and ranks them by ROAS.
"""

from typing import Any, List, Sequence

from funildash.analyzer.hierarchy import gather_metrics
from funildash.core.logging import get_logger
from funildash.models.dashboard_models import CreativeComparison
from funildash.models.metric_models import EntityType

logger = get_logger("analyzer.comparison")


async def compare_creatives(
    creatives: Sequence[Any],
    store: Any,
    periodo_inicio: str,
    periodo_fim: str,
) -> List[CreativeComparison]:
    """Rank creatives by ROAS descending; equal ROAS falls back to id ascending."""
    fetched = await gather_metrics(
        store,
        [(EntityType.CREATIVE.value, c.id) for c in creatives],
        periodo_inicio,
        periodo_fim,
    )

    comparison = [
        CreativeComparison(
            criativo=creative.model_dump(mode="json"),
            metricas=metrics,
            erro=error,
        )
        for creative, (metrics, error) in zip(creatives, fetched)
    ]
    comparison.sort(key=lambda c: (-c.metricas.roas, c.criativo["id"]))

    logger.info(f"Compared {len(comparison)} creatives")
    return comparison
