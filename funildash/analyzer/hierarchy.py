"""FunilDash — Hierarchy Assembler.

Walks funnel → campaign → ad set → creative and annotates every node with its
aggregated metrics and performance status.

The metric fetches are fanned out one task per node and joined before the
tree is built. A node whose fetch fails is given empty metrics and an error
marker; its siblings and its subtree are built normally.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from funildash.analyzer.aggregator import aggregate_metrics
from funildash.analyzer.classifier import classify_performance
from funildash.config import settings
from funildash.core.logging import get_logger
from funildash.models.dashboard_models import AggregatedMetrics, HierarchyNode
from funildash.models.metric_models import EntityType
from funildash.store.entity_store import newest_first

logger = get_logger("analyzer.hierarchy")

# Containment level of each entity tag
LEVELS = {
    EntityType.FUNNEL: 0,
    EntityType.CAMPAIGN: 1,
    EntityType.AD_SET: 2,
    EntityType.CREATIVE: 3,
}

# Relationship holding each level's children, and the children's tag
CHILDREN = {
    EntityType.FUNNEL: ("campanhas", EntityType.CAMPAIGN),
    EntityType.CAMPAIGN: ("conjuntos", EntityType.AD_SET),
    EntityType.AD_SET: ("criativos", EntityType.CREATIVE),
}

FETCH_FAILED = "metrics unavailable"


@dataclass
class _PlannedNode:
    entity: Any
    tipo: EntityType
    parent_id: Optional[str]
    children: List["_PlannedNode"] = field(default_factory=list)


def _plan(entity: Any, tipo: EntityType, parent_id: Optional[str], levels: int) -> _PlannedNode:
    """Mirror the containment tree down to ``levels`` levels."""
    node = _PlannedNode(entity=entity, tipo=tipo, parent_id=parent_id)
    if tipo in CHILDREN and LEVELS[tipo] + 1 < levels:
        attr, child_tipo = CHILDREN[tipo]
        node.children = [
            _plan(child, child_tipo, entity.id, levels)
            for child in newest_first(getattr(entity, attr, None) or [])
        ]
    return node


def _walk(nodes: Sequence[_PlannedNode]) -> Iterable[_PlannedNode]:
    for node in nodes:
        yield node
        yield from _walk(node.children)


async def gather_metrics(
    store: Any,
    targets: Sequence[Tuple[str, str]],
    periodo_inicio: str,
    periodo_fim: str,
) -> List[Tuple[AggregatedMetrics, Optional[str]]]:
    """Fetch and aggregate every (tipo, id) target concurrently.

    Returns one ``(metrics, error)`` pair per target, in order. A failed fetch
    yields all-zero metrics and an error marker instead of raising.
    """
    results = await asyncio.gather(
        *(store.fetch(tipo, ref_id, periodo_inicio, periodo_fim) for tipo, ref_id in targets),
        return_exceptions=True,
    )

    outcome: List[Tuple[AggregatedMetrics, Optional[str]]] = []
    for (tipo, ref_id), result in zip(targets, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.warning(
                f"Metric fetch failed for {tipo} {ref_id}: {result}",
                extra={"entity_type": tipo, "entity_id": ref_id},
            )
            outcome.append((AggregatedMetrics(), FETCH_FAILED))
        else:
            outcome.append((aggregate_metrics(result), None))
    return outcome


def _assemble(node: _PlannedNode, metrics_by_node: dict) -> HierarchyNode:
    children = [_assemble(child, metrics_by_node) for child in node.children]
    metrics, error = metrics_by_node[id(node)]
    return HierarchyNode(
        id=node.entity.id,
        nome=node.entity.nome,
        tipo=node.tipo.value,
        nivel=LEVELS[node.tipo],
        parent_id=node.parent_id,
        metricas=metrics,
        status_performance=classify_performance(metrics.roas, metrics.ctr),
        children=children,
        expandido=node.tipo is EntityType.FUNNEL,
        erro=error,
    )


async def build_hierarchy(
    funnels: Sequence[Any],
    store: Any,
    periodo_inicio: str,
    periodo_fim: str,
    levels: Optional[int] = None,
) -> List[HierarchyNode]:
    """Build annotated funnel trees, keeping the funnels' given order.

    ``store`` must expose ``async fetch(tipo, referencia_id, periodo_inicio,
    periodo_fim)``. ``levels`` caps the depth (1 = funnels only, 4 = down to
    creatives).
    """
    if levels is None:
        levels = settings.hierarchy_levels
    depth = min(max(levels, 1), len(LEVELS))

    roots = [_plan(f, EntityType.FUNNEL, None, depth) for f in funnels]
    planned = list(_walk(roots))

    fetched = await gather_metrics(
        store,
        [(node.tipo.value, node.entity.id) for node in planned],
        periodo_inicio,
        periodo_fim,
    )
    metrics_by_node = {id(node): result for node, result in zip(planned, fetched)}

    hierarchy = [_assemble(root, metrics_by_node) for root in roots]

    failed = sum(1 for _, error in fetched if error)
    logger.info(
        f"Built hierarchy: {len(roots)} funnels, {len(planned)} nodes, {failed} failed fetches"
    )
    return hierarchy
