"""FunilDash — Dashboard Pipeline Orchestrator.

Runs the composite dashboard read:
  resolve period → resolve scope → aggregate → time series → hierarchy → comparison

Nothing computed here is stored; every call rebuilds the payload.
"""

from typing import Any, Callable, List, Optional, Tuple

from sqlmodel import Session

from funildash.analyzer.aggregator import aggregate_metrics
from funildash.analyzer.comparison import compare_creatives
from funildash.analyzer.hierarchy import build_hierarchy
from funildash.analyzer.time_series import build_time_series
from funildash.config import settings
from funildash.core.context import RequestContext
from funildash.core.dates import resolve_period
from funildash.core.errors import Forbidden, ValidationFailed
from funildash.core.logging import get_logger
from funildash.models.dashboard_models import DashboardFilters, DashboardResponse
from funildash.models.metric_models import EntityType
from funildash.store.entity_store import (
    get_owned_ad_set,
    get_owned_campaign,
    get_owned_creative,
    get_owned_funnel,
    list_active_creatives,
    list_funnels,
    load_containment_tree,
)
from funildash.store.metric_store import MetricStore, query_snapshots

logger = get_logger("analyzer.pipeline")

# Most specific first — the first id present decides the scope
SCOPES: Tuple[Tuple[str, EntityType, Callable[..., Any]], ...] = (
    ("criativo_id", EntityType.CREATIVE, get_owned_creative),
    ("conjunto_id", EntityType.AD_SET, get_owned_ad_set),
    ("campanha_id", EntityType.CAMPAIGN, get_owned_campaign),
    ("funil_id", EntityType.FUNNEL, get_owned_funnel),
)


def resolve_filters(
    context: RequestContext,
    empresa_id: Optional[str] = None,
    funil_id: Optional[str] = None,
    campanha_id: Optional[str] = None,
    conjunto_id: Optional[str] = None,
    criativo_id: Optional[str] = None,
    periodo_inicio: Optional[str] = None,
    periodo_fim: Optional[str] = None,
) -> DashboardFilters:
    """Apply defaults and check the company and period parameters."""
    if empresa_id and empresa_id != context.company_id:
        raise Forbidden("Company not found or no permission")

    start, end = resolve_period(periodo_inicio, periodo_fim, settings.default_period_days)
    if start > end:
        raise ValidationFailed("periodo_inicio must not be after periodo_fim")

    return DashboardFilters(
        empresa_id=context.company_id,
        funil_id=funil_id or None,
        campanha_id=campanha_id or None,
        conjunto_id=conjunto_id or None,
        criativo_id=criativo_id or None,
        periodo_inicio=start,
        periodo_fim=end,
    )


def resolve_scope(
    session: Session, context: RequestContext, filters: DashboardFilters
) -> Tuple[EntityType, List[str]]:
    """Return the (tipo, referencia_ids) whose snapshots make up the headline.

    Every scope id given must belong to the caller's company. Without any, the
    scope is every funnel of the company — possibly none.
    """
    scope: Optional[Tuple[EntityType, List[str]]] = None
    for attr, tipo, lookup in SCOPES:
        ref_id = getattr(filters, attr)
        if not ref_id:
            continue
        if lookup(session, context.company_id, ref_id) is None:
            raise Forbidden(f"{tipo.value} not found or no permission")
        if scope is None:
            scope = (tipo, [ref_id])

    if scope is not None:
        return scope

    funnels = list_funnels(session, context.company_id)
    return EntityType.FUNNEL, [f.id for f in funnels]


async def run_dashboard(
    session: Session,
    store: MetricStore,
    context: RequestContext,
    filters: DashboardFilters,
) -> DashboardResponse:
    """Build the composite dashboard payload for one request."""
    start, end = filters.periodo_inicio, filters.periodo_fim
    tipo, ref_ids = resolve_scope(session, context, filters)

    snapshots = query_snapshots(
        session,
        tipo=tipo.value,
        referencia_ids=ref_ids,
        periodo_inicio=start,
        periodo_fim=end,
    )
    metricas = aggregate_metrics(snapshots)
    series = build_time_series(start, end, snapshots)

    hierarchy = []
    if not filters.criativo_id:
        funnels = load_containment_tree(session, context.company_id, filters.funil_id)
        hierarchy = await build_hierarchy(funnels, store, start, end)

    comparison = None
    if filters.conjunto_id:
        creatives = list_active_creatives(session, filters.conjunto_id)
        comparison = await compare_creatives(creatives, store, start, end)

    logger.info(
        f"Dashboard built: scope={tipo.value} x{len(ref_ids)}, {len(snapshots)} snapshots, "
        f"{start} → {end}",
        extra={"company_id": context.company_id},
    )
    return DashboardResponse(
        periodo_inicio=start,
        periodo_fim=end,
        metricas=metricas,
        series_tempo=series,
        hierarquia=hierarchy,
        comparativo_criativos=comparison,
    )
