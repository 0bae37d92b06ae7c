"""FunilDash — Dashboard Route."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from funildash.analyzer.pipeline import resolve_filters, run_dashboard
from funildash.api.deps import get_request_context
from funildash.core.context import RequestContext
from funildash.database import get_session
from funildash.models.dashboard_models import DashboardResponse
from funildash.store.metric_store import MetricStore, get_metric_store

router = APIRouter(tags=["Dashboard"])


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    response_model_exclude_none=True,
)
async def get_dashboard(
    empresa_id: Optional[str] = Query(None, description="Defaults to the caller's company"),
    funil_id: Optional[str] = Query(None),
    campanha_id: Optional[str] = Query(None),
    conjunto_id: Optional[str] = Query(None),
    criativo_id: Optional[str] = Query(None),
    periodo_inicio: Optional[str] = Query(None, description="YYYY-MM-DD, default 30 days ago"),
    periodo_fim: Optional[str] = Query(None, description="YYYY-MM-DD, default today"),
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
    store: MetricStore = Depends(get_metric_store),
):
    """Headline metrics, daily series, annotated hierarchy and creative comparison.

    The most specific of criativo/conjunto/campanha/funil decides the headline
    scope; without any, every funnel of the company is aggregated.
    """
    filters = resolve_filters(
        context,
        empresa_id=empresa_id,
        funil_id=funil_id,
        campanha_id=campanha_id,
        conjunto_id=conjunto_id,
        criativo_id=criativo_id,
        periodo_inicio=periodo_inicio,
        periodo_fim=periodo_fim,
    )
    return await run_dashboard(session, store, context, filters)
