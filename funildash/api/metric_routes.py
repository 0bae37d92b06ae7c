"""FunilDash — Metric Snapshot Routes."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlmodel import Session

from funildash.api.deps import get_request_context
from funildash.core.context import RequestContext
from funildash.core.errors import Forbidden, ValidationFailed
from funildash.core.logging import get_logger
from funildash.database import get_session
from funildash.store.entity_store import owned_references, owns_reference
from funildash.store.metric_store import (
    normalize_payload,
    query_snapshots,
    upsert_snapshot,
    upsert_snapshots,
)

logger = get_logger("api.metrics")

router = APIRouter(prefix="/metricas", tags=["Metrics"])


# ── Request Models ──


class MetricPayload(BaseModel):
    """One snapshot. Counters left out are stored as 0."""

    tipo: Optional[str] = None
    referencia_id: Optional[str] = None
    periodo_inicio: Optional[str] = None
    periodo_fim: Optional[str] = None
    alcance: Optional[int] = 0
    impressoes: Optional[int] = 0
    cliques: Optional[int] = 0
    visualizacoes_pagina: Optional[int] = 0
    leads: Optional[int] = 0
    checkouts: Optional[int] = 0
    vendas: Optional[int] = 0
    investimento: Optional[float] = 0.0
    faturamento: Optional[float] = 0.0

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "tipo": "campanha",
                    "referencia_id": "5f0c…",
                    "periodo_inicio": "2025-01-01",
                    "periodo_fim": "2025-01-31",
                    "impressoes": 120000,
                    "cliques": 2400,
                    "leads": 180,
                    "vendas": 12,
                    "investimento": 3500.0,
                    "faturamento": 11200.0,
                }
            ]
        }
    }


class MetricBatch(BaseModel):
    """Request body for PUT /metricas."""

    metricas: Optional[List[MetricPayload]] = None


def _check_owner(session: Session, context: RequestContext, data: dict) -> None:
    if not owns_reference(session, context.company_id, data["tipo"], data["referencia_id"]):
        raise Forbidden(f"{data['tipo']} not found or no permission")


# ── Endpoints ──


@router.get("")
async def get_metrics(
    tipo: Optional[str] = Query(None, description="funil | campanha | conjunto | criativo"),
    referencia_id: Optional[str] = Query(None),
    periodo_inicio: Optional[str] = Query(None, description="Lower bound on period start"),
    periodo_fim: Optional[str] = Query(None, description="Upper bound on period end"),
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    """List raw snapshots of the caller's entities, newest period first."""
    snapshots = query_snapshots(
        session,
        tipo=tipo,
        referencia_id=referencia_id,
        periodo_inicio=periodo_inicio,
        periodo_fim=periodo_fim,
    )
    owned = owned_references(session, context.company_id)
    return [
        s.model_dump(mode="json")
        for s in snapshots
        if (s.tipo, s.referencia_id) in owned
    ]


@router.post("", status_code=201)
async def post_metric(
    body: MetricPayload,
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    """Insert or replace one snapshot, keyed on tipo/referencia_id/period."""
    data = normalize_payload(body.model_dump())
    _check_owner(session, context, data)
    return upsert_snapshot(session, data).model_dump(mode="json")


@router.put("")
async def put_metrics(
    body: MetricBatch,
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    """Upsert a batch of snapshots — all are saved or none."""
    if not body.metricas:
        raise ValidationFailed("metricas must be a non-empty list")

    rows = [normalize_payload(m.model_dump(), position=i) for i, m in enumerate(body.metricas)]
    for data in rows:
        _check_owner(session, context, data)

    saved = upsert_snapshots(session, rows)
    logger.info(
        f"Batch upsert saved {len(saved)} snapshots",
        extra={"company_id": context.company_id},
    )
    return {
        "message": f"{len(saved)} metrics saved",
        "count": len(saved),
        "data": [s.model_dump(mode="json") for s in saved],
    }
