"""FunilDash — Metric Snapshot Model.

A snapshot is attached to exactly one entity through a polymorphic key
(``tipo`` + ``referencia_id``) rather than a typed foreign key.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field, UniqueConstraint


class EntityType(str, Enum):
    """Entity tag carried by a snapshot. Values are the wire/database tags."""

    FUNNEL = "funil"
    CAMPAIGN = "campanha"
    AD_SET = "conjunto"
    CREATIVE = "criativo"


class MetricSnapshot(SQLModel, table=True):
    """Periodic measurement for one entity.

    Unique constraint on (tipo, referencia_id, periodo_inicio, periodo_fim)
    backs the idempotent upsert — re-sending a snapshot replaces its counters.
    """

    __tablename__ = "metricas"
    __table_args__ = (
        UniqueConstraint(
            "tipo",
            "referencia_id",
            "periodo_inicio",
            "periodo_fim",
            name="uq_metricas_periodo",
        ),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    tipo: str = Field(index=True, description="funil | campanha | conjunto | criativo")
    referencia_id: str = Field(index=True, description="Id of the tagged entity")
    periodo_inicio: str = Field(index=True, description="YYYY-MM-DD")
    periodo_fim: str = Field(index=True, description="YYYY-MM-DD")

    alcance: Optional[int] = 0
    impressoes: Optional[int] = 0
    cliques: Optional[int] = 0
    visualizacoes_pagina: Optional[int] = 0
    leads: Optional[int] = 0
    checkouts: Optional[int] = 0
    vendas: Optional[int] = 0
    investimento: Optional[float] = 0.0
    faturamento: Optional[float] = 0.0

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
