"""FunilDash — Dashboard Output Models.

Everything here is derived on read and never persisted.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from funildash.core.metric_registry import describe


class PerformanceStatus(str, Enum):
    """Four-level rating from ROAS and CTR."""

    EXCELLENT = "excellent"
    GOOD = "good"
    MEDIUM = "medium"
    POOR = "poor"


class AggregatedMetrics(BaseModel):
    """Summed counters plus ratios recomputed from the sums."""

    alcance: int = Field(0, description=describe("alcance"))
    impressoes: int = Field(0, description=describe("impressoes"))
    cliques: int = Field(0, description=describe("cliques"))
    visualizacoes_pagina: int = Field(0, description=describe("visualizacoes_pagina"))
    leads: int = Field(0, description=describe("leads"))
    checkouts: int = Field(0, description=describe("checkouts"))
    vendas: int = Field(0, description=describe("vendas"))
    investimento: float = Field(0.0, description=describe("investimento"))
    faturamento: float = Field(0.0, description=describe("faturamento"))

    roas: float = Field(0.0, description=describe("roas"))
    ctr: float = Field(0.0, description=describe("ctr"))
    cpm: float = Field(0.0, description=describe("cpm"))
    cpc: float = Field(0.0, description=describe("cpc"))
    cpl: float = Field(0.0, description=describe("cpl"))
    taxa_conversao: float = Field(0.0, description=describe("taxa_conversao"))


class TimeSeriesPoint(BaseModel):
    """One calendar day of the chart."""

    data: str  # YYYY-MM-DD
    investimento: float = 0.0
    leads: float = 0.0
    vendas: float = 0.0
    cliques: float = 0.0
    alcance: float = 0.0
    simulado: bool = False


class HierarchyNode(BaseModel):
    """A funnel/campaign/ad set/creative annotated with its metrics."""

    id: str
    nome: str
    tipo: str  # EntityType value
    nivel: int
    parent_id: Optional[str] = None
    metricas: AggregatedMetrics = AggregatedMetrics()
    status_performance: PerformanceStatus = PerformanceStatus.POOR
    children: List["HierarchyNode"] = []
    expandido: bool = False
    erro: Optional[str] = None


HierarchyNode.model_rebuild()


class CreativeComparison(BaseModel):
    """A creative and its metrics, for the side-by-side table."""

    criativo: dict
    metricas: AggregatedMetrics
    erro: Optional[str] = None


class DashboardFilters(BaseModel):
    """Resolved query parameters of GET /dashboard."""

    empresa_id: Optional[str] = None
    funil_id: Optional[str] = None
    campanha_id: Optional[str] = None
    conjunto_id: Optional[str] = None
    criativo_id: Optional[str] = None
    periodo_inicio: str
    periodo_fim: str


class DashboardResponse(BaseModel):
    """Composite payload behind every dashboard view."""

    periodo_inicio: str
    periodo_fim: str
    metricas: AggregatedMetrics
    series_tempo: List[TimeSeriesPoint] = []
    hierarquia: List[HierarchyNode] = []
    comparativo_criativos: Optional[List[CreativeComparison]] = None
