"""FunilDash — Metric Record Store.

Filtered reads and idempotent upserts over the ``metricas`` table. The
uniqueness key is (tipo, referencia_id, periodo_inicio, periodo_fim); an upsert
replaces the whole counter set of the row it lands on.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from funildash.core.dates import parse_date
from funildash.core.errors import ValidationFailed
from funildash.core.logging import get_logger
from funildash.core.metric_registry import COUNTER_NAMES
from funildash.models.metric_models import EntityType, MetricSnapshot
from funildash.store.base import store_errors

logger = get_logger("store.metrics")

KEY_FIELDS = ("tipo", "referencia_id", "periodo_inicio", "periodo_fim")
ENTITY_TAGS = {t.value for t in EntityType}


# ── Reads ──


def query_snapshots(
    session: Session,
    tipo: Optional[str] = None,
    referencia_id: Optional[str] = None,
    periodo_inicio: Optional[str] = None,
    periodo_fim: Optional[str] = None,
    referencia_ids: Optional[Iterable[str]] = None,
) -> List[MetricSnapshot]:
    """Return snapshots matching every given filter, newest period first.

    ``periodo_inicio`` is a lower bound on the snapshot start and
    ``periodo_fim`` an upper bound on the snapshot end. An explicit empty
    ``referencia_ids`` matches nothing.
    """
    query = select(MetricSnapshot)

    if tipo:
        query = query.where(MetricSnapshot.tipo == tipo)
    if referencia_id:
        query = query.where(MetricSnapshot.referencia_id == referencia_id)
    if referencia_ids is not None:
        ids = list(referencia_ids)
        if not ids:
            return []
        query = query.where(MetricSnapshot.referencia_id.in_(ids))  # type: ignore
    if periodo_inicio:
        query = query.where(
            MetricSnapshot.periodo_inicio >= parse_date(periodo_inicio, "periodo_inicio")
        )
    if periodo_fim:
        query = query.where(MetricSnapshot.periodo_fim <= parse_date(periodo_fim, "periodo_fim"))

    query = query.order_by(MetricSnapshot.periodo_inicio.desc())  # type: ignore

    with store_errors("querying metric snapshots"):
        return list(session.exec(query).all())


class MetricStore:
    """Snapshot reads that each run in a worker thread with their own session.

    Lets the hierarchy assembler issue one fetch per node concurrently
    without sharing the request's session across threads.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def _fetch_sync(
        self,
        tipo: str,
        referencia_id: str,
        periodo_inicio: str,
        periodo_fim: str,
    ) -> List[MetricSnapshot]:
        with Session(self.engine) as session:
            return query_snapshots(
                session,
                tipo=tipo,
                referencia_id=referencia_id,
                periodo_inicio=periodo_inicio,
                periodo_fim=periodo_fim,
            )

    async def fetch(
        self,
        tipo: str,
        referencia_id: str,
        periodo_inicio: str,
        periodo_fim: str,
    ) -> List[MetricSnapshot]:
        """Fetch one entity's snapshots for a period."""
        return await asyncio.to_thread(
            self._fetch_sync, tipo, referencia_id, periodo_inicio, periodo_fim
        )


def get_metric_store() -> MetricStore:
    """Dependency — a MetricStore bound to the application engine."""
    from funildash.database import engine

    return MetricStore(engine)


# ── Writes ──


def normalize_payload(payload: Dict[str, Any], position: Optional[int] = None) -> Dict[str, Any]:
    """Validate the key fields and default every missing counter to 0."""
    where = f" (item {position})" if position is not None else ""

    missing = [f for f in KEY_FIELDS if not payload.get(f)]
    if missing:
        raise ValidationFailed(
            f"Fields {', '.join(missing)} are required{where}"
        )
    if payload["tipo"] not in ENTITY_TAGS:
        raise ValidationFailed(
            f"tipo must be one of {', '.join(sorted(ENTITY_TAGS))}{where}"
        )

    data: Dict[str, Any] = {
        "tipo": payload["tipo"],
        "referencia_id": str(payload["referencia_id"]),
        "periodo_inicio": parse_date(payload["periodo_inicio"], "periodo_inicio"),
        "periodo_fim": parse_date(payload["periodo_fim"], "periodo_fim"),
    }
    if data["periodo_inicio"] > data["periodo_fim"]:
        raise ValidationFailed(f"periodo_inicio must not be after periodo_fim{where}")

    for name in COUNTER_NAMES:
        value = payload.get(name)
        data[name] = value if value is not None else 0
    return data


def _apply(session: Session, data: Dict[str, Any]) -> MetricSnapshot:
    """Insert or replace one snapshot inside the caller's transaction."""
    existing = session.exec(
        select(MetricSnapshot).where(
            MetricSnapshot.tipo == data["tipo"],
            MetricSnapshot.referencia_id == data["referencia_id"],
            MetricSnapshot.periodo_inicio == data["periodo_inicio"],
            MetricSnapshot.periodo_fim == data["periodo_fim"],
        )
    ).first()

    if existing:
        for name in COUNTER_NAMES:
            setattr(existing, name, data[name])
        existing.updated_at = datetime.now(timezone.utc)
        session.add(existing)
        return existing

    snapshot = MetricSnapshot(**data)
    session.add(snapshot)
    return snapshot


def upsert_snapshot(session: Session, payload: Dict[str, Any]) -> MetricSnapshot:
    """Upsert a single snapshot and return the stored row."""
    data = normalize_payload(payload)
    with store_errors("saving metric snapshot", session):
        snapshot = _apply(session, data)
        session.commit()
        session.refresh(snapshot)
    logger.info(
        f"Saved {data['tipo']} snapshot {data['periodo_inicio']} → {data['periodo_fim']}",
        extra={"entity_type": data["tipo"], "entity_id": data["referencia_id"]},
    )
    return snapshot


def upsert_snapshots(
    session: Session, payloads: List[Dict[str, Any]]
) -> List[MetricSnapshot]:
    """Upsert a batch in one transaction — all rows are saved or none.

    Every element is validated before anything is written. Elements sharing a
    key collapse into one row holding the last element's counters.
    """
    if not payloads:
        raise ValidationFailed("metricas must be a non-empty list")

    rows = [normalize_payload(p, position=i) for i, p in enumerate(payloads)]

    saved: Dict[int, MetricSnapshot] = {}
    with store_errors("saving metric snapshot batch", session):
        for data in rows:
            snapshot = _apply(session, data)
            saved[id(snapshot)] = snapshot
        session.commit()
        for snapshot in saved.values():
            session.refresh(snapshot)

    logger.info(f"Saved {len(saved)} metric snapshots from a batch of {len(rows)}")
    return list(saved.values())
