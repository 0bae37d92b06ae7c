"""Tests for snapshot reads and idempotent upserts."""

import asyncio

import pytest
from sqlmodel import select

from funildash.core.errors import ValidationFailed
from funildash.models.metric_models import MetricSnapshot
from funildash.store.metric_store import (
    MetricStore,
    normalize_payload,
    query_snapshots,
    upsert_snapshot,
    upsert_snapshots,
)


def payload(**overrides) -> dict:
    data = {
        "tipo": "funil",
        "referencia_id": "f-lancamento",
        "periodo_inicio": "2025-01-01",
        "periodo_fim": "2025-01-31",
    }
    data.update(overrides)
    return data


def all_rows(session):
    return session.exec(select(MetricSnapshot)).all()


# ── normalize_payload ──


def test_missing_counters_default_to_zero():
    data = normalize_payload(payload(leads=5, vendas=None))
    assert data["leads"] == 5
    assert data["vendas"] == 0
    assert data["faturamento"] == 0


@pytest.mark.parametrize(
    "overrides",
    [
        {"tipo": None},
        {"referencia_id": ""},
        {"tipo": "anuncio"},
        {"periodo_inicio": "2025-13-01"},
        {"periodo_inicio": "2025-02-01", "periodo_fim": "2025-01-01"},
    ],
)
def test_invalid_payloads(overrides):
    with pytest.raises(ValidationFailed):
        normalize_payload(payload(**overrides))


def test_error_names_batch_position():
    with pytest.raises(ValidationFailed, match=r"item 3"):
        normalize_payload(payload(tipo="x"), position=3)


# ── Upserts ──


def test_upsert_is_idempotent_on_key(session):
    first = upsert_snapshot(session, payload(leads=10, investimento=100.0))
    second = upsert_snapshot(session, payload(leads=12))

    rows = all_rows(session)
    assert len(rows) == 1
    assert second.id == first.id
    assert rows[0].leads == 12
    # whole counter set is replaced
    assert rows[0].investimento == 0


def test_different_period_is_a_new_row(session):
    upsert_snapshot(session, payload())
    upsert_snapshot(session, payload(periodo_inicio="2025-02-01", periodo_fim="2025-02-28"))
    assert len(all_rows(session)) == 2


def test_batch_saves_all(session):
    saved = upsert_snapshots(
        session,
        [
            payload(leads=1),
            payload(tipo="campanha", referencia_id="c-captacao", leads=2),
        ],
    )
    assert len(saved) == 2
    assert len(all_rows(session)) == 2


def test_batch_duplicates_collapse_to_last(session):
    saved = upsert_snapshots(session, [payload(leads=1), payload(leads=9)])

    assert len(saved) == 1
    rows = all_rows(session)
    assert len(rows) == 1
    assert rows[0].leads == 9


def test_batch_with_invalid_element_writes_nothing(session):
    with pytest.raises(ValidationFailed):
        upsert_snapshots(session, [payload(leads=1), payload(tipo="nope")])
    assert all_rows(session) == []


def test_empty_batch_is_rejected(session):
    with pytest.raises(ValidationFailed):
        upsert_snapshots(session, [])


# ── Reads ──


@pytest.fixture
def stored(session):
    upsert_snapshots(
        session,
        [
            payload(periodo_inicio="2025-01-01", periodo_fim="2025-01-31", leads=1),
            payload(periodo_inicio="2025-02-01", periodo_fim="2025-02-28", leads=2),
            payload(periodo_inicio="2025-03-01", periodo_fim="2025-03-31", leads=3),
            payload(tipo="campanha", referencia_id="c-captacao", leads=4),
        ],
    )


def test_query_period_bounds(session, stored):
    rows = query_snapshots(
        session, tipo="funil", periodo_inicio="2025-02-01", periodo_fim="2025-03-31"
    )
    assert [r.leads for r in rows] == [3, 2]


def test_query_snapshot_must_fit_inside_period(session, stored):
    rows = query_snapshots(
        session, tipo="funil", periodo_inicio="2025-01-15", periodo_fim="2025-02-28"
    )
    assert [r.leads for r in rows] == [2]


def test_query_by_reference_ids(session, stored):
    rows = query_snapshots(session, referencia_ids=["c-captacao"])
    assert [r.leads for r in rows] == [4]


def test_empty_reference_ids_match_nothing(session, stored):
    assert query_snapshots(session, referencia_ids=[]) == []


def test_metric_store_fetch_uses_its_own_session(engine, session, stored):
    store = MetricStore(engine)
    rows = asyncio.run(store.fetch("funil", "f-lancamento", "2025-01-01", "2025-02-28"))
    assert sorted(r.leads for r in rows) == [1, 2]


def test_unpadded_dates_share_the_upsert_key(session):
    first = upsert_snapshot(session, payload(periodo_inicio="2025-01-05", periodo_fim="2025-01-05", leads=1))
    second = upsert_snapshot(session, payload(periodo_inicio="2025-1-5", periodo_fim="2025-1-5", leads=7))

    rows = all_rows(session)
    assert len(rows) == 1
    assert second.id == first.id
    assert (rows[0].periodo_inicio, rows[0].leads) == ("2025-01-05", 7)


def test_query_bounds_are_compared_as_dates(session, stored):
    upsert_snapshot(
        session, payload(periodo_inicio="2025-08-01", periodo_fim="2025-08-31", leads=99)
    )
    rows = query_snapshots(session, tipo="funil", periodo_inicio="2025-1-1", periodo_fim="2025-2-28")
    assert sorted(r.leads for r in rows) == [1, 2]


def test_query_rejects_malformed_bound(session):
    with pytest.raises(ValidationFailed):
        query_snapshots(session, periodo_fim="end of month")
