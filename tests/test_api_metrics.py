"""API tests for /metricas."""

from sqlmodel import select

from funildash.models.metric_models import MetricSnapshot
from funildash.store.metric_store import upsert_snapshot

JANUARY = {"periodo_inicio": "2025-01-01", "periodo_fim": "2025-01-31"}


def snapshot(tipo="campanha", referencia_id="c-captacao", **counters) -> dict:
    return {"tipo": tipo, "referencia_id": referencia_id, **JANUARY, **counters}


def count_rows(session) -> int:
    session.expire_all()
    return len(session.exec(select(MetricSnapshot)).all())


def test_post_creates_then_replaces(client, session):
    first = client.post("/metricas", json=snapshot(leads=10, investimento=100.0))
    assert first.status_code == 201
    assert first.json()["leads"] == 10
    assert first.json()["vendas"] == 0

    second = client.post("/metricas", json=snapshot(leads=15))
    assert second.status_code == 201
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["investimento"] == 0
    assert count_rows(session) == 1


def test_post_validation(client, session):
    assert client.post("/metricas", json={"tipo": "campanha"}).status_code == 400
    assert client.post("/metricas", json=snapshot(tipo="anuncio")).status_code == 400
    bad_period = {**snapshot(), "periodo_inicio": "2025-02-01"}
    assert client.post("/metricas", json=bad_period).status_code == 400
    assert count_rows(session) == 0


def test_post_for_foreign_entity_is_forbidden(client, session):
    resp = client.post("/metricas", json=snapshot(referencia_id="c-rival", leads=1))
    assert resp.status_code == 403
    assert count_rows(session) == 0


def test_put_batch(client, session):
    resp = client.put(
        "/metricas",
        json={
            "metricas": [
                snapshot(leads=1),
                snapshot(tipo="funil", referencia_id="f-lancamento", leads=2),
                snapshot(tipo="criativo", referencia_id="cr-video", leads=3),
            ]
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 3
    assert body["message"] == "3 metrics saved"
    assert len(body["data"]) == 3
    assert count_rows(session) == 3


def test_put_requires_items(client):
    assert client.put("/metricas", json={"metricas": []}).status_code == 400
    assert client.put("/metricas", json={}).status_code == 400


def test_put_is_all_or_nothing(client, session):
    invalid = client.put("/metricas", json={"metricas": [snapshot(leads=1), {"tipo": "funil"}]})
    assert invalid.status_code == 400
    assert "item 1" in invalid.json()["error"]

    foreign = client.put(
        "/metricas",
        json={"metricas": [snapshot(leads=1), snapshot(tipo="funil", referencia_id="f-rival")]},
    )
    assert foreign.status_code == 403
    assert count_rows(session) == 0


def test_get_hides_other_tenants(client, session):
    upsert_snapshot(session, snapshot(tipo="funil", referencia_id="f-rival", leads=99))
    upsert_snapshot(session, snapshot(tipo="funil", referencia_id="f-lancamento", leads=5))
    upsert_snapshot(session, snapshot(leads=7))

    body = client.get("/metricas").json()
    assert sorted(s["leads"] for s in body) == [5, 7]

    funnels_only = client.get("/metricas", params={"tipo": "funil"}).json()
    assert [s["referencia_id"] for s in funnels_only] == ["f-lancamento"]


def test_get_period_filter(client, session):
    upsert_snapshot(session, snapshot(leads=1))
    upsert_snapshot(
        session,
        {**snapshot(leads=2), "periodo_inicio": "2025-02-01", "periodo_fim": "2025-02-28"},
    )
    body = client.get("/metricas", params={"periodo_inicio": "2025-02-01"}).json()
    assert [s["leads"] for s in body] == [2]


def test_post_with_unpadded_dates_replaces_padded_row(client, session):
    first = client.post("/metricas", json=snapshot(leads=1))
    second = client.post(
        "/metricas",
        json={**snapshot(leads=4), "periodo_inicio": "2025-1-1", "periodo_fim": "2025-1-31"},
    )
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["periodo_inicio"] == "2025-01-01"
    assert count_rows(session) == 1


def test_get_bounds_accept_unpadded_dates(client, session):
    upsert_snapshot(session, snapshot(leads=1))
    upsert_snapshot(
        session,
        {**snapshot(leads=2), "periodo_inicio": "2025-08-01", "periodo_fim": "2025-08-31"},
    )
    body = client.get("/metricas", params={"periodo_fim": "2025-2-1"}).json()
    assert [s["leads"] for s in body] == [1]
    assert client.get("/metricas", params={"periodo_fim": "soon"}).status_code == 400
