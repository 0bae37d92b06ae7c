"""Tests for the annotated funnel → creative tree."""

import asyncio
from datetime import datetime, timezone

import pytest

from funildash.analyzer.hierarchy import FETCH_FAILED, build_hierarchy, gather_metrics
from funildash.models.dashboard_models import PerformanceStatus
from funildash.models.entity_models import AdSet, Campaign, Creative, Funnel

START, END = "2025-01-01", "2025-01-31"


def at(day: int) -> datetime:
    return datetime(2025, 1, day, tzinfo=timezone.utc)


@pytest.fixture
def funnels():
    """F1 → {C-old, C-new}; C-new → A1 → {K1, K2}. F2 is bare."""
    k1 = Creative(id="k1", conjunto_id="a1", nome="K1", created_at=at(5))
    k2 = Creative(id="k2", conjunto_id="a1", nome="K2", created_at=at(6))
    a1 = AdSet(id="a1", campanha_id="c-new", nome="A1", created_at=at(4), criativos=[k1, k2])
    c_old = Campaign(id="c-old", funil_id="f1", nome="Old", created_at=at(2))
    c_new = Campaign(id="c-new", funil_id="f1", nome="New", created_at=at(3), conjuntos=[a1])
    f1 = Funnel(id="f1", empresa_id="e", nome="F1", created_at=at(1), campanhas=[c_old, c_new])
    f2 = Funnel(id="f2", empresa_id="e", nome="F2", created_at=at(1))
    return [f1, f2]


def build(funnels, store, levels=None):
    return asyncio.run(build_hierarchy(funnels, store, START, END, levels=levels))


def test_tree_structure_and_levels(funnels, fake_store):
    tree = build(funnels, fake_store(), levels=4)

    assert [n.id for n in tree] == ["f1", "f2"]
    f1 = tree[0]
    assert f1.nivel == 0
    assert f1.parent_id is None
    assert f1.expandido is True

    c_new = f1.children[0]
    assert c_new.tipo == "campanha"
    assert c_new.nivel == 1
    assert c_new.parent_id == "f1"
    assert c_new.expandido is False

    a1 = c_new.children[0]
    assert (a1.tipo, a1.nivel, a1.parent_id) == ("conjunto", 2, "c-new")
    assert [(k.tipo, k.nivel, k.parent_id) for k in a1.children] == [
        ("criativo", 3, "a1"),
        ("criativo", 3, "a1"),
    ]
    assert tree[1].children == []


def test_children_are_newest_first(funnels, fake_store):
    tree = build(funnels, fake_store(), levels=4)
    assert [c.id for c in tree[0].children] == ["c-new", "c-old"]
    assert [k.id for k in tree[0].children[0].children[0].children] == ["k2", "k1"]


def test_level_cap(funnels, fake_store):
    store = fake_store()
    tree = build(funnels, store, levels=2)

    assert [c.id for c in tree[0].children] == ["c-new", "c-old"]
    assert all(c.children == [] for c in tree[0].children)
    assert {tipo for tipo, _ in store.calls} == {"funil", "campanha"}


def test_levels_are_clamped(funnels, fake_store):
    shallow = build(funnels, fake_store(), levels=0)
    assert [n.id for n in shallow] == ["f1", "f2"]
    assert all(n.children == [] for n in shallow)

    deep = build(funnels, fake_store(), levels=9)
    assert [k.nivel for k in deep[0].children[0].children[0].children] == [3, 3]


def test_nodes_carry_their_own_metrics_and_status(funnels, fake_store):
    store = fake_store(
        {
            ("funil", "f1"): [{"investimento": 100.0, "faturamento": 400.0, "impressoes": 1000, "cliques": 30}],
            ("campanha", "c-new"): [{"investimento": 100.0, "faturamento": 150.0}],
        }
    )
    tree = build(funnels, store, levels=4)

    assert tree[0].metricas.roas == pytest.approx(4.0)
    assert tree[0].status_performance is PerformanceStatus.EXCELLENT
    assert tree[0].children[0].metricas.roas == pytest.approx(1.5)
    assert tree[0].children[0].status_performance is PerformanceStatus.POOR
    assert tree[1].metricas.investimento == 0


def test_failed_fetch_only_marks_that_node(funnels, fake_store):
    store = fake_store(
        {("criativo", "k2"): [{"investimento": 10.0, "faturamento": 50.0}]},
        failing={"c-new"},
    )
    tree = build(funnels, store, levels=4)

    c_new = tree[0].children[0]
    assert c_new.erro == FETCH_FAILED
    assert c_new.metricas.investimento == 0
    assert c_new.status_performance is PerformanceStatus.POOR
    assert tree[0].erro is None
    assert tree[0].children[1].erro is None

    k2 = c_new.children[0].children[0]
    assert k2.erro is None
    assert k2.metricas.roas == pytest.approx(5.0)


def test_one_fetch_per_node(funnels, fake_store):
    store = fake_store()
    build(funnels, store, levels=4)
    assert sorted(store.calls) == sorted(
        [
            ("funil", "f1"),
            ("funil", "f2"),
            ("campanha", "c-new"),
            ("campanha", "c-old"),
            ("conjunto", "a1"),
            ("criativo", "k1"),
            ("criativo", "k2"),
        ]
    )


def test_empty_input(fake_store):
    assert build([], fake_store()) == []


def test_gather_metrics_keeps_target_order(fake_store):
    store = fake_store({("funil", "b"): [{"leads": 7}]}, failing={"a"})
    results = asyncio.run(gather_metrics(store, [("funil", "a"), ("funil", "b")], START, END))

    assert results[0][1] == FETCH_FAILED
    assert results[1][0].leads == 7
    assert results[1][1] is None


def test_gather_metrics_propagates_cancellation():
    class CancellingStore:
        async def fetch(self, *args):
            raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(gather_metrics(CancellingStore(), [("funil", "a")], START, END))
