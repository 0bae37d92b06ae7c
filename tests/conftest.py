"""Shared fixtures: a fresh SQLite database per test, seeded with two tenants."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from funildash.api.deps import get_current_user_id
from funildash.database import build_engine, get_session, init_db
from funildash.main import app
from funildash.models.entity_models import AdSet, Campaign, Company, Creative, Funnel, User
from funildash.store.metric_store import MetricStore, get_metric_store

USER_ID = "user-acme"
RIVAL_USER_ID = "user-rival"


def ts(month: int, day: int = 1) -> datetime:
    return datetime(2025, month, day, tzinfo=timezone.utc)


class FakeMetricStore:
    """In-memory stand-in for MetricStore.fetch with optional failing ids."""

    def __init__(self, snapshots=None, failing=()):
        self.snapshots = snapshots or {}
        self.failing = set(failing)
        self.calls = []

    async def fetch(self, tipo, referencia_id, periodo_inicio, periodo_fim):
        self.calls.append((tipo, referencia_id))
        if referencia_id in self.failing:
            raise RuntimeError("store unavailable")
        return self.snapshots.get((tipo, referencia_id), [])


@pytest.fixture
def fake_store():
    return FakeMetricStore


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'funildash-test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def seed(session):
    """Acme owns two active funnels (one inactive); Rival owns one funnel.

    Acme "Lançamento" (newest) → campaign "Captação" → ad set "Lookalike" →
    creatives "Vídeo A", "Imagem B" (+ one inactive creative and campaign).
    """
    acme = Company(id="acme", nome="Acme")
    rival = Company(id="rival", nome="Rival")
    session.add_all([acme, rival])
    session.add_all(
        [
            User(id=USER_ID, empresa_id="acme", nome="Ana"),
            User(id=RIVAL_USER_ID, empresa_id="rival", nome="Rui"),
        ]
    )

    perpetuo = Funnel(id="f-perpetuo", empresa_id="acme", nome="Perpétuo", created_at=ts(1))
    lancamento = Funnel(id="f-lancamento", empresa_id="acme", nome="Lançamento", created_at=ts(2))
    arquivado = Funnel(
        id="f-arquivado", empresa_id="acme", nome="Arquivado", ativo=False, created_at=ts(3)
    )
    rival_funnel = Funnel(id="f-rival", empresa_id="rival", nome="Rival", created_at=ts(4))
    session.add_all([perpetuo, lancamento, arquivado, rival_funnel])

    captacao = Campaign(id="c-captacao", funil_id="f-lancamento", nome="Captação", created_at=ts(2, 2))
    pausada = Campaign(
        id="c-pausada", funil_id="f-lancamento", nome="Pausada", ativo=False, created_at=ts(2, 3)
    )
    remarketing = Campaign(id="c-remarketing", funil_id="f-perpetuo", nome="Remarketing", created_at=ts(1, 2))
    rival_campaign = Campaign(id="c-rival", funil_id="f-rival", nome="Rival Ads", created_at=ts(4, 2))
    session.add_all([captacao, pausada, remarketing, rival_campaign])

    lookalike = AdSet(id="a-lookalike", campanha_id="c-captacao", nome="Lookalike", publico="LAL 1%", created_at=ts(2, 4))
    rival_ad_set = AdSet(id="a-rival", campanha_id="c-rival", nome="Rival Set", created_at=ts(4, 3))
    session.add_all([lookalike, rival_ad_set])

    session.add_all(
        [
            Creative(id="cr-video", conjunto_id="a-lookalike", nome="Vídeo A", tipo="video", created_at=ts(2, 5)),
            Creative(id="cr-imagem", conjunto_id="a-lookalike", nome="Imagem B", created_at=ts(2, 6)),
            Creative(
                id="cr-antigo", conjunto_id="a-lookalike", nome="Antigo", ativo=False, created_at=ts(2, 7)
            ),
            Creative(id="cr-rival", conjunto_id="a-rival", nome="Rival Creative", created_at=ts(4, 4)),
        ]
    )
    session.commit()
    return session


@pytest.fixture
def client(engine, seed):
    def _session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_metric_store] = lambda: MetricStore(engine)
    app.dependency_overrides[get_current_user_id] = lambda: USER_ID
    yield TestClient(app)
    app.dependency_overrides.clear()
