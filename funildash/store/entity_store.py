"""FunilDash — Entity Store.

CRUD over funnels, campaigns, ad sets and creatives. Every lookup that a
caller can steer by id is scoped to the caller's company through the
containment chain (creative → ad set → campaign → funnel → company).
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy.orm import selectinload
from sqlmodel import Session, SQLModel, select

from funildash.core.logging import get_logger
from funildash.models.entity_models import (
    AdSet,
    Campaign,
    Creative,
    Funnel,
    User,
)
from funildash.models.metric_models import EntityType
from funildash.store.base import store_errors

logger = get_logger("store.entities")


# ── Identity ──


def get_user(session: Session, user_id: str) -> Optional[User]:
    with store_errors("loading user"):
        return session.get(User, user_id)


# ── Ownership-scoped lookups ──


def get_owned_funnel(session: Session, company_id: str, funnel_id: str) -> Optional[Funnel]:
    with store_errors("loading funnel"):
        return session.exec(
            select(Funnel).where(Funnel.id == funnel_id, Funnel.empresa_id == company_id)
        ).first()


def get_owned_campaign(
    session: Session, company_id: str, campaign_id: str
) -> Optional[Campaign]:
    with store_errors("loading campaign"):
        return session.exec(
            select(Campaign)
            .join(Funnel)
            .where(Campaign.id == campaign_id, Funnel.empresa_id == company_id)
        ).first()


def get_owned_ad_set(session: Session, company_id: str, ad_set_id: str) -> Optional[AdSet]:
    with store_errors("loading ad set"):
        return session.exec(
            select(AdSet)
            .join(Campaign)
            .join(Funnel)
            .where(AdSet.id == ad_set_id, Funnel.empresa_id == company_id)
        ).first()


def get_owned_creative(
    session: Session, company_id: str, creative_id: str
) -> Optional[Creative]:
    with store_errors("loading creative"):
        return session.exec(
            select(Creative)
            .join(AdSet)
            .join(Campaign)
            .join(Funnel)
            .where(Creative.id == creative_id, Funnel.empresa_id == company_id)
        ).first()


# ── Listings ──


def newest_first(items: Iterable[Any]) -> List[Any]:
    """Order loaded children by ``created_at``, newest first."""
    return sorted(items, key=lambda e: e.created_at, reverse=True)


def list_funnels(session: Session, company_id: str) -> List[Funnel]:
    """Funnels of a company with their campaigns, newest first."""
    with store_errors("listing funnels"):
        return list(
            session.exec(
                select(Funnel)
                .where(Funnel.empresa_id == company_id)
                .options(selectinload(Funnel.campanhas))  # type: ignore
                .order_by(Funnel.created_at.desc())  # type: ignore
            ).all()
        )


def list_campaigns(
    session: Session, company_id: str, funil_id: Optional[str] = None
) -> List[Campaign]:
    """Campaigns with parent funnel and ad sets, newest first.

    The result is filtered on the loaded funnel's company as well as in SQL;
    a campaign whose funnel belongs to another company is never returned.
    """
    query = (
        select(Campaign)
        .join(Funnel)
        .where(Funnel.empresa_id == company_id)
        .options(
            selectinload(Campaign.funil),  # type: ignore
            selectinload(Campaign.conjuntos),  # type: ignore
        )
        .order_by(Campaign.created_at.desc())  # type: ignore
    )
    if funil_id:
        query = query.where(Campaign.funil_id == funil_id)

    with store_errors("listing campaigns"):
        campaigns = session.exec(query).all()

    return [c for c in campaigns if c.funil is not None and c.funil.empresa_id == company_id]


def list_ad_sets(
    session: Session, company_id: str, campanha_id: Optional[str] = None
) -> List[AdSet]:
    query = (
        select(AdSet)
        .join(Campaign)
        .join(Funnel)
        .where(Funnel.empresa_id == company_id)
        .options(selectinload(AdSet.criativos))  # type: ignore
        .order_by(AdSet.created_at.desc())  # type: ignore
    )
    if campanha_id:
        query = query.where(AdSet.campanha_id == campanha_id)
    with store_errors("listing ad sets"):
        return list(session.exec(query).all())


def list_creatives(
    session: Session, company_id: str, conjunto_id: Optional[str] = None
) -> List[Creative]:
    query = (
        select(Creative)
        .join(AdSet)
        .join(Campaign)
        .join(Funnel)
        .where(Funnel.empresa_id == company_id)
        .order_by(Creative.created_at.desc())  # type: ignore
    )
    if conjunto_id:
        query = query.where(Creative.conjunto_id == conjunto_id)
    with store_errors("listing creatives"):
        return list(session.exec(query).all())


def list_active_creatives(session: Session, ad_set_id: str) -> List[Creative]:
    with store_errors("listing creatives"):
        return list(
            session.exec(
                select(Creative).where(
                    Creative.conjunto_id == ad_set_id,
                    Creative.ativo == True,  # noqa: E712
                )
            ).all()
        )


def load_containment_tree(
    session: Session, company_id: str, funil_id: Optional[str] = None
) -> List[Funnel]:
    """Active funnels of a company with active campaigns, ad sets and creatives.

    One containment query; the inactive rows are excluded at every level by the
    loader criteria. Funnels come back newest first.
    """
    query = (
        select(Funnel)
        .where(Funnel.empresa_id == company_id, Funnel.ativo == True)  # noqa: E712
        .options(
            selectinload(Funnel.campanhas.and_(Campaign.ativo == True))  # type: ignore # noqa: E712
            .selectinload(Campaign.conjuntos.and_(AdSet.ativo == True))  # type: ignore # noqa: E712
            .selectinload(AdSet.criativos.and_(Creative.ativo == True))  # type: ignore # noqa: E712
        )
        .order_by(Funnel.created_at.desc())  # type: ignore
        .execution_options(populate_existing=True)
    )
    if funil_id:
        query = query.where(Funnel.id == funil_id)

    with store_errors("loading funnel hierarchy"):
        return list(session.exec(query).all())


# ── Writes ──


def create_entity(session: Session, entity: SQLModel) -> SQLModel:
    """Insert a new row and return it refreshed."""
    with store_errors(f"creating {type(entity).__name__.lower()}", session):
        session.add(entity)
        session.commit()
        session.refresh(entity)
    logger.info(
        f"Created {type(entity).__name__}",
        extra={"entity_id": getattr(entity, "id", None)},
    )
    return entity


def update_entity(session: Session, entity: SQLModel, changes: Dict[str, Any]) -> SQLModel:
    """Apply the given column changes and bump ``updated_at``."""
    for field, value in changes.items():
        setattr(entity, field, value)
    if hasattr(entity, "updated_at"):
        entity.updated_at = datetime.now(timezone.utc)  # type: ignore
    with store_errors(f"updating {type(entity).__name__.lower()}", session):
        session.add(entity)
        session.commit()
        session.refresh(entity)
    return entity


def delete_entity(session: Session, entity: SQLModel) -> None:
    """Delete a row; its contained children go with it."""
    with store_errors(f"deleting {type(entity).__name__.lower()}", session):
        session.delete(entity)
        session.commit()
    logger.info(
        f"Deleted {type(entity).__name__}",
        extra={"entity_id": getattr(entity, "id", None)},
    )


# ── Snapshot ownership ──

OWNERSHIP_LOOKUPS = {
    EntityType.FUNNEL.value: get_owned_funnel,
    EntityType.CAMPAIGN.value: get_owned_campaign,
    EntityType.AD_SET.value: get_owned_ad_set,
    EntityType.CREATIVE.value: get_owned_creative,
}


def owns_reference(session: Session, company_id: str, tipo: str, referencia_id: str) -> bool:
    """True when the entity a snapshot points at belongs to the company."""
    lookup = OWNERSHIP_LOOKUPS.get(tipo)
    return lookup is not None and lookup(session, company_id, referencia_id) is not None


def owned_references(session: Session, company_id: str) -> Set[Tuple[str, str]]:
    """Every (tipo, id) pair of the company's containment tree."""
    queries = {
        EntityType.FUNNEL.value: select(Funnel.id).where(Funnel.empresa_id == company_id),
        EntityType.CAMPAIGN.value: select(Campaign.id)
        .join(Funnel)
        .where(Funnel.empresa_id == company_id),
        EntityType.AD_SET.value: select(AdSet.id)
        .join(Campaign)
        .join(Funnel)
        .where(Funnel.empresa_id == company_id),
        EntityType.CREATIVE.value: select(Creative.id)
        .join(AdSet)
        .join(Campaign)
        .join(Funnel)
        .where(Funnel.empresa_id == company_id),
    }
    owned: Set[Tuple[str, str]] = set()
    with store_errors("listing owned entities"):
        for tipo, query in queries.items():
            owned.update((tipo, ref_id) for ref_id in session.exec(query).all())
    return owned
