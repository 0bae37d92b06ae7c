"""FunilDash — Campaign Routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlmodel import Session

from funildash.api.common import changes_from, deleted, require_fields
from funildash.api.deps import get_request_context
from funildash.core.context import RequestContext
from funildash.core.errors import Forbidden, NotFound
from funildash.database import get_session
from funildash.models.entity_models import Campaign
from funildash.store.entity_store import (
    create_entity,
    delete_entity,
    get_owned_campaign,
    get_owned_funnel,
    list_campaigns,
    update_entity,
)

router = APIRouter(prefix="/campanhas", tags=["Campaigns"])

DEFAULT_TYPE = "leads"
DEFAULT_PLATFORM = "Meta Ads"


# ── Request Models ──


class CampaignCreate(BaseModel):
    """Request body for POST /campanhas."""

    nome: Optional[str] = None
    funil_id: Optional[str] = None
    tipo: Optional[str] = None
    plataforma: Optional[str] = None


class CampaignUpdate(BaseModel):
    """Request body for PATCH /campanhas/{id}."""

    nome: Optional[str] = None
    tipo: Optional[str] = None
    plataforma: Optional[str] = None
    ativo: Optional[bool] = None


def _campaign_payload(campaign: Campaign) -> dict:
    funnel = campaign.funil
    return {
        **campaign.model_dump(mode="json"),
        "funil": (
            {"id": funnel.id, "nome": funnel.nome, "empresa_id": funnel.empresa_id}
            if funnel
            else None
        ),
        "conjuntos_anuncio": [
            {"id": a.id, "nome": a.nome, "publico": a.publico, "ativo": a.ativo}
            for a in campaign.conjuntos
        ],
    }


def _owned(session: Session, context: RequestContext, campaign_id: str) -> Campaign:
    campaign = get_owned_campaign(session, context.company_id, campaign_id)
    if not campaign:
        raise NotFound("Campaign not found")
    return campaign


# ── Endpoints ──


@router.get("")
async def get_campaigns(
    funil_id: Optional[str] = Query(None, description="Only campaigns of this funnel"),
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    """List the company's campaigns with parent funnel and ad sets, newest first."""
    campaigns = list_campaigns(session, context.company_id, funil_id)
    return [_campaign_payload(c) for c in campaigns]


@router.post("", status_code=201)
async def post_campaign(
    body: CampaignCreate,
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    """Create a campaign under one of the caller's funnels."""
    require_fields(nome=body.nome, funil_id=body.funil_id)

    if not get_owned_funnel(session, context.company_id, body.funil_id):  # type: ignore[arg-type]
        raise Forbidden("Funnel not found or no permission")

    campaign = create_entity(
        session,
        Campaign(
            nome=body.nome.strip(),  # type: ignore[union-attr]
            funil_id=body.funil_id,  # type: ignore[arg-type]
            tipo=body.tipo or DEFAULT_TYPE,
            plataforma=body.plataforma or DEFAULT_PLATFORM,
        ),
    )
    return campaign.model_dump(mode="json")


@router.patch("/{campaign_id}")
async def patch_campaign(
    campaign_id: str,
    body: CampaignUpdate,
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    campaign = _owned(session, context, campaign_id)
    changes = changes_from(body, required=("nome", "tipo", "plataforma"))
    return update_entity(session, campaign, changes).model_dump(mode="json")


@router.delete("/{campaign_id}")
async def delete_campaign(
    campaign_id: str,
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    delete_entity(session, _owned(session, context, campaign_id))
    return deleted(campaign_id)
