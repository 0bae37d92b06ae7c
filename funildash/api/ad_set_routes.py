"""FunilDash — Ad Set Routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlmodel import Session

from funildash.api.common import changes_from, deleted, require_fields
from funildash.api.deps import get_request_context
from funildash.core.context import RequestContext
from funildash.core.errors import Forbidden, NotFound
from funildash.database import get_session
from funildash.models.entity_models import AdSet
from funildash.store.entity_store import (
    create_entity,
    delete_entity,
    get_owned_ad_set,
    get_owned_campaign,
    list_ad_sets,
    newest_first,
    update_entity,
)

router = APIRouter(prefix="/conjuntos", tags=["Ad Sets"])


class AdSetCreate(BaseModel):
    """Request body for POST /conjuntos."""

    nome: Optional[str] = None
    campanha_id: Optional[str] = None
    publico: Optional[str] = None


class AdSetUpdate(BaseModel):
    """Request body for PATCH /conjuntos/{id}."""

    nome: Optional[str] = None
    publico: Optional[str] = None
    ativo: Optional[bool] = None


def _owned(session: Session, context: RequestContext, ad_set_id: str) -> AdSet:
    ad_set = get_owned_ad_set(session, context.company_id, ad_set_id)
    if not ad_set:
        raise NotFound("Ad set not found")
    return ad_set


@router.get("")
async def get_ad_sets(
    campanha_id: Optional[str] = Query(None),
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    """List ad sets with their creatives."""
    return [
        {
            **a.model_dump(mode="json"),
            "criativos": [c.model_dump(mode="json") for c in newest_first(a.criativos)],
        }
        for a in list_ad_sets(session, context.company_id, campanha_id)
    ]


@router.post("", status_code=201)
async def post_ad_set(
    body: AdSetCreate,
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    require_fields(nome=body.nome, campanha_id=body.campanha_id)
    if not get_owned_campaign(session, context.company_id, body.campanha_id):  # type: ignore[arg-type]
        raise Forbidden("Campaign not found or no permission")

    ad_set = create_entity(
        session,
        AdSet(
            nome=body.nome.strip(),  # type: ignore[union-attr]
            campanha_id=body.campanha_id,  # type: ignore[arg-type]
            publico=body.publico,
        ),
    )
    return ad_set.model_dump(mode="json")


@router.patch("/{ad_set_id}")
async def patch_ad_set(
    ad_set_id: str,
    body: AdSetUpdate,
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    ad_set = _owned(session, context, ad_set_id)
    return update_entity(session, ad_set, changes_from(body)).model_dump(mode="json")


@router.delete("/{ad_set_id}")
async def delete_ad_set(
    ad_set_id: str,
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    delete_entity(session, _owned(session, context, ad_set_id))
    return deleted(ad_set_id)
