"""FunilDash — Funnel Routes."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from funildash.api.common import changes_from, deleted, require_fields
from funildash.api.deps import get_request_context
from funildash.core.context import RequestContext
from funildash.core.errors import NotFound
from funildash.core.logging import get_logger
from funildash.database import get_session
from funildash.models.entity_models import Funnel
from funildash.store.entity_store import (
    create_entity,
    delete_entity,
    get_owned_funnel,
    list_funnels,
    newest_first,
    update_entity,
)

logger = get_logger("api.funnels")

router = APIRouter(prefix="/funis", tags=["Funnels"])


# ── Request Models ──


class FunnelCreate(BaseModel):
    """Request body for POST /funis."""

    nome: Optional[str] = None
    descricao: Optional[str] = None


class FunnelUpdate(BaseModel):
    """Request body for PATCH /funis/{id}."""

    nome: Optional[str] = None
    descricao: Optional[str] = None
    ativo: Optional[bool] = None


def _funnel_payload(funnel: Funnel) -> dict:
    return {
        **funnel.model_dump(mode="json"),
        "campanhas": [c.model_dump(mode="json") for c in newest_first(funnel.campanhas)],
    }


def _owned(session: Session, context: RequestContext, funnel_id: str) -> Funnel:
    funnel = get_owned_funnel(session, context.company_id, funnel_id)
    if not funnel:
        raise NotFound("Funnel not found")
    return funnel


# ── Endpoints ──


@router.get("")
async def get_funnels(
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    """List the company's funnels with their campaigns, newest first."""
    return [_funnel_payload(f) for f in list_funnels(session, context.company_id)]


@router.post("", status_code=201)
async def post_funnel(
    body: FunnelCreate,
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    """Create a funnel for the caller's company."""
    require_fields(nome=body.nome)
    funnel = create_entity(
        session,
        Funnel(
            empresa_id=context.company_id,
            nome=body.nome.strip(),  # type: ignore[union-attr]
            descricao=body.descricao,
        ),
    )
    logger.info("Funnel created", extra={"company_id": context.company_id, "entity_id": funnel.id})
    return funnel.model_dump(mode="json")


@router.patch("/{funnel_id}")
async def patch_funnel(
    funnel_id: str,
    body: FunnelUpdate,
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    funnel = _owned(session, context, funnel_id)
    return update_entity(session, funnel, changes_from(body)).model_dump(mode="json")


@router.delete("/{funnel_id}")
async def delete_funnel(
    funnel_id: str,
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    """Delete a funnel together with its campaigns, ad sets and creatives."""
    delete_entity(session, _owned(session, context, funnel_id))
    return deleted(funnel_id)
