"""FunilDash — Creative Routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlmodel import Session

from funildash.api.common import changes_from, deleted, require_fields
from funildash.api.deps import get_request_context
from funildash.core.context import RequestContext
from funildash.core.errors import Forbidden, NotFound, ValidationFailed
from funildash.database import get_session
from funildash.models.entity_models import Creative
from funildash.store.entity_store import (
    create_entity,
    delete_entity,
    get_owned_ad_set,
    get_owned_creative,
    list_creatives,
    update_entity,
)

router = APIRouter(prefix="/criativos", tags=["Creatives"])

CREATIVE_TYPES = ("imagem", "video", "carrossel", "texto")


class CreativeCreate(BaseModel):
    """Request body for POST /criativos."""

    nome: Optional[str] = None
    conjunto_id: Optional[str] = None
    tipo: Optional[str] = None
    descricao: Optional[str] = None
    url_destino: Optional[str] = None
    url_midia: Optional[str] = None


class CreativeUpdate(BaseModel):
    """Request body for PATCH /criativos/{id}."""

    nome: Optional[str] = None
    tipo: Optional[str] = None
    descricao: Optional[str] = None
    url_destino: Optional[str] = None
    url_midia: Optional[str] = None
    ativo: Optional[bool] = None


def _check_type(tipo: Optional[str]) -> None:
    if tipo is not None and tipo not in CREATIVE_TYPES:
        raise ValidationFailed(f"tipo must be one of {', '.join(CREATIVE_TYPES)}")


def _owned(session: Session, context: RequestContext, creative_id: str) -> Creative:
    creative = get_owned_creative(session, context.company_id, creative_id)
    if not creative:
        raise NotFound("Creative not found")
    return creative


@router.get("")
async def get_creatives(
    conjunto_id: Optional[str] = Query(None),
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    return [
        c.model_dump(mode="json")
        for c in list_creatives(session, context.company_id, conjunto_id)
    ]


@router.post("", status_code=201)
async def post_creative(
    body: CreativeCreate,
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    require_fields(nome=body.nome, conjunto_id=body.conjunto_id)
    _check_type(body.tipo)
    if not get_owned_ad_set(session, context.company_id, body.conjunto_id):  # type: ignore[arg-type]
        raise Forbidden("Ad set not found or no permission")

    creative = create_entity(
        session,
        Creative(
            nome=body.nome.strip(),  # type: ignore[union-attr]
            conjunto_id=body.conjunto_id,  # type: ignore[arg-type]
            tipo=body.tipo or CREATIVE_TYPES[0],
            descricao=body.descricao,
            url_destino=body.url_destino,
            url_midia=body.url_midia,
        ),
    )
    return creative.model_dump(mode="json")


@router.patch("/{creative_id}")
async def patch_creative(
    creative_id: str,
    body: CreativeUpdate,
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    creative = _owned(session, context, creative_id)
    changes = changes_from(body, required=("nome", "tipo"))
    _check_type(changes.get("tipo"))
    return update_entity(session, creative, changes).model_dump(mode="json")


@router.delete("/{creative_id}")
async def delete_creative(
    creative_id: str,
    context: RequestContext = Depends(get_request_context),
    session: Session = Depends(get_session),
):
    delete_entity(session, _owned(session, context, creative_id))
    return deleted(creative_id)
