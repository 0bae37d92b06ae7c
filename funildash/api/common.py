"""FunilDash — Helpers shared by the CRUD routers."""

from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel

from funildash.core.errors import ValidationFailed

NON_NULLABLE = ("ativo",)


def require_fields(**fields: Optional[str]) -> None:
    """Raise ValidationFailed naming every blank required field."""
    missing = [name for name, value in fields.items() if not (value or "").strip()]
    if missing:
        raise ValidationFailed(f"Fields {', '.join(missing)} are required")


def changes_from(body: BaseModel, required: Iterable[str] = ("nome",)) -> Dict[str, Any]:
    """Fields explicitly sent in a PATCH body.

    Required text fields may be omitted but not blanked. An explicit null on a
    non-nullable column is ignored.
    """
    changes = body.model_dump(exclude_unset=True)
    for name in required:
        if name in changes:
            require_fields(**{name: changes[name]})
    return {
        k: v for k, v in changes.items() if not (v is None and k in NON_NULLABLE)
    }


def deleted(entity_id: str) -> Dict[str, str]:
    return {"status": "deleted", "id": entity_id}
