"""FunilDash — Domain Entity Models.

Company → Funnel → Campaign → Ad Set → Creative. Table and column names
follow the deployed schema (``empresas``, ``funis``, ``campanhas``,
``conjuntos_anuncio``, ``criativos``, ``usuarios``).
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field, Relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


_CASCADE = {"cascade": "all, delete-orphan"}


class Company(SQLModel, table=True):
    """Tenant boundary. Owns funnels and users."""

    __tablename__ = "empresas"

    id: str = Field(default_factory=_new_id, primary_key=True)
    nome: str
    created_at: datetime = Field(default_factory=_utcnow)

    funis: List["Funnel"] = Relationship(
        back_populates="empresa", sa_relationship_kwargs=_CASCADE
    )


class User(SQLModel, table=True):
    """A login, keyed by the identity provider's user id."""

    __tablename__ = "usuarios"

    id: str = Field(primary_key=True, description="Identity provider user id")
    empresa_id: str = Field(foreign_key="empresas.id", index=True)
    nome: str = ""
    email: str = ""
    created_at: datetime = Field(default_factory=_utcnow)


class Funnel(SQLModel, table=True):
    __tablename__ = "funis"

    id: str = Field(default_factory=_new_id, primary_key=True)
    empresa_id: str = Field(foreign_key="empresas.id", index=True)
    nome: str
    descricao: Optional[str] = None
    ativo: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    empresa: Optional[Company] = Relationship(back_populates="funis")
    campanhas: List["Campaign"] = Relationship(
        back_populates="funil", sa_relationship_kwargs=_CASCADE
    )


class Campaign(SQLModel, table=True):
    __tablename__ = "campanhas"

    id: str = Field(default_factory=_new_id, primary_key=True)
    funil_id: str = Field(foreign_key="funis.id", index=True)
    nome: str
    tipo: str = Field(default="leads", description="leads | vendas | trafego ...")
    plataforma: str = Field(default="Meta Ads", description="Free text")
    ativo: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    funil: Optional[Funnel] = Relationship(back_populates="campanhas")
    conjuntos: List["AdSet"] = Relationship(
        back_populates="campanha", sa_relationship_kwargs=_CASCADE
    )


class AdSet(SQLModel, table=True):
    __tablename__ = "conjuntos_anuncio"

    id: str = Field(default_factory=_new_id, primary_key=True)
    campanha_id: str = Field(foreign_key="campanhas.id", index=True)
    nome: str
    publico: Optional[str] = Field(default=None, description="Audience descriptor")
    ativo: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    campanha: Optional[Campaign] = Relationship(back_populates="conjuntos")
    criativos: List["Creative"] = Relationship(
        back_populates="conjunto", sa_relationship_kwargs=_CASCADE
    )


class Creative(SQLModel, table=True):
    __tablename__ = "criativos"

    id: str = Field(default_factory=_new_id, primary_key=True)
    conjunto_id: str = Field(foreign_key="conjuntos_anuncio.id", index=True)
    nome: str
    tipo: str = Field(default="imagem", description="imagem | video | carrossel | texto")
    descricao: Optional[str] = None
    url_destino: Optional[str] = None
    url_midia: Optional[str] = None
    ativo: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    conjunto: Optional[AdSet] = Relationship(back_populates="criativos")
