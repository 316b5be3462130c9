from __future__ import annotations

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from stockceramique.app.api.bulk_import import import_rows
from stockceramique.app.api.deps import get_db
from stockceramique.app.core.config import settings
from stockceramique.app.db.models.models_v1 import (
    Article,
    Outbound,
    PurchaseRequest,
    PurchaseRequestItem,
    Reception,
    StockMovement,
    Supplier,
)
from stockceramique.app.db.session import atomic
from stockceramique.app.schemas.article import ArticleRead
from stockceramique.app.schemas.bulk_import import BulkImportPayload, BulkImportResult
from stockceramique.services import inventory, reporting
from stockceramique.services.exceptions import ConflictError, InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/articles")


class ArticleCreate(BaseModel):
    code_article: str = Field(min_length=1, max_length=64)
    designation: str = Field(min_length=1, max_length=255)
    categorie: str = Field(min_length=1, max_length=128)
    marque: str | None = Field(default=None, max_length=128)
    reference: str | None = Field(default=None, max_length=128)
    stock_initial: int = Field(default=0, ge=0)
    unite: str = Field(default="pcs", min_length=1, max_length=32)
    prix_unitaire: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    seuil_minimum: int | None = Field(default=10, ge=0)
    fournisseur_id: int | None = None


class ArticleUpdate(BaseModel):
    """stock_initial et stock_actuel ne sont pas modifiables ici."""

    code_article: str | None = Field(default=None, min_length=1, max_length=64)
    designation: str | None = Field(default=None, min_length=1, max_length=255)
    categorie: str | None = Field(default=None, min_length=1, max_length=128)
    marque: str | None = Field(default=None, max_length=128)
    reference: str | None = Field(default=None, max_length=128)
    unite: str | None = Field(default=None, min_length=1, max_length=32)
    prix_unitaire: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    seuil_minimum: int | None = Field(default=None, ge=0)
    fournisseur_id: int | None = None


REQUIRED_FIELDS = ("code_article", "designation", "categorie", "unite")


def _ensure_unique_code(db: Session, code_article: str, exclude_id: int | None = None) -> None:
    stmt = select(Article.id).where(Article.code_article == code_article)
    if exclude_id is not None:
        stmt = stmt.where(Article.id != exclude_id)
    if db.execute(stmt).first():
        raise ConflictError(f"Code article {code_article} déjà utilisé")


def _ensure_supplier(db: Session, supplier_id: int | None) -> None:
    if supplier_id is not None and not db.get(Supplier, supplier_id):
        raise NotFoundError("Fournisseur", supplier_id)


def _create_article(db: Session, payload: ArticleCreate) -> Article:
    _ensure_unique_code(db, payload.code_article)
    _ensure_supplier(db, payload.fournisseur_id)

    article = Article(**payload.model_dump(), stock_actuel=payload.stock_initial)
    db.add(article)
    db.flush()
    return article


def _is_referenced(db: Session, article_id: int) -> bool:
    checks = (
        select(Reception.id).where(Reception.article_id == article_id),
        select(Outbound.id).where(Outbound.article_id == article_id),
        select(StockMovement.id).where(StockMovement.article_id == article_id),
        select(PurchaseRequest.id).where(PurchaseRequest.article_id == article_id),
        select(PurchaseRequestItem.id).where(PurchaseRequestItem.article_id == article_id),
    )
    return any(db.scalar(select(exists(stmt))) for stmt in checks)


@router.get("", response_model=list[ArticleRead])
def list_articles(categorie: str | None = None, db: Session = Depends(get_db)):
    stmt = select(Article).order_by(Article.code_article)
    if categorie is not None:
        stmt = stmt.where(Article.categorie == categorie)
    return db.execute(stmt).scalars().all()


@router.get("/low-stock", response_model=list[ArticleRead])
def list_low_stock(db: Session = Depends(get_db)):
    return reporting.list_low_stock_articles(db, default_threshold=settings.DEFAULT_SEUIL_MINIMUM)


@router.post("/bulk-import", response_model=BulkImportResult)
def bulk_import_articles(payload: BulkImportPayload, db: Session = Depends(get_db)):
    return import_rows(
        db,
        payload.data,
        lambda row: _create_article(db, ArticleCreate.model_validate(row)),
        label="articles",
    )


@router.get("/{article_id}", response_model=ArticleRead)
def get_article(article_id: int, db: Session = Depends(get_db)):
    return inventory.get_article(db, article_id)


@router.post("", response_model=ArticleRead, status_code=status.HTTP_201_CREATED)
def create_article(payload: ArticleCreate, db: Session = Depends(get_db)):
    with atomic(db):
        article = _create_article(db, payload)
    db.refresh(article)
    return article


@router.put("/{article_id}", response_model=ArticleRead)
def update_article(article_id: int, payload: ArticleUpdate, db: Session = Depends(get_db)):
    with atomic(db):
        article = inventory.get_article(db, article_id)
        changes = payload.model_dump(exclude_unset=True)
        for name in REQUIRED_FIELDS:
            if name in changes and changes[name] is None:
                raise InvalidInputError(f"{name} ne peut pas être vide")
        if changes.get("code_article"):
            _ensure_unique_code(db, changes["code_article"], exclude_id=article_id)
        if "fournisseur_id" in changes:
            _ensure_supplier(db, changes["fournisseur_id"])
        for name, value in changes.items():
            setattr(article, name, value)
    db.refresh(article)
    return article


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_article(article_id: int, db: Session = Depends(get_db)):
    with atomic(db):
        article = inventory.get_article(db, article_id)
        if _is_referenced(db, article_id):
            raise ConflictError(f"Article {article_id} référencé par l'historique, suppression impossible")
        db.delete(article)
    logger.info("Article %s supprimé", article_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
