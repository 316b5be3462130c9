from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.orm import Session

from stockceramique.app.api.deps import get_db
from stockceramique.app.db.models.core_types import PurchaseRequestStatus
from stockceramique.app.db.session import atomic
from stockceramique.app.schemas.purchase_request import ConversionRead, PurchaseRequestRead
from stockceramique.services import procurement
from stockceramique.services.procurement import ConversionOverrides, PurchaseRequestLine

router = APIRouter(prefix="/purchase-requests")


class PurchaseRequestItemCreate(BaseModel):
    article_id: int
    quantite: int = Field(gt=0)
    prix_unitaire: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    supplier_id: int | None = None


class PurchaseRequestCreate(BaseModel):
    requestor_id: int
    date_demande: datetime | None = None
    observations: str | None = None
    supplier_id: int | None = None
    # forme article unique
    article_id: int | None = None
    quantite_demandee: int | None = Field(default=None, gt=0)
    # forme multi-articles
    items: list[PurchaseRequestItemCreate] = Field(default_factory=list)

    @model_validator(mode="after")
    def _one_form(self):
        if self.items and (self.article_id is not None or self.quantite_demandee is not None):
            raise ValueError("article_id/quantite_demandee et items sont exclusifs")
        if not self.items and (self.article_id is None or self.quantite_demandee is None):
            raise ValueError("article_id et quantite_demandee requis sans items")
        return self


class PurchaseRequestUpdate(BaseModel):
    observations: str | None = None
    supplier_id: int | None = None
    quantite_demandee: int | None = Field(default=None, gt=0)


class ConvertToReception(BaseModel):
    quantite_recue: int | None = Field(default=None, gt=0)
    prix_unitaire: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    numero_bon_livraison: str | None = Field(default=None, max_length=128)
    observations: str | None = None
    date_reception: datetime | None = None
    supplier_id: int | None = None


@router.get("", response_model=list[PurchaseRequestRead])
def list_purchase_requests(statut: PurchaseRequestStatus | None = None, db: Session = Depends(get_db)):
    statuses = frozenset({statut}) if statut is not None else None
    return procurement.list_purchase_requests(db, statuses)


@router.get("/awaiting-reception", response_model=list[PurchaseRequestRead])
def list_awaiting_reception(db: Session = Depends(get_db)):
    """Demandes approuvées, pas encore converties en réception."""
    return procurement.list_awaiting_reception(db)


@router.get("/in-procurement", response_model=list[PurchaseRequestRead])
def list_in_procurement(db: Session = Depends(get_db)):
    """Demandes approuvées ou déjà commandées."""
    return procurement.list_in_procurement(db)


@router.get("/{purchase_request_id}", response_model=PurchaseRequestRead)
def get_purchase_request(purchase_request_id: int, db: Session = Depends(get_db)):
    return procurement.get_purchase_request(db, purchase_request_id)


@router.post("", response_model=PurchaseRequestRead, status_code=status.HTTP_201_CREATED)
def create_purchase_request(payload: PurchaseRequestCreate, db: Session = Depends(get_db)):
    with atomic(db):
        pr = procurement.create_purchase_request(
            db,
            requestor_id=payload.requestor_id,
            date_demande=payload.date_demande,
            observations=payload.observations,
            article_id=payload.article_id,
            supplier_id=payload.supplier_id,
            quantite_demandee=payload.quantite_demandee,
            items=[PurchaseRequestLine(**item.model_dump()) for item in payload.items],
        )
    db.refresh(pr)
    return pr


@router.put("/{purchase_request_id}", response_model=PurchaseRequestRead)
def update_purchase_request(
    purchase_request_id: int,
    payload: PurchaseRequestUpdate,
    db: Session = Depends(get_db),
):
    with atomic(db):
        pr = procurement.update_purchase_request(db, purchase_request_id, **payload.model_dump())
    db.refresh(pr)
    return pr


@router.post("/{purchase_request_id}/approve", response_model=PurchaseRequestRead)
def approve_purchase_request(purchase_request_id: int, db: Session = Depends(get_db)):
    with atomic(db):
        pr = procurement.approve_purchase_request(db, purchase_request_id)
    db.refresh(pr)
    return pr


@router.post("/{purchase_request_id}/refuse", response_model=PurchaseRequestRead)
def refuse_purchase_request(purchase_request_id: int, db: Session = Depends(get_db)):
    with atomic(db):
        pr = procurement.refuse_purchase_request(db, purchase_request_id)
    db.refresh(pr)
    return pr


@router.post(
    "/{purchase_request_id}/convert-to-reception",
    response_model=ConversionRead,
    status_code=status.HTTP_201_CREATED,
)
def convert_to_reception(
    purchase_request_id: int,
    payload: ConvertToReception | None = None,
    db: Session = Depends(get_db),
):
    overrides = ConversionOverrides(**payload.model_dump()) if payload else ConversionOverrides()
    with atomic(db):
        result = procurement.convert_purchase_request_to_reception(db, purchase_request_id, overrides)
    return ConversionRead.model_validate(result)


@router.delete("/{purchase_request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_purchase_request(purchase_request_id: int, db: Session = Depends(get_db)):
    with atomic(db):
        procurement.delete_purchase_request(db, purchase_request_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
