from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from stockceramique.app.api.deps import get_db
from stockceramique.app.db.session import atomic
from stockceramique.app.schemas.movements import ReceptionRead
from stockceramique.services import procurement

router = APIRouter(prefix="/receptions")


class ReceptionCreate(BaseModel):
    article_id: int
    supplier_id: int
    quantite_recue: int = Field(gt=0)
    prix_unitaire: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    numero_bon_livraison: str | None = Field(default=None, max_length=128)
    observations: str | None = None
    date_reception: datetime | None = None


@router.get("", response_model=list[ReceptionRead])
def list_receptions(db: Session = Depends(get_db)):
    return procurement.list_receptions(db)


@router.get("/{reception_id}", response_model=ReceptionRead)
def get_reception(reception_id: int, db: Session = Depends(get_db)):
    return procurement.get_reception(db, reception_id)


@router.post("", response_model=ReceptionRead, status_code=status.HTTP_201_CREATED)
def create_reception(payload: ReceptionCreate, db: Session = Depends(get_db)):
    with atomic(db):
        reception = procurement.create_reception(db, **payload.model_dump())
    db.refresh(reception)
    return reception
