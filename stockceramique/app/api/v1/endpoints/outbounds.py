from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from stockceramique.app.api.deps import get_db
from stockceramique.app.db.session import atomic
from stockceramique.app.schemas.movements import OutboundRead
from stockceramique.services import outbounds

router = APIRouter(prefix="/outbounds")


class OutboundCreate(BaseModel):
    article_id: int
    requestor_id: int
    quantite_sortie: int = Field(gt=0)
    motif_sortie: str = Field(min_length=1, max_length=255)
    observations: str | None = None
    date_sortie: datetime | None = None


@router.get("", response_model=list[OutboundRead])
def list_outbounds(db: Session = Depends(get_db)):
    return outbounds.list_outbounds(db)


@router.get("/{outbound_id}", response_model=OutboundRead)
def get_outbound(outbound_id: int, db: Session = Depends(get_db)):
    return outbounds.get_outbound(db, outbound_id)


@router.post("", response_model=OutboundRead, status_code=status.HTTP_201_CREATED)
def create_outbound(payload: OutboundCreate, db: Session = Depends(get_db)):
    """Rejet 400 'Stock insuffisant' si quantite_sortie > stock_actuel."""
    with atomic(db):
        outbound = outbounds.create_outbound(db, **payload.model_dump())
    db.refresh(outbound)
    return outbound
