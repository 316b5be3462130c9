from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from stockceramique.app.db.models.core_types import PurchaseRequestKind, PurchaseRequestStatus
from stockceramique.app.schemas.movements import ReceptionRead


class PurchaseRequestItemRead(BaseModel):
    id: int
    article_id: int
    quantite: int
    prix_unitaire: Decimal | None
    supplier_id: int | None

    class Config:
        from_attributes = True


class PurchaseRequestRead(BaseModel):
    id: int
    kind: PurchaseRequestKind
    requestor_id: int
    date_demande: datetime
    observations: str | None
    statut: PurchaseRequestStatus
    article_id: int | None
    supplier_id: int | None
    quantite_demandee: int | None
    total_articles: int | None
    items: list[PurchaseRequestItemRead]
    created_at: datetime

    class Config:
        from_attributes = True


class ConversionRead(BaseModel):
    reception: ReceptionRead
    receptions: list[ReceptionRead]
    purchase_request: PurchaseRequestRead

    class Config:
        from_attributes = True
