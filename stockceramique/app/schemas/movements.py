from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from stockceramique.app.db.models.core_types import MovementType, MovementReferenceType


class ReceptionRead(BaseModel):
    id: int
    article_id: int
    supplier_id: int
    purchase_request_id: int | None
    quantite_recue: int
    prix_unitaire: Decimal | None
    numero_bon_livraison: str | None
    observations: str | None
    date_reception: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class OutboundRead(BaseModel):
    id: int
    article_id: int
    requestor_id: int
    quantite_sortie: int
    motif_sortie: str
    observations: str | None
    date_sortie: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class StockMovementRead(BaseModel):
    id: int
    article_id: int
    type: MovementType
    quantite: int
    quantite_avant: int
    quantite_apres: int
    reference: str | None
    reference_type: MovementReferenceType | None
    description: str | None
    date_mouvement: datetime

    class Config:
        from_attributes = True
