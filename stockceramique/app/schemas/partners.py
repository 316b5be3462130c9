from datetime import datetime

from pydantic import BaseModel


class SupplierRead(BaseModel):
    id: int
    nom: str
    contact: str | None
    telephone: str | None
    email: str | None
    adresse: str | None
    conditions_paiement: str | None
    delai_livraison: int | None
    created_at: datetime

    class Config:
        from_attributes = True


class RequestorRead(BaseModel):
    id: int
    nom: str
    prenom: str
    departement: str
    poste: str | None
    email: str | None
    telephone: str | None
    created_at: datetime

    class Config:
        from_attributes = True
