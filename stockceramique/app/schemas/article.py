from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class ArticleRead(BaseModel):
    id: int
    code_article: str
    designation: str
    categorie: str
    marque: str | None
    reference: str | None
    stock_initial: int
    stock_actuel: int  # READ ONLY : modifié par réceptions / sorties
    unite: str
    prix_unitaire: Decimal | None
    seuil_minimum: int | None
    fournisseur_id: int | None
    created_at: datetime

    class Config:
        from_attributes = True
