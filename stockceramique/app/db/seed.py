from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from stockceramique.app.core.config import settings
from stockceramique.app.core.log_config import configure_logging
from stockceramique.app.db.base import Base
from stockceramique.app.db.session import SessionLocal, engine
from stockceramique.app.db.models.models_v1 import Article, Requestor, Supplier

logger = logging.getLogger(__name__)

DEMO_ARTICLES = [
    {
        "code_article": "CER-CARR-6060",
        "designation": "Carreau grès cérame 60x60 gris",
        "categorie": "Carrelage",
        "unite": "m2",
        "stock_initial": 120,
        "prix_unitaire": Decimal("24.90"),
        "seuil_minimum": 30,
    },
    {
        "code_article": "CER-FAI-3060",
        "designation": "Faïence murale 30x60 blanc",
        "categorie": "Faïence",
        "unite": "m2",
        "stock_initial": 80,
        "prix_unitaire": Decimal("18.50"),
        "seuil_minimum": 20,
    },
    {
        "code_article": "CER-JOINT-5KG",
        "designation": "Mortier joint gris 5 kg",
        "categorie": "Consommables",
        "unite": "sac",
        "stock_initial": 15,
        "prix_unitaire": Decimal("9.80"),
        "seuil_minimum": 10,
    },
]


def run_seed(db: Session | None = None) -> None:
    """Données de démonstration, idempotent (rien n'est recréé s'il existe)."""
    owns_session = db is None
    if owns_session:
        Base.metadata.create_all(bind=engine)
        db = SessionLocal()
    try:
        # 1) Fournisseur
        supplier = db.scalar(select(Supplier).where(Supplier.nom == "Céramiques du Sud"))
        if not supplier:
            supplier = Supplier(
                nom="Céramiques du Sud",
                contact="Service commercial",
                conditions_paiement="30 jours fin de mois",
                delai_livraison=7,
            )
            db.add(supplier)
            db.flush()

        # 2) Demandeur
        if not db.scalar(select(Requestor).where(Requestor.nom == "Atelier", Requestor.prenom == "Pose")):
            db.add(Requestor(nom="Atelier", prenom="Pose", departement="Production", poste="Chef d'équipe"))

        # 3) Articles (stock_actuel = stock_initial à la création)
        for data in DEMO_ARTICLES:
            if db.scalar(select(Article).where(Article.code_article == data["code_article"])):
                continue
            db.add(Article(**data, stock_actuel=data["stock_initial"], fournisseur_id=supplier.id))

        db.commit()
        logger.info("SEED OK: fournisseur, demandeur, %s articles", len(DEMO_ARTICLES))
    finally:
        if owns_session:
            db.close()


if __name__ == "__main__":
    configure_logging(settings.LOG_LEVEL)
    run_seed()
