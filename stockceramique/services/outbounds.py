from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from stockceramique.app.db.models.models_v1 import Outbound, Requestor
from stockceramique.app.db.models.core_types import MovementReferenceType
from stockceramique.services import inventory
from stockceramique.services.exceptions import (
    InsufficientStockError,
    InvalidInputError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


def create_outbound(
    db: Session,
    *,
    article_id: int,
    requestor_id: int,
    quantite_sortie: int,
    motif_sortie: str,
    observations: str | None = None,
    date_sortie: datetime | None = None,
) -> Outbound:
    """
    Enregistre une sortie et la décrémentation correspondante.

    Rejet (InsufficientStockError) avant toute écriture si la quantité
    dépasse le stock lu ; l'UPDATE conditionnel d'inventory.issue reste
    l'arbitre final en cas d'accès concurrent.
    """
    inventory.require_positive_quantity(quantite_sortie, "quantite_sortie")
    if not motif_sortie or not motif_sortie.strip():
        raise InvalidInputError("motif_sortie requis")

    article = inventory.get_article(db, article_id)
    if not db.get(Requestor, requestor_id):
        raise NotFoundError("Demandeur", requestor_id)

    if article.stock_actuel < quantite_sortie:
        logger.warning(
            "Sortie refusée pour l'article %s : demandé=%s, disponible=%s",
            article_id,
            quantite_sortie,
            article.stock_actuel,
        )
        raise InsufficientStockError(article_id, quantite_sortie, article.stock_actuel)

    outbound = Outbound(
        article_id=article_id,
        requestor_id=requestor_id,
        quantite_sortie=quantite_sortie,
        motif_sortie=motif_sortie.strip(),
        observations=observations,
    )
    if date_sortie is not None:
        outbound.date_sortie = date_sortie
    db.add(outbound)
    db.flush()  # get outbound.id

    inventory.issue(
        db,
        article_id=article_id,
        quantity=quantite_sortie,
        reference=str(outbound.id),
        reference_type=MovementReferenceType.outbound,
        description=f"Sortie - {outbound.motif_sortie}",
    )
    logger.info("Sortie %s : article %s, quantité %s", outbound.id, article_id, quantite_sortie)
    return outbound


def list_outbounds(db: Session) -> list[Outbound]:
    return list(db.execute(select(Outbound).order_by(Outbound.date_sortie.desc(), Outbound.id.desc())).scalars().all())


def get_outbound(db: Session, outbound_id: int) -> Outbound:
    outbound = db.get(Outbound, outbound_id)
    if not outbound:
        raise NotFoundError("Sortie", outbound_id)
    return outbound
