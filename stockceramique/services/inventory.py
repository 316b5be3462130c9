"""
Stock des articles et journal des mouvements.

Seul ce module modifie Article.stock_actuel. Chaque mutation :
    1. met à jour le stock par un UPDATE unique (conditionnel pour une sortie)
    2. relit la valeur obtenue (ligne verrouillée par l'UPDATE)
    3. ajoute exactement une ligne StockMovement cohérente avec 1.

L'appelant fournit la transaction (voir app.db.session.atomic) : si l'écriture
du journal échoue, la mise à jour du stock est annulée avec elle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from stockceramique.app.db.models.models_v1 import Article, StockMovement
from stockceramique.app.db.models.core_types import MovementType, MovementReferenceType
from stockceramique.services.exceptions import (
    InconsistentStateError,
    InsufficientStockError,
    InvalidInputError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


@dataclass
class StockMutation:
    article: Article
    movement: StockMovement


@dataclass
class ArticleReconciliation:
    article_id: int
    code_article: str
    stock_initial: int
    stock_actuel: int
    mouvements_net: int

    @property
    def stock_attendu(self) -> int:
        return self.stock_initial + self.mouvements_net

    @property
    def ecart(self) -> int:
        return self.stock_actuel - self.stock_attendu

    @property
    def coherent(self) -> bool:
        return self.ecart == 0


def signed_quantity(movement_type: MovementType, quantity: int) -> int:
    return quantity if movement_type == MovementType.inbound else -quantity


def _signed_quantity_sql():
    return case(
        (StockMovement.type == MovementType.inbound, StockMovement.quantite),
        else_=-StockMovement.quantite,
    )


def require_positive_quantity(quantity: int | None, field: str = "quantite") -> int:
    if quantity is None or quantity <= 0:
        raise InvalidInputError(f"{field} doit être strictement positive")
    return quantity


def get_article(db: Session, article_id: int) -> Article:
    article = db.get(Article, article_id)
    if not article:
        raise NotFoundError("Article", article_id)
    return article


# ---------- MUTATIONS ----------
def receive(
    db: Session,
    *,
    article_id: int,
    quantity: int,
    reference: str | None = None,
    reference_type: MovementReferenceType | None = None,
    description: str | None = None,
) -> StockMutation:
    """Entrée en stock : stock_actuel += quantity, pas de borne haute."""
    require_positive_quantity(quantity)
    article = get_article(db, article_id)

    result = db.execute(
        update(Article)
        .where(Article.id == article_id)
        .values(stock_actuel=Article.stock_actuel + quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.critical("Article %s introuvable pendant une entrée de %s", article_id, quantity)
        raise InconsistentStateError(f"Article {article_id} supprimé pendant la réception")

    return _record(
        db,
        article,
        movement_type=MovementType.inbound,
        quantity=quantity,
        reference=reference,
        reference_type=reference_type,
        description=description,
    )


def issue(
    db: Session,
    *,
    article_id: int,
    quantity: int,
    reference: str | None = None,
    reference_type: MovementReferenceType | None = None,
    description: str | None = None,
) -> StockMutation:
    """
    Sortie de stock : stock_actuel -= quantity si quantity <= stock_actuel.

    Le contrôle de disponibilité et la décrémentation sont un seul UPDATE
    conditionnel ; deux sorties concurrentes ne peuvent pas toutes deux passer
    sur le même stock.
    """
    require_positive_quantity(quantity)
    article = get_article(db, article_id)

    result = db.execute(
        update(Article)
        .where(Article.id == article_id)
        .where(Article.stock_actuel >= quantity)
        .values(stock_actuel=Article.stock_actuel - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.refresh(article)
        logger.warning(
            "Sortie refusée pour l'article %s : demandé=%s, disponible=%s",
            article_id,
            quantity,
            article.stock_actuel,
        )
        raise InsufficientStockError(article_id, quantity, article.stock_actuel)

    return _record(
        db,
        article,
        movement_type=MovementType.outbound,
        quantity=quantity,
        reference=reference,
        reference_type=reference_type,
        description=description,
    )


def _record(
    db: Session,
    article: Article,
    *,
    movement_type: MovementType,
    quantity: int,
    reference: str | None,
    reference_type: MovementReferenceType | None,
    description: str | None,
) -> StockMutation:
    db.refresh(article)
    quantite_apres = article.stock_actuel
    quantite_avant = quantite_apres - signed_quantity(movement_type, quantity)

    movement = append_movement(
        db,
        article_id=article.id,
        movement_type=movement_type,
        quantity=quantity,
        quantite_avant=quantite_avant,
        quantite_apres=quantite_apres,
        reference=reference,
        reference_type=reference_type,
        description=description,
    )
    logger.info(
        "Stock article %s (%s) : %s %s -> %s",
        article.id,
        article.code_article,
        movement_type.value,
        quantite_avant,
        quantite_apres,
    )
    return StockMutation(article=article, movement=movement)


# ---------- JOURNAL ----------
def append_movement(
    db: Session,
    *,
    article_id: int,
    movement_type: MovementType,
    quantity: int,
    quantite_avant: int,
    quantite_apres: int,
    reference: str | None = None,
    reference_type: MovementReferenceType | None = None,
    description: str | None = None,
) -> StockMovement:
    """
    Ajoute une ligne au journal. Ne dépend pas de l'état du journal :
    seule l'arithmétique avant/après est contrôlée.
    """
    require_positive_quantity(quantity)
    if quantite_apres != quantite_avant + signed_quantity(movement_type, quantity):
        logger.critical(
            "Mouvement incohérent pour l'article %s : %s %s, avant=%s, après=%s",
            article_id,
            movement_type.value,
            quantity,
            quantite_avant,
            quantite_apres,
        )
        raise InconsistentStateError(
            f"Mouvement incohérent pour l'article {article_id} "
            f"({quantite_avant} -> {quantite_apres} pour {movement_type.value} {quantity})"
        )

    movement = StockMovement(
        article_id=article_id,
        type=movement_type,
        quantite=quantity,
        quantite_avant=quantite_avant,
        quantite_apres=quantite_apres,
        reference=reference,
        reference_type=reference_type,
        description=description,
    )
    db.add(movement)
    db.flush()
    return movement


def list_movements(db: Session, article_id: int | None = None) -> list[StockMovement]:
    """Mouvements en ordre chronologique (date, puis ordre d'écriture)."""
    stmt = select(StockMovement).order_by(StockMovement.date_mouvement.asc(), StockMovement.id.asc())
    if article_id is not None:
        stmt = stmt.where(StockMovement.article_id == article_id)
    return list(db.execute(stmt).scalars().all())


def list_recent_movements(db: Session, limit: int) -> list[StockMovement]:
    stmt = (
        select(StockMovement)
        .order_by(StockMovement.date_mouvement.desc(), StockMovement.id.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


# ---------- RÉCONCILIATION ----------
def reconcile_articles(
    db: Session,
    article_ids: Iterable[int] | None = None,
) -> list[ArticleReconciliation]:
    """
    Compare stock_actuel à stock_initial + somme signée des mouvements.

    Règle :
        stock_actuel == stock_initial + SUM(entree) - SUM(sortie)
    """
    net = (
        select(
            StockMovement.article_id,
            func.coalesce(func.sum(_signed_quantity_sql()), 0).label("net"),
        )
        .group_by(StockMovement.article_id)
        .subquery()
    )

    stmt = (
        select(Article, func.coalesce(net.c.net, 0))
        .outerjoin(net, net.c.article_id == Article.id)
        .order_by(Article.code_article)
    )
    if article_ids is not None:
        ids = sorted({int(aid) for aid in article_ids})
        stmt = stmt.where(Article.id.in_(ids))

    return [
        ArticleReconciliation(
            article_id=article.id,
            code_article=article.code_article,
            stock_initial=article.stock_initial,
            stock_actuel=article.stock_actuel,
            mouvements_net=int(net_qty),
        )
        for article, net_qty in db.execute(stmt).all()
    ]


def find_inconsistent_movements(db: Session) -> list[StockMovement]:
    """Lignes dont quantite_apres != quantite_avant +/- quantite."""
    stmt = (
        select(StockMovement)
        .where(StockMovement.quantite_apres != StockMovement.quantite_avant + _signed_quantity_sql())
        .order_by(StockMovement.id)
    )
    return list(db.execute(stmt).scalars().all())
