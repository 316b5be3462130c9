from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stockceramique.app.db.models.models_v1 import Article, PurchaseRequest
from stockceramique.app.db.models.core_types import PurchaseRequestStatus


@dataclass
class DashboardSummary:
    total_articles: int
    low_stock: int
    pending_requests: int
    stock_value: Decimal


def _low_stock_condition(default_threshold: int):
    return Article.stock_actuel <= func.coalesce(Article.seuil_minimum, default_threshold)


def list_low_stock_articles(db: Session, *, default_threshold: int) -> list[Article]:
    """
    Articles dont stock_actuel <= seuil_minimum.
    Sans seuil défini, default_threshold s'applique.
    """
    stmt = (
        select(Article)
        .where(_low_stock_condition(default_threshold))
        .order_by(Article.stock_actuel.asc(), Article.code_article)
    )
    return list(db.execute(stmt).scalars().all())


def dashboard_summary(db: Session, *, default_threshold: int) -> DashboardSummary:
    total_articles = db.scalar(select(func.count()).select_from(Article)) or 0
    low_stock = db.scalar(
        select(func.count()).select_from(Article).where(_low_stock_condition(default_threshold))
    ) or 0
    pending_requests = db.scalar(
        select(func.count())
        .select_from(PurchaseRequest)
        .where(PurchaseRequest.statut == PurchaseRequestStatus.pending)
    ) or 0

    # somme en Python : Numeric n'est pas natif sous SQLite
    stock_value = Decimal("0")
    for prix, stock in db.execute(select(Article.prix_unitaire, Article.stock_actuel)).all():
        if prix is not None:
            stock_value += Decimal(prix) * stock

    return DashboardSummary(
        total_articles=int(total_articles),
        low_stock=int(low_stock),
        pending_requests=int(pending_requests),
        stock_value=stock_value.quantize(Decimal("0.01")),
    )
