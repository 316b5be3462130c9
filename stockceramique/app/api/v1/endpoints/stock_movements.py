from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from stockceramique.app.api.deps import get_db
from stockceramique.app.core.config import settings
from stockceramique.app.schemas.movements import StockMovementRead
from stockceramique.services import inventory

router = APIRouter(prefix="/stock-movements")


@router.get("", response_model=list[StockMovementRead])
def list_stock_movements(article_id: int | None = None, db: Session = Depends(get_db)):
    """
    Journal (READ ONLY), ordre chronologique.
    Aucune écriture directe : les mouvements naissent des réceptions et sorties.
    """
    return inventory.list_movements(db, article_id)


@router.get("/recent", response_model=list[StockMovementRead])
def list_recent_stock_movements(
    limit: int | None = Query(default=None, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return inventory.list_recent_movements(db, limit or settings.RECENT_MOVEMENTS_LIMIT)
