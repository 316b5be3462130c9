from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockceramique.app.api.deps import get_db
from stockceramique.app.core.config import settings
from stockceramique.app.schemas.movements import StockMovementRead
from stockceramique.app.schemas.stock import (
    ArticleReconciliationRead,
    DashboardSummaryRead,
    ReconciliationReport,
)
from stockceramique.services import inventory, reporting

router = APIRouter(prefix="/stock")


@router.get("/summary", response_model=DashboardSummaryRead)
def get_stock_summary(db: Session = Depends(get_db)):
    summary = reporting.dashboard_summary(db, default_threshold=settings.DEFAULT_SEUIL_MINIMUM)
    return DashboardSummaryRead.model_validate(summary)


@router.get("/reconciliation", response_model=ReconciliationReport)
def get_reconciliation(only_discrepancies: bool = False, db: Session = Depends(get_db)):
    """
    Audit du stock (READ ONLY) :
    - stock_actuel vs stock_initial + somme signée des mouvements
    - lignes du journal dont l'arithmétique avant/après est fausse
    """
    rows = inventory.reconcile_articles(db)
    if only_discrepancies:
        rows = [r for r in rows if not r.coherent]

    return ReconciliationReport(
        articles=[ArticleReconciliationRead.model_validate(r) for r in rows],
        mouvements_incoherents=[
            StockMovementRead.model_validate(m) for m in inventory.find_inconsistent_movements(db)
        ],
    )
