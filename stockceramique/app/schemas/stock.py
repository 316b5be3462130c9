from decimal import Decimal

from pydantic import BaseModel

from stockceramique.app.schemas.movements import StockMovementRead


class DashboardSummaryRead(BaseModel):
    total_articles: int
    low_stock: int
    pending_requests: int
    stock_value: Decimal

    class Config:
        from_attributes = True


class ArticleReconciliationRead(BaseModel):
    article_id: int
    code_article: str
    stock_initial: int
    stock_actuel: int
    mouvements_net: int
    stock_attendu: int  # stock_initial + somme signée des mouvements
    ecart: int
    coherent: bool

    class Config:
        from_attributes = True


class ReconciliationReport(BaseModel):
    articles: list[ArticleReconciliationRead]
    mouvements_incoherents: list[StockMovementRead]
