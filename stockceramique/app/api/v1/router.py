from fastapi import APIRouter

from stockceramique.app.api.v1.endpoints.health import router as health_router
from stockceramique.app.api.v1.endpoints.articles import router as articles_router
from stockceramique.app.api.v1.endpoints.suppliers import router as suppliers_router
from stockceramique.app.api.v1.endpoints.requestors import router as requestors_router
from stockceramique.app.api.v1.endpoints.purchase_requests import router as purchase_requests_router
from stockceramique.app.api.v1.endpoints.receptions import router as receptions_router
from stockceramique.app.api.v1.endpoints.outbounds import router as outbounds_router
from stockceramique.app.api.v1.endpoints.stock import router as stock_router
from stockceramique.app.api.v1.endpoints.stock_movements import router as stock_movements_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(articles_router, tags=["articles"])
router.include_router(suppliers_router, tags=["suppliers"])
router.include_router(requestors_router, tags=["requestors"])
router.include_router(purchase_requests_router, tags=["purchase_requests"])
router.include_router(receptions_router, tags=["receptions"])
router.include_router(outbounds_router, tags=["outbounds"])
router.include_router(stock_router, tags=["stock"])
router.include_router(stock_movements_router, tags=["stock_movements"])
