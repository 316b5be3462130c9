from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from stockceramique.services.exceptions import (
    ConflictError,
    InconsistentStateError,
    InsufficientStockError,
    InvalidInputError,
    InvalidStatusTransitionError,
    NotFoundError,
    StockCeramiqueError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[StockCeramiqueError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InsufficientStockError: status.HTTP_400_BAD_REQUEST,
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    InvalidStatusTransitionError: status.HTTP_409_CONFLICT,
    ConflictError: status.HTTP_409_CONFLICT,
    InconsistentStateError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: StockCeramiqueError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return status.HTTP_400_BAD_REQUEST


async def domain_error_handler(request: Request, exc: StockCeramiqueError) -> JSONResponse:
    status_code = status_for(exc)
    if isinstance(exc, InconsistentStateError):
        logger.critical("%s %s : %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Erreur inattendue sur %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Erreur interne du serveur"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StockCeramiqueError, domain_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
