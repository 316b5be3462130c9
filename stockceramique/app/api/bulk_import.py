from __future__ import annotations

import logging
from typing import Any, Callable

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockceramique.app.schemas.bulk_import import BulkImportError, BulkImportResult
from stockceramique.services.exceptions import StockCeramiqueError

logger = logging.getLogger(__name__)

INTEGRITY_ERROR_MESSAGE = "contrainte d'intégrité violée"


def import_rows(
    db: Session,
    rows: list[dict[str, Any]],
    create_row: Callable[[dict[str, Any]], Any],
    label: str,
) -> BulkImportResult:
    """
    Import ligne à ligne : une ligne invalide n'empêche pas les autres.
    Chaque ligne s'exécute dans un SAVEPOINT ; le tout est commité à la fin.
    Les numéros de ligne commencent à 1.
    """
    success = 0
    errors: list[BulkImportError] = []

    for index, row in enumerate(rows, start=1):
        try:
            with db.begin_nested():
                create_row(row)
            success += 1
        except ValidationError as exc:
            errors.append(BulkImportError(row=index, error=str(exc.errors()[0]["msg"]), data=row))
        except StockCeramiqueError as exc:
            errors.append(BulkImportError(row=index, error=exc.message, data=row))
        except IntegrityError as exc:
            # le détail SQL reste dans les logs
            logger.warning("Import %s, ligne %s rejetée : %s", label, index, exc.orig)
            errors.append(BulkImportError(row=index, error=INTEGRITY_ERROR_MESSAGE, data=row))

    db.commit()
    logger.info("Import %s : %s/%s lignes importées", label, success, len(rows))
    return BulkImportResult(success=success, errors=errors, total=len(rows))
