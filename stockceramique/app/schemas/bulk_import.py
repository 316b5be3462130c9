from typing import Any

from pydantic import BaseModel


class BulkImportPayload(BaseModel):
    data: list[dict[str, Any]]


class BulkImportError(BaseModel):
    row: int
    error: str
    data: dict


class BulkImportResult(BaseModel):
    success: int
    errors: list[BulkImportError]
    total: int
