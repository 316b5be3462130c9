from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockceramique.app.api.bulk_import import import_rows
from stockceramique.app.api.deps import get_db
from stockceramique.app.db.models.models_v1 import Supplier
from stockceramique.app.db.session import atomic
from stockceramique.app.schemas.bulk_import import BulkImportPayload, BulkImportResult
from stockceramique.app.schemas.partners import SupplierRead
from stockceramique.services.exceptions import ConflictError, InvalidInputError, NotFoundError

router = APIRouter(prefix="/suppliers")


class SupplierCreate(BaseModel):
    nom: str = Field(min_length=1, max_length=255)
    contact: str | None = Field(default=None, max_length=255)
    telephone: str | None = Field(default=None, max_length=64)
    email: str | None = Field(default=None, max_length=255)
    adresse: str | None = None
    conditions_paiement: str | None = Field(default=None, max_length=255)
    delai_livraison: int | None = Field(default=None, ge=0)


class SupplierUpdate(SupplierCreate):
    nom: str | None = Field(default=None, min_length=1, max_length=255)


def _get_supplier(db: Session, supplier_id: int) -> Supplier:
    s = db.get(Supplier, supplier_id)
    if not s:
        raise NotFoundError("Fournisseur", supplier_id)
    return s


@router.get("", response_model=list[SupplierRead])
def list_suppliers(db: Session = Depends(get_db)):
    return db.execute(select(Supplier).order_by(Supplier.nom)).scalars().all()


@router.get("/{supplier_id}", response_model=SupplierRead)
def get_supplier(supplier_id: int, db: Session = Depends(get_db)):
    return _get_supplier(db, supplier_id)


@router.post("", response_model=SupplierRead, status_code=status.HTTP_201_CREATED)
def create_supplier(payload: SupplierCreate, db: Session = Depends(get_db)):
    with atomic(db):
        s = Supplier(**payload.model_dump())
        db.add(s)
    db.refresh(s)
    return s


@router.post("/bulk-import", response_model=BulkImportResult)
def bulk_import_suppliers(payload: BulkImportPayload, db: Session = Depends(get_db)):
    def create_row(row):
        db.add(Supplier(**SupplierCreate.model_validate(row).model_dump()))
        db.flush()

    return import_rows(db, payload.data, create_row, label="fournisseurs")


@router.put("/{supplier_id}", response_model=SupplierRead)
def update_supplier(supplier_id: int, payload: SupplierUpdate, db: Session = Depends(get_db)):
    with atomic(db):
        s = _get_supplier(db, supplier_id)
        changes = payload.model_dump(exclude_unset=True)
        if "nom" in changes and changes["nom"] is None:
            raise InvalidInputError("nom ne peut pas être vide")
        for name, value in changes.items():
            setattr(s, name, value)
    db.refresh(s)
    return s


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_supplier(supplier_id: int, db: Session = Depends(get_db)):
    with atomic(db):
        db.delete(_get_supplier(db, supplier_id))
        try:
            db.flush()
        except IntegrityError:
            raise ConflictError(f"Fournisseur {supplier_id} référencé, suppression impossible") from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)
