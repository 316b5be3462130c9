from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockceramique.app.api.deps import get_db
from stockceramique.app.db.models.models_v1 import Requestor
from stockceramique.app.db.session import atomic
from stockceramique.app.schemas.partners import RequestorRead
from stockceramique.services.exceptions import ConflictError, InvalidInputError, NotFoundError

router = APIRouter(prefix="/requestors")


class RequestorCreate(BaseModel):
    nom: str = Field(min_length=1, max_length=200)
    prenom: str = Field(min_length=1, max_length=200)
    departement: str = Field(min_length=1, max_length=200)
    poste: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=255)
    telephone: str | None = Field(default=None, max_length=64)


class RequestorUpdate(BaseModel):
    nom: str | None = Field(default=None, min_length=1, max_length=200)
    prenom: str | None = Field(default=None, min_length=1, max_length=200)
    departement: str | None = Field(default=None, min_length=1, max_length=200)
    poste: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=255)
    telephone: str | None = Field(default=None, max_length=64)


REQUIRED_FIELDS = ("nom", "prenom", "departement")


def _get_requestor(db: Session, requestor_id: int) -> Requestor:
    r = db.get(Requestor, requestor_id)
    if not r:
        raise NotFoundError("Demandeur", requestor_id)
    return r


@router.get("", response_model=list[RequestorRead])
def list_requestors(db: Session = Depends(get_db)):
    return db.execute(select(Requestor).order_by(Requestor.nom, Requestor.prenom)).scalars().all()


@router.get("/{requestor_id}", response_model=RequestorRead)
def get_requestor(requestor_id: int, db: Session = Depends(get_db)):
    return _get_requestor(db, requestor_id)


@router.post("", response_model=RequestorRead, status_code=status.HTTP_201_CREATED)
def create_requestor(payload: RequestorCreate, db: Session = Depends(get_db)):
    with atomic(db):
        r = Requestor(**payload.model_dump())
        db.add(r)
    db.refresh(r)
    return r


@router.put("/{requestor_id}", response_model=RequestorRead)
def update_requestor(requestor_id: int, payload: RequestorUpdate, db: Session = Depends(get_db)):
    with atomic(db):
        r = _get_requestor(db, requestor_id)
        changes = payload.model_dump(exclude_unset=True)
        for name in REQUIRED_FIELDS:
            if name in changes and changes[name] is None:
                raise InvalidInputError(f"{name} ne peut pas être vide")
        for name, value in changes.items():
            setattr(r, name, value)
    db.refresh(r)
    return r


@router.delete("/{requestor_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_requestor(requestor_id: int, db: Session = Depends(get_db)):
    with atomic(db):
        db.delete(_get_requestor(db, requestor_id))
        try:
            db.flush()
        except IntegrityError:
            raise ConflictError(f"Demandeur {requestor_id} référencé, suppression impossible") from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)
