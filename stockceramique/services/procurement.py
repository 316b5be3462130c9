"""
Procurement service.

Ce module orchestre les flux d'achat (demandes d'achat, réceptions,
conversion demande -> réception) mais ne contient AUCUNE logique de calcul
de stock.

Toute la logique stock est centralisée dans :
    stockceramique.services.inventory

Cycle de vie d'une demande d'achat :
    en_attente --approve--> approuve --convert--> commande
    en_attente --refuse---> refuse
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from stockceramique.app.db.models.models_v1 import (
    PurchaseRequest,
    PurchaseRequestItem,
    Reception,
    Requestor,
    Supplier,
)
from stockceramique.app.db.models.core_types import (
    MovementReferenceType,
    PurchaseRequestKind,
    PurchaseRequestStatus,
)
from stockceramique.services import inventory
from stockceramique.services.exceptions import (
    ConflictError,
    InvalidInputError,
    InvalidStatusTransitionError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: dict[PurchaseRequestStatus, frozenset[PurchaseRequestStatus]] = {
    PurchaseRequestStatus.pending: frozenset({PurchaseRequestStatus.approved, PurchaseRequestStatus.refused}),
    PurchaseRequestStatus.approved: frozenset({PurchaseRequestStatus.ordered}),
    PurchaseRequestStatus.refused: frozenset(),
    PurchaseRequestStatus.ordered: frozenset(),
}

# Deux lectures "prêtes pour réception" coexistent côté interface :
# - en attente de réception : approuvées, pas encore converties
# - en cours d'achat : approuvées ou déjà commandées (suivi)
AWAITING_RECEPTION_STATUSES = frozenset({PurchaseRequestStatus.approved})
IN_PROCUREMENT_STATUSES = frozenset({PurchaseRequestStatus.approved, PurchaseRequestStatus.ordered})


@dataclass
class PurchaseRequestLine:
    article_id: int
    quantite: int
    prix_unitaire: Decimal | None = None
    supplier_id: int | None = None


@dataclass
class ConversionOverrides:
    quantite_recue: int | None = None
    prix_unitaire: Decimal | None = None
    numero_bon_livraison: str | None = None
    observations: str | None = None
    date_reception: datetime | None = None
    supplier_id: int | None = None


@dataclass
class ConversionLine:
    article_id: int
    supplier_id: int | None
    quantite: int | None
    prix_unitaire: Decimal | None


@dataclass
class ConversionResult:
    purchase_request: PurchaseRequest
    receptions: list[Reception] = field(default_factory=list)

    @property
    def reception(self) -> Reception:
        return self.receptions[0]


# ---------- HELPERS ----------
def _require_supplier(db: Session, supplier_id: int) -> Supplier:
    supplier = db.get(Supplier, supplier_id)
    if not supplier:
        raise NotFoundError("Fournisseur", supplier_id)
    return supplier


def _require_requestor(db: Session, requestor_id: int) -> Requestor:
    requestor = db.get(Requestor, requestor_id)
    if not requestor:
        raise NotFoundError("Demandeur", requestor_id)
    return requestor


def get_purchase_request(db: Session, purchase_request_id: int, *, for_update: bool = False) -> PurchaseRequest:
    stmt = select(PurchaseRequest).where(PurchaseRequest.id == purchase_request_id)
    if for_update:
        stmt = stmt.with_for_update()
    pr = db.execute(stmt).scalar_one_or_none()
    if not pr:
        raise NotFoundError("Demande d'achat", purchase_request_id)
    return pr


# ---------- STATE MACHINE ----------
def ensure_transition(current: PurchaseRequestStatus, target: PurchaseRequestStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransitionError(current.value, target.value)


def apply_transition(pr: PurchaseRequest, target: PurchaseRequestStatus) -> PurchaseRequest:
    try:
        ensure_transition(pr.statut, target)
    except InvalidStatusTransitionError:
        logger.warning("Demande d'achat %s : transition %s -> %s refusée", pr.id, pr.statut.value, target.value)
        raise
    logger.info("Demande d'achat %s : %s -> %s", pr.id, pr.statut.value, target.value)
    pr.statut = target
    return pr


def approve_purchase_request(db: Session, purchase_request_id: int) -> PurchaseRequest:
    pr = get_purchase_request(db, purchase_request_id, for_update=True)
    apply_transition(pr, PurchaseRequestStatus.approved)
    db.flush()
    return pr


def refuse_purchase_request(db: Session, purchase_request_id: int) -> PurchaseRequest:
    pr = get_purchase_request(db, purchase_request_id, for_update=True)
    apply_transition(pr, PurchaseRequestStatus.refused)
    db.flush()
    return pr


# ---------- PURCHASE REQUESTS ----------
def create_purchase_request(
    db: Session,
    *,
    requestor_id: int,
    date_demande: datetime | None = None,
    observations: str | None = None,
    article_id: int | None = None,
    supplier_id: int | None = None,
    quantite_demandee: int | None = None,
    items: Sequence[PurchaseRequestLine] = (),
) -> PurchaseRequest:
    """
    Deux formes exclusives :
    - article unique : article_id + quantite_demandee (+ supplier_id)
    - multi-articles : items (article_id/quantite_demandee interdits)
    supplier_id peut servir de fournisseur par défaut pour les items.
    """
    _require_requestor(db, requestor_id)
    if supplier_id is not None:
        _require_supplier(db, supplier_id)

    if items:
        if article_id is not None or quantite_demandee is not None:
            raise InvalidInputError("Une demande multi-articles ne porte pas d'article_id ni de quantite_demandee")
        for line in items:
            inventory.get_article(db, line.article_id)
            inventory.require_positive_quantity(line.quantite)
            if line.supplier_id is not None:
                _require_supplier(db, line.supplier_id)
    else:
        if article_id is None:
            raise InvalidInputError("article_id requis (ou items pour une demande multi-articles)")
        inventory.get_article(db, article_id)
        inventory.require_positive_quantity(quantite_demandee, "quantite_demandee")

    pr = PurchaseRequest(
        requestor_id=requestor_id,
        observations=observations,
        statut=PurchaseRequestStatus.pending,
        article_id=article_id,
        supplier_id=supplier_id,
        quantite_demandee=quantite_demandee,
        total_articles=len(items) if items else None,
    )
    if date_demande is not None:
        pr.date_demande = date_demande
    for line in items:
        pr.items.append(
            PurchaseRequestItem(
                article_id=line.article_id,
                quantite=line.quantite,
                prix_unitaire=line.prix_unitaire,
                supplier_id=line.supplier_id,
            )
        )
    db.add(pr)
    db.flush()
    logger.info("Demande d'achat %s créée (%s)", pr.id, pr.kind.value)
    return pr


def update_purchase_request(
    db: Session,
    purchase_request_id: int,
    *,
    observations: str | None = None,
    supplier_id: int | None = None,
    quantite_demandee: int | None = None,
) -> PurchaseRequest:
    """Champs descriptifs uniquement, tant que la demande est en attente."""
    pr = get_purchase_request(db, purchase_request_id, for_update=True)
    if pr.statut != PurchaseRequestStatus.pending:
        raise ConflictError(f"Demande d'achat {pr.id} non modifiable (statut {pr.statut.value})")

    if observations is not None:
        pr.observations = observations
    if supplier_id is not None:
        _require_supplier(db, supplier_id)
        pr.supplier_id = supplier_id
    if quantite_demandee is not None:
        if pr.kind == PurchaseRequestKind.multi:
            raise InvalidInputError("quantite_demandee ne s'applique pas à une demande multi-articles")
        pr.quantite_demandee = inventory.require_positive_quantity(quantite_demandee, "quantite_demandee")
    db.flush()
    return pr


def delete_purchase_request(db: Session, purchase_request_id: int) -> None:
    pr = get_purchase_request(db, purchase_request_id, for_update=True)
    if pr.statut == PurchaseRequestStatus.ordered:
        raise ConflictError(f"Demande d'achat {pr.id} déjà convertie en réception")
    db.delete(pr)
    db.flush()


def list_purchase_requests(
    db: Session,
    statuses: frozenset[PurchaseRequestStatus] | None = None,
) -> list[PurchaseRequest]:
    stmt = select(PurchaseRequest).order_by(PurchaseRequest.date_demande.desc(), PurchaseRequest.id.desc())
    if statuses is not None:
        stmt = stmt.where(PurchaseRequest.statut.in_(list(statuses)))
    return list(db.execute(stmt).scalars().all())


def list_awaiting_reception(db: Session) -> list[PurchaseRequest]:
    """Demandes approuvées, pas encore converties."""
    return list_purchase_requests(db, AWAITING_RECEPTION_STATUSES)


def list_in_procurement(db: Session) -> list[PurchaseRequest]:
    """Demandes approuvées ou commandées (suivi des achats)."""
    return list_purchase_requests(db, IN_PROCUREMENT_STATUSES)


# ---------- RECEPTIONS ----------
def create_reception(
    db: Session,
    *,
    article_id: int,
    supplier_id: int,
    quantite_recue: int,
    prix_unitaire: Decimal | None = None,
    numero_bon_livraison: str | None = None,
    observations: str | None = None,
    date_reception: datetime | None = None,
    purchase_request_id: int | None = None,
) -> Reception:
    """Enregistre une réception et l'entrée en stock correspondante."""
    inventory.require_positive_quantity(quantite_recue, "quantite_recue")
    inventory.get_article(db, article_id)
    _require_supplier(db, supplier_id)

    reception = Reception(
        article_id=article_id,
        supplier_id=supplier_id,
        purchase_request_id=purchase_request_id,
        quantite_recue=quantite_recue,
        prix_unitaire=prix_unitaire,
        numero_bon_livraison=numero_bon_livraison,
        observations=observations,
    )
    if date_reception is not None:
        reception.date_reception = date_reception
    db.add(reception)
    db.flush()  # get reception.id

    inventory.receive(
        db,
        article_id=article_id,
        quantity=quantite_recue,
        reference=str(reception.id),
        reference_type=MovementReferenceType.reception,
        description=f"Réception - NBL: {numero_bon_livraison or 'N/A'}",
    )
    logger.info("Réception %s : article %s, quantité %s", reception.id, article_id, quantite_recue)
    return reception


def list_receptions(db: Session) -> list[Reception]:
    return list(
        db.execute(select(Reception).order_by(Reception.date_reception.desc(), Reception.id.desc())).scalars().all()
    )


def get_reception(db: Session, reception_id: int) -> Reception:
    reception = db.get(Reception, reception_id)
    if not reception:
        raise NotFoundError("Réception", reception_id)
    return reception


# ---------- CONVERSION ----------
def conversion_lines(pr: PurchaseRequest, overrides: ConversionOverrides) -> list[ConversionLine]:
    """Réceptions à créer, selon la forme de la demande."""
    if pr.kind == PurchaseRequestKind.multi:
        if overrides.quantite_recue is not None or overrides.prix_unitaire is not None:
            raise InvalidInputError(
                "quantite_recue et prix_unitaire proviennent des lignes d'une demande multi-articles"
            )
        lines = [
            ConversionLine(
                article_id=item.article_id,
                supplier_id=item.supplier_id or pr.supplier_id or overrides.supplier_id,
                quantite=item.quantite,
                prix_unitaire=item.prix_unitaire,
            )
            for item in pr.items
        ]
    else:
        if pr.article_id is None:
            raise InvalidInputError(f"Demande d'achat {pr.id} sans article")
        lines = [
            ConversionLine(
                article_id=pr.article_id,
                supplier_id=overrides.supplier_id or pr.supplier_id,
                quantite=overrides.quantite_recue if overrides.quantite_recue is not None else pr.quantite_demandee,
                prix_unitaire=overrides.prix_unitaire,
            )
        ]

    for line in lines:
        if line.supplier_id is None:
            raise InvalidInputError(f"Fournisseur requis pour l'article {line.article_id}")
        inventory.require_positive_quantity(line.quantite, "quantite_recue")
    return lines


def convert_purchase_request_to_reception(
    db: Session,
    purchase_request_id: int,
    overrides: ConversionOverrides | None = None,
) -> ConversionResult:
    """
    Convertit une demande approuvée en réception(s) puis la passe en 'commande'.

    Tout se fait dans la transaction de l'appelant : si une étape échoue,
    aucune réception, aucun mouvement et aucun changement de statut ne
    subsistent. Une demande déjà 'commande' est rejetée (pas de doublon).
    """
    overrides = overrides or ConversionOverrides()
    pr = get_purchase_request(db, purchase_request_id, for_update=True)

    ensure_transition(pr.statut, PurchaseRequestStatus.ordered)
    lines = conversion_lines(pr, overrides)

    observations = overrides.observations or f"Réception pour demande d'achat {pr.id}"
    receptions = [
        create_reception(
            db,
            article_id=line.article_id,
            supplier_id=line.supplier_id,
            quantite_recue=line.quantite,
            prix_unitaire=line.prix_unitaire,
            numero_bon_livraison=overrides.numero_bon_livraison,
            observations=observations,
            date_reception=overrides.date_reception,
            purchase_request_id=pr.id,
        )
        for line in lines
    ]

    apply_transition(pr, PurchaseRequestStatus.ordered)
    db.flush()
    logger.info("Demande d'achat %s convertie en %s réception(s)", pr.id, len(receptions))
    return ConversionResult(purchase_request=pr, receptions=receptions)
