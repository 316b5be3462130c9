from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    String,
    Integer,
    ForeignKey,
    Numeric,
    Text,
    Enum,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockceramique.app.db.base import Base, BigIntPK, UTCDateTime
from stockceramique.app.db.models.core_types import (
    MovementType,
    MovementReferenceType,
    PurchaseRequestStatus,
    PurchaseRequestKind,
    enum_values,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- MASTER DATA ----------
class Supplier(Base):
    __tablename__ = "suppliers"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    nom: Mapped[str] = mapped_column(String(255), nullable=False)
    contact: Mapped[str | None] = mapped_column(String(255))
    telephone: Mapped[str | None] = mapped_column(String(64))
    email: Mapped[str | None] = mapped_column(String(255))
    adresse: Mapped[str | None] = mapped_column(Text)
    conditions_paiement: Mapped[str | None] = mapped_column(String(255))
    delai_livraison: Mapped[int | None] = mapped_column(Integer)  # jours
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("delai_livraison IS NULL OR delai_livraison >= 0", name="ck_supplier_delai_nonneg"),
    )


class Requestor(Base):
    __tablename__ = "requestors"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    nom: Mapped[str] = mapped_column(String(200), nullable=False)
    prenom: Mapped[str] = mapped_column(String(200), nullable=False)
    departement: Mapped[str] = mapped_column(String(200), nullable=False)
    poste: Mapped[str | None] = mapped_column(String(200))
    email: Mapped[str | None] = mapped_column(String(255))
    telephone: Mapped[str | None] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)


class Article(Base):
    __tablename__ = "articles"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    code_article: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    designation: Mapped[str] = mapped_column(String(255), nullable=False)
    categorie: Mapped[str] = mapped_column(String(128), nullable=False)
    marque: Mapped[str | None] = mapped_column(String(128))
    reference: Mapped[str | None] = mapped_column(String(128))
    stock_initial: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # quantité en main : modifiée uniquement par réception / sortie
    stock_actuel: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    unite: Mapped[str] = mapped_column(String(32), default="pcs", nullable=False)
    prix_unitaire: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    seuil_minimum: Mapped[int | None] = mapped_column(Integer, default=10)
    fournisseur_id: Mapped[int | None] = mapped_column(ForeignKey("suppliers.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    fournisseur: Mapped[Supplier | None] = relationship()

    __table_args__ = (
        CheckConstraint("stock_initial >= 0", name="ck_article_stock_initial_nonneg"),
        CheckConstraint("stock_actuel >= 0", name="ck_article_stock_actuel_nonneg"),
        CheckConstraint("prix_unitaire IS NULL OR prix_unitaire >= 0", name="ck_article_prix_nonneg"),
        Index("ix_articles_categorie", "categorie"),
    )


# ---------- PROCUREMENT / INBOUND ----------
class PurchaseRequest(Base):
    __tablename__ = "purchase_requests"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    requestor_id: Mapped[int] = mapped_column(ForeignKey("requestors.id", ondelete="RESTRICT"), nullable=False)
    date_demande: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
    observations: Mapped[str | None] = mapped_column(Text)
    statut: Mapped[PurchaseRequestStatus] = mapped_column(
        Enum(PurchaseRequestStatus, name="purchase_request_status", values_callable=enum_values),
        default=PurchaseRequestStatus.pending,
        nullable=False,
    )

    # forme historique : un seul article
    article_id: Mapped[int | None] = mapped_column(ForeignKey("articles.id", ondelete="RESTRICT"))
    supplier_id: Mapped[int | None] = mapped_column(ForeignKey("suppliers.id", ondelete="RESTRICT"))
    quantite_demandee: Mapped[int | None] = mapped_column(Integer)

    # forme multi-articles
    total_articles: Mapped[int | None] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    requestor: Mapped[Requestor] = relationship()
    items: Mapped[list["PurchaseRequestItem"]] = relationship(
        back_populates="purchase_request",
        cascade="all, delete-orphan",
        order_by="PurchaseRequestItem.id",
    )

    __table_args__ = (
        CheckConstraint("quantite_demandee IS NULL OR quantite_demandee > 0", name="ck_pr_quantite_pos"),
        Index("ix_purchase_requests_statut", "statut"),
    )

    @property
    def kind(self) -> PurchaseRequestKind:
        return PurchaseRequestKind.multi if self.items else PurchaseRequestKind.single


class PurchaseRequestItem(Base):
    __tablename__ = "purchase_request_items"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    purchase_request_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    article_id: Mapped[int] = mapped_column(ForeignKey("articles.id", ondelete="RESTRICT"), nullable=False)
    quantite: Mapped[int] = mapped_column(Integer, nullable=False)
    prix_unitaire: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    supplier_id: Mapped[int | None] = mapped_column(ForeignKey("suppliers.id", ondelete="RESTRICT"))

    purchase_request: Mapped[PurchaseRequest] = relationship(back_populates="items")

    __table_args__ = (CheckConstraint("quantite > 0", name="ck_pr_item_quantite_pos"),)


class Reception(Base):
    __tablename__ = "receptions"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    article_id: Mapped[int] = mapped_column(ForeignKey("articles.id", ondelete="RESTRICT"), nullable=False, index=True)
    supplier_id: Mapped[int] = mapped_column(ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False)
    purchase_request_id: Mapped[int | None] = mapped_column(
        ForeignKey("purchase_requests.id", ondelete="RESTRICT"),
        index=True,
    )
    quantite_recue: Mapped[int] = mapped_column(Integer, nullable=False)
    prix_unitaire: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    numero_bon_livraison: Mapped[str | None] = mapped_column(String(128))
    observations: Mapped[str | None] = mapped_column(Text)
    date_reception: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    __table_args__ = (CheckConstraint("quantite_recue > 0", name="ck_reception_quantite_pos"),)


# ---------- OUTBOUND ----------
class Outbound(Base):
    __tablename__ = "outbounds"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    article_id: Mapped[int] = mapped_column(ForeignKey("articles.id", ondelete="RESTRICT"), nullable=False, index=True)
    requestor_id: Mapped[int] = mapped_column(ForeignKey("requestors.id", ondelete="RESTRICT"), nullable=False)
    quantite_sortie: Mapped[int] = mapped_column(Integer, nullable=False)
    motif_sortie: Mapped[str] = mapped_column(String(255), nullable=False)
    observations: Mapped[str | None] = mapped_column(Text)
    date_sortie: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    __table_args__ = (CheckConstraint("quantite_sortie > 0", name="ck_outbound_quantite_pos"),)


# ---------- INVENTORY ----------
class StockMovement(Base):
    """Ligne du journal de stock. Écrite une fois, jamais modifiée."""

    __tablename__ = "stock_movements"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)

    article_id: Mapped[int] = mapped_column(
        ForeignKey("articles.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    type: Mapped[MovementType] = mapped_column(
        Enum(MovementType, name="movement_type", values_callable=enum_values),
        nullable=False,
    )
    quantite: Mapped[int] = mapped_column(Integer, nullable=False)
    quantite_avant: Mapped[int] = mapped_column(Integer, nullable=False)
    quantite_apres: Mapped[int] = mapped_column(Integer, nullable=False)

    reference: Mapped[str | None] = mapped_column(String(64))
    reference_type: Mapped[MovementReferenceType | None] = mapped_column(
        Enum(MovementReferenceType, name="movement_reference_type", values_callable=enum_values),
    )
    description: Mapped[str | None] = mapped_column(Text)

    date_mouvement: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("quantite > 0", name="ck_stock_movement_qty_pos"),
        CheckConstraint("quantite_apres >= 0", name="ck_stock_movement_after_nonneg"),
        Index("ix_stock_movements_article_time", "article_id", "date_mouvement"),
    )
