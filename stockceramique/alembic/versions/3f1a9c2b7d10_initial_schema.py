"""initial schema: articles, partenaires, achats, réceptions, sorties, journal

Revision ID: 3f1a9c2b7d10
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1a9c2b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PK = sa.BigInteger().with_variant(sa.Integer(), "sqlite")
FK = sa.BigInteger()

PR_STATUS = sa.Enum("en_attente", "approuve", "refuse", "commande", name="purchase_request_status")
MOVEMENT_TYPE = sa.Enum("entree", "sortie", name="movement_type")
MOVEMENT_REFERENCE_TYPE = sa.Enum("reception", "sortie", name="movement_reference_type")


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    op.create_table(
        "suppliers",
        sa.Column("id", PK, primary_key=True),
        sa.Column("nom", sa.String(255), nullable=False),
        sa.Column("contact", sa.String(255)),
        sa.Column("telephone", sa.String(64)),
        sa.Column("email", sa.String(255)),
        sa.Column("adresse", sa.Text()),
        sa.Column("conditions_paiement", sa.String(255)),
        sa.Column("delai_livraison", sa.Integer()),
        _created_at(),
        sa.CheckConstraint("delai_livraison IS NULL OR delai_livraison >= 0", name="ck_supplier_delai_nonneg"),
    )

    op.create_table(
        "requestors",
        sa.Column("id", PK, primary_key=True),
        sa.Column("nom", sa.String(200), nullable=False),
        sa.Column("prenom", sa.String(200), nullable=False),
        sa.Column("departement", sa.String(200), nullable=False),
        sa.Column("poste", sa.String(200)),
        sa.Column("email", sa.String(255)),
        sa.Column("telephone", sa.String(64)),
        _created_at(),
    )

    op.create_table(
        "articles",
        sa.Column("id", PK, primary_key=True),
        sa.Column("code_article", sa.String(64), nullable=False, unique=True),
        sa.Column("designation", sa.String(255), nullable=False),
        sa.Column("categorie", sa.String(128), nullable=False),
        sa.Column("marque", sa.String(128)),
        sa.Column("reference", sa.String(128)),
        sa.Column("stock_initial", sa.Integer(), nullable=False),
        sa.Column("stock_actuel", sa.Integer(), nullable=False),
        sa.Column("unite", sa.String(32), nullable=False),
        sa.Column("prix_unitaire", sa.Numeric(10, 2)),
        sa.Column("seuil_minimum", sa.Integer()),
        sa.Column("fournisseur_id", FK, sa.ForeignKey("suppliers.id", ondelete="SET NULL")),
        _created_at(),
        sa.CheckConstraint("stock_initial >= 0", name="ck_article_stock_initial_nonneg"),
        sa.CheckConstraint("stock_actuel >= 0", name="ck_article_stock_actuel_nonneg"),
        sa.CheckConstraint("prix_unitaire IS NULL OR prix_unitaire >= 0", name="ck_article_prix_nonneg"),
    )
    op.create_index("ix_articles_categorie", "articles", ["categorie"])

    op.create_table(
        "purchase_requests",
        sa.Column("id", PK, primary_key=True),
        sa.Column("requestor_id", FK, sa.ForeignKey("requestors.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("date_demande", sa.DateTime(timezone=True), nullable=False),
        sa.Column("observations", sa.Text()),
        sa.Column("statut", PR_STATUS, nullable=False),
        sa.Column("article_id", FK, sa.ForeignKey("articles.id", ondelete="RESTRICT")),
        sa.Column("supplier_id", FK, sa.ForeignKey("suppliers.id", ondelete="RESTRICT")),
        sa.Column("quantite_demandee", sa.Integer()),
        sa.Column("total_articles", sa.Integer()),
        _created_at(),
        sa.CheckConstraint("quantite_demandee IS NULL OR quantite_demandee > 0", name="ck_pr_quantite_pos"),
    )
    op.create_index("ix_purchase_requests_statut", "purchase_requests", ["statut"])

    op.create_table(
        "purchase_request_items",
        sa.Column("id", PK, primary_key=True),
        sa.Column(
            "purchase_request_id",
            FK,
            sa.ForeignKey("purchase_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("article_id", FK, sa.ForeignKey("articles.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantite", sa.Integer(), nullable=False),
        sa.Column("prix_unitaire", sa.Numeric(10, 2)),
        sa.Column("supplier_id", FK, sa.ForeignKey("suppliers.id", ondelete="RESTRICT")),
        sa.CheckConstraint("quantite > 0", name="ck_pr_item_quantite_pos"),
    )
    op.create_index(
        "ix_purchase_request_items_purchase_request_id",
        "purchase_request_items",
        ["purchase_request_id"],
    )

    op.create_table(
        "receptions",
        sa.Column("id", PK, primary_key=True),
        sa.Column("article_id", FK, sa.ForeignKey("articles.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("supplier_id", FK, sa.ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("purchase_request_id", FK, sa.ForeignKey("purchase_requests.id", ondelete="RESTRICT")),
        sa.Column("quantite_recue", sa.Integer(), nullable=False),
        sa.Column("prix_unitaire", sa.Numeric(10, 2)),
        sa.Column("numero_bon_livraison", sa.String(128)),
        sa.Column("observations", sa.Text()),
        sa.Column("date_reception", sa.DateTime(timezone=True), nullable=False),
        _created_at(),
        sa.CheckConstraint("quantite_recue > 0", name="ck_reception_quantite_pos"),
    )
    op.create_index("ix_receptions_article_id", "receptions", ["article_id"])
    op.create_index("ix_receptions_purchase_request_id", "receptions", ["purchase_request_id"])

    op.create_table(
        "outbounds",
        sa.Column("id", PK, primary_key=True),
        sa.Column("article_id", FK, sa.ForeignKey("articles.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("requestor_id", FK, sa.ForeignKey("requestors.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantite_sortie", sa.Integer(), nullable=False),
        sa.Column("motif_sortie", sa.String(255), nullable=False),
        sa.Column("observations", sa.Text()),
        sa.Column("date_sortie", sa.DateTime(timezone=True), nullable=False),
        _created_at(),
        sa.CheckConstraint("quantite_sortie > 0", name="ck_outbound_quantite_pos"),
    )
    op.create_index("ix_outbounds_article_id", "outbounds", ["article_id"])

    op.create_table(
        "stock_movements",
        sa.Column("id", PK, primary_key=True),
        sa.Column("article_id", FK, sa.ForeignKey("articles.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("type", MOVEMENT_TYPE, nullable=False),
        sa.Column("quantite", sa.Integer(), nullable=False),
        sa.Column("quantite_avant", sa.Integer(), nullable=False),
        sa.Column("quantite_apres", sa.Integer(), nullable=False),
        sa.Column("reference", sa.String(64)),
        sa.Column("reference_type", MOVEMENT_REFERENCE_TYPE),
        sa.Column("description", sa.Text()),
        sa.Column("date_mouvement", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("quantite > 0", name="ck_stock_movement_qty_pos"),
        sa.CheckConstraint("quantite_apres >= 0", name="ck_stock_movement_after_nonneg"),
    )
    op.create_index("ix_stock_movements_article_id", "stock_movements", ["article_id"])
    op.create_index("ix_stock_movements_article_time", "stock_movements", ["article_id", "date_mouvement"])


def downgrade() -> None:
    op.drop_table("stock_movements")
    op.drop_table("outbounds")
    op.drop_table("receptions")
    op.drop_table("purchase_request_items")
    op.drop_table("purchase_requests")
    op.drop_table("articles")
    op.drop_table("requestors")
    op.drop_table("suppliers")

    bind = op.get_bind()
    for enum_type in (MOVEMENT_REFERENCE_TYPE, MOVEMENT_TYPE, PR_STATUS):
        enum_type.drop(bind, checkfirst=True)
