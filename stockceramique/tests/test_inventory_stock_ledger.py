from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select, update

from stockceramique.app.db.models.core_types import MovementReferenceType, MovementType
from stockceramique.app.db.models.models_v1 import Article, Outbound, Reception, StockMovement
from stockceramique.app.db.session import atomic
from stockceramique.services import inventory
from stockceramique.services.exceptions import (
    InconsistentStateError,
    InsufficientStockError,
    InvalidInputError,
    NotFoundError,
)
from stockceramique.services.outbounds import create_outbound
from stockceramique.services.procurement import create_reception


def _movement_count(db_session, article_id=None) -> int:
    stmt = select(func.count()).select_from(StockMovement)
    if article_id is not None:
        stmt = stmt.where(StockMovement.article_id == article_id)
    return db_session.scalar(stmt)


def test_outbound_then_overdraw_is_rejected(db_session, make_article, requestor):
    """
    GIVEN
    - article A : stock_actuel = 10, seuil_minimum = 5
    - sortie de 7 ("Maintenance") puis sortie de 5 ("Test")

    THEN
    - stock 10 -> 3, un mouvement sortie (7, avant 10, après 3)
    - la 2e sortie échoue : stock reste 3, aucun mouvement ajouté
    """
    # ---------- ARRANGE ----------
    article = make_article(stock_initial=10, seuil_minimum=5)

    # ---------- ACT ----------
    with atomic(db_session):
        outbound = create_outbound(
            db_session,
            article_id=article.id,
            requestor_id=requestor.id,
            quantite_sortie=7,
            motif_sortie="Maintenance",
        )

    # ---------- ASSERT ----------
    db_session.refresh(article)
    assert article.stock_actuel == 3

    movements = inventory.list_movements(db_session, article.id)
    assert len(movements) == 1
    m = movements[0]
    assert m.type == MovementType.outbound
    assert (m.quantite, m.quantite_avant, m.quantite_apres) == (7, 10, 3)
    assert m.reference == str(outbound.id)
    assert m.reference_type == MovementReferenceType.outbound
    assert m.description == "Sortie - Maintenance"

    with pytest.raises(InsufficientStockError) as excinfo:
        with atomic(db_session):
            create_outbound(
                db_session,
                article_id=article.id,
                requestor_id=requestor.id,
                quantite_sortie=5,
                motif_sortie="Test",
            )
    assert excinfo.value.available == 3
    assert "Stock insuffisant" in str(excinfo.value)

    db_session.refresh(article)
    assert article.stock_actuel == 3
    assert _movement_count(db_session, article.id) == 1
    assert db_session.scalar(select(func.count()).select_from(Outbound)) == 1


def test_reception_increments_stock_and_appends_inbound(db_session, make_article, supplier):
    """
    GIVEN
    - article A : stock_actuel = 3
    - réception de 20 à 5.50

    THEN
    - stock_actuel = 23, un mouvement entree (20, avant 3, après 23)
    """
    # ---------- ARRANGE ----------
    article = make_article(stock_initial=3)

    # ---------- ACT ----------
    with atomic(db_session):
        reception = create_reception(
            db_session,
            article_id=article.id,
            supplier_id=supplier.id,
            quantite_recue=20,
            prix_unitaire=Decimal("5.50"),
        )

    # ---------- ASSERT ----------
    db_session.refresh(article)
    assert article.stock_actuel == 23

    movements = inventory.list_movements(db_session, article.id)
    assert len(movements) == 1
    m = movements[0]
    assert m.type == MovementType.inbound
    assert (m.quantite, m.quantite_avant, m.quantite_apres) == (20, 3, 23)
    assert m.reference == str(reception.id)
    assert m.reference_type == MovementReferenceType.reception
    assert m.description == "Réception - NBL: N/A"


def test_conservation_and_ledger_arithmetic_after_mixed_sequence(db_session, make_article):
    """
    GIVEN
    - deux articles, une suite d'entrées et de sorties (dont des refus)

    THEN
    - stock_actuel == stock_initial + somme signée des mouvements
    - chaque ligne : après == avant +/- quantite
    - stock jamais négatif
    """
    a = make_article(stock_initial=5)
    b = make_article(stock_initial=0)

    operations = [
        (a, "receive", 12),
        (b, "receive", 4),
        (a, "issue", 9),
        (b, "issue", 5),  # refusée
        (a, "issue", 8),
        (a, "issue", 1),  # refusée (stock 0)
        (b, "issue", 4),
        (a, "receive", 2),
    ]
    for article, op, qty in operations:
        try:
            with atomic(db_session):
                getattr(inventory, op)(db_session, article_id=article.id, quantity=qty)
        except InsufficientStockError:
            pass

    for article in (a, b):
        db_session.refresh(article)
        assert article.stock_actuel >= 0

    assert a.stock_actuel == 2
    assert b.stock_actuel == 0
    assert _movement_count(db_session) == 6

    for row in inventory.reconcile_articles(db_session):
        assert row.coherent, row

    for m in inventory.list_movements(db_session):
        assert m.quantite_apres == m.quantite_avant + inventory.signed_quantity(m.type, m.quantite)
        assert m.quantite_apres >= 0
    assert inventory.find_inconsistent_movements(db_session) == []


def test_issue_more_than_available_leaves_no_trace(db_session, make_article):
    article = make_article(stock_initial=4)

    with pytest.raises(InsufficientStockError):
        with atomic(db_session):
            inventory.issue(db_session, article_id=article.id, quantity=5)

    db_session.refresh(article)
    assert article.stock_actuel == 4
    assert _movement_count(db_session) == 0


def test_issue_exact_stock_reaches_zero(db_session, make_article):
    article = make_article(stock_initial=6)

    with atomic(db_session):
        mutation = inventory.issue(db_session, article_id=article.id, quantity=6)

    assert mutation.article.stock_actuel == 0
    assert mutation.movement.quantite_apres == 0


@pytest.mark.parametrize("quantity", [0, -3])
def test_non_positive_quantity_rejected_before_any_write(db_session, make_article, quantity):
    article = make_article(stock_initial=10)

    for op in (inventory.receive, inventory.issue):
        with pytest.raises(InvalidInputError):
            with atomic(db_session):
                op(db_session, article_id=article.id, quantity=quantity)

    db_session.refresh(article)
    assert article.stock_actuel == 10
    assert _movement_count(db_session) == 0


def test_unknown_article_is_not_found(db_session):
    with pytest.raises(NotFoundError):
        with atomic(db_session):
            inventory.receive(db_session, article_id=999, quantity=1)

    with pytest.raises(NotFoundError):
        with atomic(db_session):
            inventory.issue(db_session, article_id=999, quantity=1)


def test_outbound_validation_happens_before_writes(db_session, make_article, requestor):
    article = make_article(stock_initial=10)

    with pytest.raises(InvalidInputError):
        with atomic(db_session):
            create_outbound(
                db_session,
                article_id=article.id,
                requestor_id=requestor.id,
                quantite_sortie=2,
                motif_sortie="   ",
            )

    with pytest.raises(NotFoundError):
        with atomic(db_session):
            create_outbound(
                db_session,
                article_id=article.id,
                requestor_id=12345,
                quantite_sortie=2,
                motif_sortie="Chantier",
            )

    db_session.refresh(article)
    assert article.stock_actuel == 10
    assert db_session.scalar(select(func.count()).select_from(Outbound)) == 0
    assert _movement_count(db_session) == 0


def test_reception_with_unknown_supplier_is_not_found(db_session, make_article):
    article = make_article(stock_initial=1)

    with pytest.raises(NotFoundError):
        with atomic(db_session):
            create_reception(db_session, article_id=article.id, supplier_id=42, quantite_recue=3)

    db_session.refresh(article)
    assert article.stock_actuel == 1
    assert db_session.scalar(select(func.count()).select_from(Reception)) == 0


def test_append_movement_rejects_wrong_arithmetic(db_session, make_article):
    """
    GIVEN
    - entree de 5 déclarée avec avant=10, après=14

    THEN
    - InconsistentStateError, rien n'est écrit
    """
    article = make_article(stock_initial=10)

    with pytest.raises(InconsistentStateError):
        with atomic(db_session):
            inventory.append_movement(
                db_session,
                article_id=article.id,
                movement_type=MovementType.inbound,
                quantity=5,
                quantite_avant=10,
                quantite_apres=14,
            )

    assert _movement_count(db_session) == 0


def test_append_movement_does_not_depend_on_ledger_state(db_session, make_article):
    """Le journal est de l'historique : aucune cohérence avec la ligne précédente n'est exigée."""
    article = make_article(stock_initial=0)

    with atomic(db_session):
        inventory.append_movement(
            db_session,
            article_id=article.id,
            movement_type=MovementType.inbound,
            quantity=5,
            quantite_avant=100,
            quantite_apres=105,
            description="reprise historique",
        )

    assert _movement_count(db_session, article.id) == 1


def test_list_movements_is_chronological_and_repeatable(db_session, make_article, supplier, requestor):
    """
    GIVEN
    - réceptions/sorties dont les dates ne suivent pas l'ordre d'écriture

    THEN
    - list_movements trie par date_mouvement puis id
    - deux lectures successives renvoient la même séquence
    """
    article = make_article(stock_initial=50)
    other = make_article(stock_initial=50)

    with atomic(db_session):
        for qty in (1, 2, 3):
            inventory.receive(db_session, article_id=article.id, quantity=qty)
        inventory.issue(db_session, article_id=other.id, quantity=4)

    # antidate le 3e mouvement
    third = db_session.execute(
        select(StockMovement).where(StockMovement.article_id == article.id, StockMovement.quantite == 3)
    ).scalar_one()
    third.date_mouvement = datetime.now(timezone.utc) - timedelta(days=1)
    db_session.commit()

    first_read = [m.id for m in inventory.list_movements(db_session, article.id)]
    second_read = [m.id for m in inventory.list_movements(db_session, article.id)]

    assert first_read == second_read
    assert [m.quantite for m in inventory.list_movements(db_session, article.id)] == [3, 1, 2]
    assert len(inventory.list_movements(db_session)) == 4


def test_recent_movements_newest_first_and_limited(db_session, make_article):
    article = make_article(stock_initial=0)
    with atomic(db_session):
        for qty in range(1, 6):
            inventory.receive(db_session, article_id=article.id, quantity=qty)

    recent = inventory.list_recent_movements(db_session, limit=3)

    assert [m.quantite for m in recent] == [5, 4, 3]


def test_reconciliation_reports_drift(db_session, make_article):
    """
    GIVEN
    - un article cohérent, un article dont stock_actuel a été modifié hors journal

    THEN
    - seul le second est signalé, avec l'écart
    """
    ok = make_article(stock_initial=10)
    drifted = make_article(stock_initial=10)
    with atomic(db_session):
        inventory.receive(db_session, article_id=ok.id, quantity=5)
        inventory.receive(db_session, article_id=drifted.id, quantity=5)

    drifted.stock_actuel = 12  # écriture directe, sans mouvement
    db_session.commit()

    rows = {r.article_id: r for r in inventory.reconcile_articles(db_session)}

    assert rows[ok.id].coherent
    assert rows[ok.id].stock_attendu == 15
    assert not rows[drifted.id].coherent
    assert rows[drifted.id].stock_attendu == 15
    assert rows[drifted.id].ecart == -3

    only = inventory.reconcile_articles(db_session, article_ids=[drifted.id])
    assert [r.article_id for r in only] == [drifted.id]


def test_reconciliation_includes_articles_without_movements(db_session, make_article):
    article = make_article(stock_initial=7)

    (row,) = inventory.reconcile_articles(db_session)

    assert row.article_id == article.id
    assert row.mouvements_net == 0
    assert row.coherent


def test_conditional_update_rejects_outbound_on_stale_stock(db_session, make_article, requestor):
    """
    GIVEN
    - article chargé en session à 10
    - stock ramené à 2 en base, sans rafraîchir l'objet (écriture concurrente)
    - sortie de 5 : le contrôle préalable lit 10 et passe

    THEN
    - l'UPDATE conditionnel refuse : InsufficientStockError (disponible = 2)
    - la sortie déjà insérée est annulée, aucun mouvement, stock inchangé
    """
    # ---------- ARRANGE ----------
    article = make_article(stock_initial=10)
    assert article.stock_actuel == 10

    # ---------- ACT ----------
    with pytest.raises(InsufficientStockError) as excinfo:
        with atomic(db_session):
            db_session.execute(
                update(Article)
                .where(Article.id == article.id)
                .values(stock_actuel=2)
                .execution_options(synchronize_session=False)
            )
            assert article.stock_actuel == 10  # lecture périmée
            create_outbound(
                db_session,
                article_id=article.id,
                requestor_id=requestor.id,
                quantite_sortie=5,
                motif_sortie="Chantier",
            )

    # ---------- ASSERT ----------
    assert excinfo.value.requested == 5
    assert excinfo.value.available == 2
    assert db_session.scalar(select(func.count()).select_from(Outbound)) == 0
    assert _movement_count(db_session) == 0
    db_session.refresh(article)
    assert article.stock_actuel == 10


def test_timestamps_are_read_back_as_utc(db_session, make_article, supplier):
    """
    GIVEN
    - réception datée 10:00 à UTC-10

    THEN
    - relue en base : 20:00, tzinfo UTC (SQLite compris)
    - horodatages par défaut (created_at, date_mouvement) aussi en UTC
    """
    article = make_article(stock_initial=0)
    tahiti = timezone(timedelta(hours=-10))

    with atomic(db_session):
        reception = create_reception(
            db_session,
            article_id=article.id,
            supplier_id=supplier.id,
            quantite_recue=1,
            date_reception=datetime(2026, 1, 15, 10, 0, tzinfo=tahiti),
        )

    db_session.refresh(reception)
    assert reception.date_reception.tzinfo == timezone.utc
    assert reception.date_reception == datetime(2026, 1, 15, 20, 0, tzinfo=timezone.utc)
    assert reception.created_at.tzinfo == timezone.utc

    (movement,) = inventory.list_movements(db_session, article.id)
    assert movement.date_mouvement.tzinfo == timezone.utc
