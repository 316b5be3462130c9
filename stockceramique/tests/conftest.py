import os

# base en mémoire : aucun fichier ./data créé à l'import de l'application
os.environ.setdefault("DATABASE_URL", "sqlite://")

from decimal import Decimal
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from stockceramique.app.api.deps import get_db
from stockceramique.app.db.base import Base
from stockceramique.app.db.models import models_v1  # noqa: F401  (tables)
from stockceramique.app.db.models.models_v1 import Article, Requestor, Supplier
from stockceramique.app.db.session import build_engine
from stockceramique.app.main import app


@pytest.fixture(scope="function")
def engine():
    """
    SQLite en mémoire, une connexion partagée (StaticPool).
    Schéma recréé pour chaque test.
    """
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Session:
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """TestClient branché sur la même session que le test."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def supplier(db_session) -> Supplier:
    s = Supplier(nom="Céramiques du Sud", contact="Service commercial", delai_livraison=7)
    db_session.add(s)
    db_session.commit()
    return s


@pytest.fixture
def requestor(db_session) -> Requestor:
    r = Requestor(nom="Atelier", prenom="Pose", departement="Production")
    db_session.add(r)
    db_session.commit()
    return r


@pytest.fixture
def make_article(db_session):
    """Fabrique d'articles : stock_actuel = stock_initial à la création."""
    codes = count(1)

    def _make(stock_initial: int = 10, seuil_minimum: int | None = 5, **kwargs) -> Article:
        n = next(codes)
        data = {
            "code_article": f"TEST-ART-{n:03d}",
            "designation": f"Article de test {n}",
            "categorie": "Carrelage",
            "unite": "m2",
            "prix_unitaire": Decimal("10.00"),
        }
        data.update(kwargs)
        article = Article(
            **data,
            stock_initial=stock_initial,
            stock_actuel=stock_initial,
            seuil_minimum=seuil_minimum,
        )
        db_session.add(article)
        db_session.commit()
        return article

    return _make
