from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from stockceramique.app.core.config import normalize_database_url, settings

def _on_sqlite_connect(dbapi_connection, connection_record) -> None:
    # transactions pilotées par SQLAlchemy (SAVEPOINT fiables avec pysqlite)
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _on_sqlite_begin(conn) -> None:
    conn.exec_driver_sql("BEGIN")


def build_engine(url: str, **kwargs) -> Engine:
    url = normalize_database_url(url)
    if url.startswith("sqlite"):
        database = make_url(url).database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        engine = create_engine(url, connect_args=connect_args, **kwargs)
        event.listen(engine, "connect", _on_sqlite_connect)
        event.listen(engine, "begin", _on_sqlite_begin)
    else:
        engine = create_engine(url, pool_pre_ping=True, **kwargs)
    return engine


engine = build_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Unité de travail : commit si tout passe, rollback sinon.

    Les mutations de stock, l'écriture du journal et les changements de
    statut d'une même opération partagent cette transaction.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
