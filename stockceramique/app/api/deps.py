from __future__ import annotations

from typing import Iterator

from sqlalchemy.orm import Session

from stockceramique.app.db.session import SessionLocal


def get_db() -> Iterator[Session]:
    """
    Une session par requête. Les endpoints délimitent eux-mêmes la
    transaction (app.db.session.atomic) ; ici on ne fait que fermer.
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
