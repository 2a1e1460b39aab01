from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings

logger = logging.getLogger(__name__)


def build_engine(url: str, echo: bool = False) -> Engine:
    kwargs: dict[str, Any] = {"echo": echo, "future": True}
    if url.startswith("sqlite"):
        # FastAPI esegue gli handler sync in un threadpool
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # DB in memoria: una sola connessione condivisa, altrimenti ogni connessione vede un DB vuoto
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


# Backend scelto una sola volta all'avvio: SQLite (default) oppure DATABASE_URL
DATABASE_URL = settings.effective_database_url

engine = build_engine(DATABASE_URL, echo=settings.sql_echo)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    future=True,
    expire_on_commit=False
)

logger.info("Database backend: %s", engine.url.get_backend_name())


class Base(DeclarativeBase):
    """Base ORM per tutti i modelli."""
    pass


@contextmanager
def db_session() -> Iterator[Session]:
    """
    Context manager per gestire correttamente la sessione:
    - commit se tutto ok
    - rollback su eccezioni
    - close sempre
    """
    session: Session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Crea le tabelle se non esistono."""
    # registra tutti i modelli nel metadata prima del create_all
    from . import auth_models, models  # noqa: F401

    Base.metadata.create_all(bind=engine)
