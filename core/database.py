"""SQLAlchemy database engine and session management.

Provides the synchronous database layer behind the SQL loan ledger:
- Engine construction from DATABASE_URL (in-memory SQLite by default)
- Session factory with expire_on_commit disabled
- Scoped session lifecycle (commit on success, rollback on error)

The lending engine is a synchronous decision procedure, so the ledger
uses plain ``Session`` objects rather than the async API.
"""

import os
from contextlib import contextmanager
from typing import Iterator

from loguru import logger
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# ---------------------------------------------------------------------------
# Configuration from environment
# ---------------------------------------------------------------------------

DEFAULT_DATABASE_URL = "sqlite://"
ECHO_SQL = os.getenv("DB_ECHO", "false").lower() == "true"


# ---------------------------------------------------------------------------
# Engine & session factory
# ---------------------------------------------------------------------------

def create_db_engine(url: str | None = None) -> Engine:
    """Create an engine for ``url``, falling back to DATABASE_URL.

    In-memory SQLite shares a single connection so every session sees the
    same database.
    """
    url = url or os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    if url in ("sqlite://", "sqlite:///:memory:"):
        engine = create_engine(
            url,
            echo=ECHO_SQL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(url, echo=ECHO_SQL, pool_pre_ping=True)

    logger.info("Database engine created for {}", engine.url.render_as_string(hide_password=True))
    return engine


def session_factory(engine: Engine) -> sessionmaker[Session]:
    """Build a session factory bound to ``engine``."""
    return sessionmaker(engine, class_=Session, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Iterator[Session]:
    """Yield a session with automatic commit/rollback.

    Usage::

        with session_scope(factory) as session:
            store = SqlLoanStore(session, books, readers)
            LoanService(store).request_loans(reader, [book])
    """
    with factory() as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


# ---------------------------------------------------------------------------
# Lifecycle hooks
# ---------------------------------------------------------------------------

def init_db(engine: Engine) -> None:
    """Create tables for every registered model (dev/test only)."""
    from core.models.base import Base
    import verticals.library.models.db_models  # noqa: F401  registers tables

    Base.metadata.create_all(engine)


def close_db(engine: Engine) -> None:
    """Dispose of the connection pool on shutdown."""
    engine.dispose()
