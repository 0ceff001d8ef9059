"""
dealhunt.db

Single source of truth for database connectivity.

Contracts this module MUST provide (used across the repo):
- get_engine() helper (lazily built from DATABASE_URL)
- SessionLocal-style factory via get_sessionmaker()
- get_session() context manager (one scoped session per pipeline run)

Notes:
- DATABASE_URL is expected to be provided via environment (or a .env file loaded
  by the flow entrypoint).
- We normalize common scheme/driver variants to reduce footguns.
- Unlike older flows we do NOT connect at import-time; tests and scripts can
  import this module without a database and inject their own engine.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


def _normalize_database_url(raw: str) -> str:
    """
    Normalize DATABASE_URL variants to something SQLAlchemy can reliably use.

    Normalizations:
    - postgres://  -> postgresql://
    - postgresql+psycopg:// -> postgresql+psycopg2://
    """
    url = (raw or "").strip()

    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://") :]

    # If someone set psycopg3 dialect, normalize to psycopg2 dialect.
    if url.startswith("postgresql+psycopg://"):
        url = "postgresql+psycopg2://" + url[len("postgresql+psycopg://") :]

    return url


_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def get_engine() -> Engine:
    """Return the shared SQLAlchemy engine, creating it on first use."""
    global _engine
    if _engine is None:
        raw = os.environ.get("DATABASE_URL", "")
        if not raw:
            # Keep this loud and explicit.
            raise RuntimeError(
                "DATABASE_URL is not set in environment. "
                "Load your .env (or equivalent) before running flows."
            )
        _engine = create_engine(_normalize_database_url(raw), pool_pre_ping=True, future=True)
    return _engine


def set_engine(engine: Engine) -> None:
    """Swap the shared engine (used by tests and one-off scripts)."""
    global _engine, _session_factory
    _engine = engine
    _session_factory = None


def get_sessionmaker() -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine(), autoflush=False, autocommit=False, future=True)
    return _session_factory


@contextmanager
def get_session() -> Iterator[Session]:
    """
    Context-managed DB session.

    The voucher pipeline commits per record, so this only guarantees the
    session is closed and that an escaping exception rolls back pending work.

    Usage:
        from dealhunt.db import get_session
        with get_session() as s:
            ...
    """
    session: Session = get_sessionmaker()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
