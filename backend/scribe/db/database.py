"""Database engine & session utilities.

The engine is owned by a :class:`Database` instance that the application
factory builds and keeps on ``app.state``; nothing here connects at import
time.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from scribe.db.base import Base

logger = logging.getLogger(__name__)


def _engine_for(url: str, echo: bool) -> Engine:
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:"):
        # One shared connection, otherwise every session sees an empty DB
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if parsed.get_backend_name() == "sqlite":
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(url, echo=echo, pool_pre_ping=True)


class Database:
    """Engine plus session factory for one process."""

    def __init__(self, url: str, echo: bool = False) -> None:
        logger.info("Creating database engine for %s", url.split("@")[-1])
        self.engine = _engine_for(url, echo)
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )

    def create_tables(self) -> None:
        """Create all tables if they do not yet exist. Harmless when they do."""
        from scribe import models  # noqa: F401 – registers every mapped class

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables ensured")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yields a database session, rolling back on error and always closing it."""
        db = self.SessionLocal()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
            logger.debug("DB session closed")

    def dispose(self) -> None:
        self.engine.dispose()
