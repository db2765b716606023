"""
Database Access

Owns the SQLAlchemy engine and session factory. One instance is built at
startup and handed to every store that needs it.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Engine + session factory for a single database URL."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        engine_kwargs = {"echo": echo, "future": True}

        if url.startswith("sqlite"):
            # Handlers run store calls in worker threads
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
                # One shared connection, otherwise every session sees an empty database
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(url, **engine_kwargs)
        self._session_factory = sessionmaker(
            bind=self.engine, expire_on_commit=False, future=True
        )

    def create_all(self) -> None:
        """Create any missing tables."""
        # Register table classes on Base.metadata
        from chronicle.storage import tables  # noqa: F401

        Base.metadata.create_all(self.engine)
        logger.info(f"Database schema ready ({self.engine.url.get_backend_name()})")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Transactional session scope: commits on success, rolls back on error.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()
