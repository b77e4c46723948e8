"""Database engine, session factory, and transaction scope."""

import time
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from authz.config import DatabaseConfig
from authz.config.logging import get_logger
from authz.db.base import Base

logger = get_logger(__name__)


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def create_db_engine(config: DatabaseConfig) -> Engine:
    """
    Create the SQLAlchemy engine for ``config``.

    Server databases run at READ COMMITTED so authorization reads never see
    a half-applied write. In-memory SQLite shares one connection across
    threads.
    """
    url = config.url

    if _is_memory_sqlite(url):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=config.echo,
        )

    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            pool_pre_ping=config.pool_pre_ping,
            echo=config.echo,
        )

    return create_engine(
        url,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_timeout=config.pool_timeout,
        pool_recycle=config.pool_recycle,
        pool_pre_ping=config.pool_pre_ping,
        isolation_level="READ COMMITTED",
        echo=config.echo,
    )


class Database:
    """Owns the engine and hands out transactional sessions."""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.engine = create_db_engine(config)
        self.session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )

    def create_all(self) -> None:
        """Create missing tables."""
        from authz import models  # noqa: F401  (registers mappers)

        Base.metadata.create_all(self.engine)
        logger.info("Database schema ready", extra={"tables": sorted(Base.metadata.tables)})

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Run a unit of work in one transaction.

        Commits on success, rolls back on any exception and re-raises it,
        so a failed operation leaves no partial changes behind.
        """
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> float:
        """Run ``SELECT 1`` and return the round trip in milliseconds."""
        start_time = time.perf_counter()
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return round((time.perf_counter() - start_time) * 1000, 2)

    def dispose(self) -> None:
        self.engine.dispose()
