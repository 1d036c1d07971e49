"""
Database engine, session factory and declarative base.

The ledger is opened and closed explicitly through DatabaseManager; components
receive its session factory instead of reaching for a module-level engine.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)

Base = declarative_base()


class DatabaseManager:
    """Owns the engine and session factory for one database URL."""

    def __init__(
        self,
        database_url: str,
        *,
        pool_size: int = 10,
        max_overflow: int = 20,
        auto_create: bool = False,
    ) -> None:
        self.database_url = database_url
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._auto_create = auto_create
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("DatabaseManager is not open")
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            raise RuntimeError("DatabaseManager is not open")
        return self._session_factory

    def _engine_kwargs(self) -> dict[str, Any]:
        url = make_url(self.database_url)
        if url.get_backend_name() == "sqlite":
            kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
            if url.database in (None, "", ":memory:"):
                # In-memory databases live as long as their single connection.
                kwargs["poolclass"] = StaticPool
            elif url.database:
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            return kwargs
        return {
            "pool_size": self._pool_size,
            "max_overflow": self._max_overflow,
            "pool_pre_ping": True,
        }

    def open(self) -> "DatabaseManager":
        """Create the engine and session factory. Idempotent."""
        if self._engine is not None:
            return self
        self._engine = create_engine(self.database_url, **self._engine_kwargs())
        self._session_factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
        )
        if self._auto_create:
            # Import models so their tables are registered on Base.metadata.
            import app.models  # noqa: F401

            Base.metadata.create_all(self._engine)
        logger.info(
            "Database opened: %s", make_url(self.database_url).render_as_string()
        )
        return self

    def close(self) -> None:
        """Dispose of the engine. Safe to call when already closed."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database closed")

    @contextmanager
    def db_session(self) -> Iterator[Session]:
        """Yield a session that is rolled back on error and always closed."""
        db = self.session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


def build_database_manager(settings: Optional[Settings] = None) -> DatabaseManager:
    """Build a DatabaseManager from application settings."""
    settings = settings or get_settings()
    return DatabaseManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        auto_create=settings.database_auto_create,
    )
