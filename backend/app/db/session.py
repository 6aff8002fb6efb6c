"""
Database session and engine.

Database owns the engine and session factory. It is built and opened once at process start
(FastAPI lifespan), handed to request handlers through app.state, and disposed at shutdown.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless enabled per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    def __init__(self, url: str):
        self.url = url
        self.engine: Engine | None = None
        self.session_factory: sessionmaker | None = None

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    def open(self) -> "Database":
        if self.engine is not None:
            return self
        url = make_url(self.url)
        if url.get_backend_name() == "sqlite":
            kwargs: dict = {"connect_args": {"check_same_thread": False}}
            if url.database in (None, "", ":memory:"):
                kwargs["poolclass"] = StaticPool
            else:
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(self.url, **kwargs)
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        else:
            engine = create_engine(
                self.url,
                pool_size=8,
                max_overflow=10,
                pool_pre_ping=True,
                pool_recycle=300,
                pool_timeout=30,
            )
        self.engine = engine
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        logger.info("Database opened (%s)", url.get_backend_name())
        return self

    def close(self) -> None:
        if self.engine is None:
            return
        self.engine.dispose()
        self.engine = None
        self.session_factory = None
        logger.info("Database closed")

    def create_schema(self) -> None:
        """Create missing tables from the models. Production databases use alembic instead."""
        import app.models  # noqa: F401  (register tables on Base.metadata)

        Base.metadata.create_all(self._require_engine())

    def ping(self) -> None:
        with self._require_engine().connect() as conn:
            conn.execute(text("SELECT 1"))

    def new_session(self) -> Session:
        if self.session_factory is None:
            raise RuntimeError("Database is not open")
        return self.session_factory()

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.new_session()
        try:
            yield db
        finally:
            db.close()

    def _require_engine(self) -> Engine:
        if self.engine is None:
            raise RuntimeError("Database is not open")
        return self.engine


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(request: Request):
    db = get_database(request).new_session()
    try:
        yield db
    finally:
        db.close()
