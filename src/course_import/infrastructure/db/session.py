"""Engine/session bootstrap for SQLite persistence of the course catalogue."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from course_import.infrastructure.db.config import get_database_path, make_sqlite_url


def create_sqlite_engine(database_path: Path) -> Engine:
    """Create SQLite engine with foreign key enforcement enabled."""
    database_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(make_sqlite_url(database_path))
    event.listen(engine, "connect", _enable_foreign_keys)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create typed session factory; loaded records stay usable after commit."""
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
        class_=Session,
    )


def create_default_session_factory(database_path: Path | None = None) -> sessionmaker[Session]:
    """Create session factory for ``database_path`` or the configured database."""
    return create_session_factory(create_sqlite_engine(database_path or get_database_path()))


def _enable_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()
