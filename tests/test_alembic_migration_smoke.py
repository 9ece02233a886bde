"""Smoke tests for Alembic migrations on a clean SQLite database."""

from __future__ import annotations

from pathlib import Path
from uuid import uuid4

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text

from course_import.infrastructure.db.config import DB_PATH_ENV_VAR


def test_alembic_upgrade_head_on_clean_sqlite(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(DB_PATH_ENV_VAR, raising=False)
    db_path = Path("tests") / f"_runtime_migration_smoke_{uuid4().hex}.db"
    config = _make_alembic_config(db_path)

    try:
        command.upgrade(config, "head")

        engine = create_engine(_sqlite_url(db_path))
        try:
            inspector = inspect(engine)
            table_names = set(inspector.get_table_names())
            course_columns = {column["name"] for column in inspector.get_columns("courses")}
            with engine.connect() as connection:
                roles = connection.execute(
                    text("SELECT shortname, id FROM roles ORDER BY id")
                ).all()
        finally:
            engine.dispose()

        assert {"course_categories", "roles", "courses", "enrol"}.issubset(table_names)
        assert {
            "shortname",
            "idnumber",
            "format_options",
            "role_names",
            "sections",
            "context_dirty_at",
        }.issubset(course_columns)
        assert [tuple(row) for row in roles] == [
            ("manager", 1),
            ("coursecreator", 2),
            ("editingteacher", 3),
            ("teacher", 4),
            ("student", 5),
            ("guest", 6),
        ]
    finally:
        db_path.unlink(missing_ok=True)


def test_alembic_downgrade_base_drops_tables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(DB_PATH_ENV_VAR, raising=False)
    db_path = Path("tests") / f"_runtime_migration_downgrade_{uuid4().hex}.db"
    config = _make_alembic_config(db_path)

    try:
        command.upgrade(config, "head")
        command.downgrade(config, "base")

        engine = create_engine(_sqlite_url(db_path))
        try:
            table_names = set(inspect(engine).get_table_names())
        finally:
            engine.dispose()

        assert table_names.isdisjoint({"course_categories", "roles", "courses", "enrol"})
    finally:
        db_path.unlink(missing_ok=True)


def _make_alembic_config(db_path: Path) -> Config:
    config = Config(str(Path("alembic.ini").resolve()))
    config.set_main_option("script_location", str(Path("alembic").resolve()))
    config.set_main_option("sqlalchemy.url", _sqlite_url(db_path))
    config.attributes["configure_logger"] = False
    return config


def _sqlite_url(db_path: Path) -> str:
    return f"sqlite:///{db_path.as_posix()}"
