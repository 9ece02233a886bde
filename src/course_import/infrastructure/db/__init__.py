"""Database infrastructure package."""

from course_import.infrastructure.db.config import get_database_path, make_sqlite_url
from course_import.infrastructure.db.course_repository import (
    SqlAlchemyCategoryDirectory,
    SqlAlchemyCourseRepository,
    SqlAlchemyRoleDirectory,
)
from course_import.infrastructure.db.session import (
    create_default_session_factory,
    create_session_factory,
    create_sqlite_engine,
)
from course_import.infrastructure.db.unit_of_work import SqlAlchemyCourseImportUnitOfWork

__all__ = [
    "SqlAlchemyCategoryDirectory",
    "SqlAlchemyCourseImportUnitOfWork",
    "SqlAlchemyCourseRepository",
    "SqlAlchemyRoleDirectory",
    "create_default_session_factory",
    "create_session_factory",
    "create_sqlite_engine",
    "get_database_path",
    "make_sqlite_url",
]
