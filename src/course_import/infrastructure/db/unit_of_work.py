"""SQLAlchemy unit-of-work implementation for course import."""

from __future__ import annotations

from types import TracebackType

from sqlalchemy.orm import Session, sessionmaker

from course_import.application.ports import (
    CategoryDirectory,
    CourseImportUnitOfWork,
    CourseRepository,
    RoleDirectory,
)
from course_import.infrastructure.db.course_repository import (
    SqlAlchemyCategoryDirectory,
    SqlAlchemyCourseRepository,
    SqlAlchemyRoleDirectory,
)


class _Inactive:
    """Placeholder for repositories before entering unit-of-work context."""

    def __getattr__(self, name: str) -> object:
        raise RuntimeError("Unit of work is not active.")


class SqlAlchemyCourseImportUnitOfWork(CourseImportUnitOfWork):
    """Manage transactional scope for course import."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._session: Session | None = None
        self._set_inactive()

    def __enter__(self) -> SqlAlchemyCourseImportUnitOfWork:
        self._session = self._session_factory()
        self.courses = SqlAlchemyCourseRepository(self._session)
        self.categories = SqlAlchemyCategoryDirectory(self._session)
        self.roles = SqlAlchemyRoleDirectory(self._session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if exc is not None:
            self.rollback()

        session = self._session
        self._session = None
        self._set_inactive()
        if session is not None:
            session.close()

    def commit(self) -> None:
        session = self._require_session()
        session.commit()

    def rollback(self) -> None:
        session = self._session
        if session is not None:
            session.rollback()

    def _set_inactive(self) -> None:
        inactive = _Inactive()
        self.courses: CourseRepository = inactive  # type: ignore[assignment]
        self.categories: CategoryDirectory = inactive  # type: ignore[assignment]
        self.roles: RoleDirectory = inactive  # type: ignore[assignment]

    def _require_session(self) -> Session:
        if self._session is None:
            raise RuntimeError("Unit of work is not active.")
        return self._session
