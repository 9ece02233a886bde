"""SQLAlchemy repositories for courses, categories and roles."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from course_import.application.ports import (
    AMBIGUOUS,
    Ambiguous,
    CategoryDirectory,
    CourseRepository,
    RoleDirectory,
)
from course_import.domain.course import CategoryRecord, CourseRecord, CourseSpec
from course_import.domain.enrolment import EnrolmentInstance, EnrolmentStatus
from course_import.infrastructure.db.models import (
    CategoryModel,
    CourseModel,
    EnrolmentInstanceModel,
    RoleModel,
)

DEFAULT_COURSE_FORMAT = "topics"

# Restored content keys and how they merge onto the new course.
_RESTORABLE_KEYS = ("summary", "format_options", "tags", "sections")


class CourseNotFoundError(RuntimeError):
    """Raised when a stored course is required but missing."""


class SqlAlchemyCourseRepository(CourseRepository):
    """Read and write courses and enrolment instances via SQLAlchemy session."""

    def __init__(
        self,
        session: Session,
        *,
        now: Callable[[], datetime] = lambda: datetime.now(tz=UTC),
    ) -> None:
        self._session = session
        self._now = now

    def course_exists_by_shortname(self, shortname: str) -> bool:
        return self.find_course_id_by_shortname(shortname) is not None

    def find_course_id_by_shortname(self, shortname: str) -> int | None:
        statement = select(CourseModel.id).where(CourseModel.shortname == shortname)
        return self._session.execute(statement).scalars().first()

    def count_courses_with_idnumber(self, idnumber: str) -> int:
        statement = (
            select(func.count()).select_from(CourseModel).where(CourseModel.idnumber == idnumber)
        )
        return int(self._session.execute(statement).scalar_one())

    def get_course_by_shortname(self, shortname: str) -> CourseRecord | None:
        statement = select(CourseModel).where(CourseModel.shortname == shortname)
        model = self._session.execute(statement).scalars().first()
        return None if model is None else _to_course_record(model)

    def get_course_by_id(self, course_id: int) -> CourseRecord | None:
        model = self._session.get(CourseModel, course_id)
        return None if model is None else _to_course_record(model)

    def create_course(self, spec: CourseSpec) -> CourseRecord:
        model = CourseModel(
            category_id=spec.category_id,
            shortname=spec.shortname,
            fullname=spec.fullname,
            idnumber=spec.idnumber,
            summary=spec.summary,
            format=spec.format or DEFAULT_COURSE_FORMAT,
            visible=1 if spec.visible is None else spec.visible,
            startdate=spec.startdate or 0,
            enddate=spec.enddate or 0,
            theme=spec.theme,
            lang=spec.lang,
            newsitems=spec.newsitems,
            showgrades=spec.showgrades,
            showreports=spec.showreports,
            legacyfiles=spec.legacyfiles,
            maxbytes=spec.maxbytes,
            groupmode=spec.groupmode,
            groupmodeforce=spec.groupmodeforce,
            enablecompletion=spec.enablecompletion,
            numsections=spec.numsections,
            format_options=dict(spec.format_options),
            role_names=dict(spec.role_names),
            tags=list(spec.tags),
            sections=[],
            created_at=self._now(),
        )
        self._session.add(model)
        self._session.flush()
        return _to_course_record(model)

    def export_course_content(self, course_id: int) -> dict[str, object]:
        """Return restorable content of a course."""
        model = self._require_course(course_id)
        return {
            "shortname": model.shortname,
            "fullname": model.fullname,
            "format": model.format,
            "numsections": model.numsections,
            "summary": model.summary,
            "format_options": dict(model.format_options),
            "tags": list(model.tags),
            "sections": list(model.sections),
        }

    def apply_restored_content(self, course_id: int, content: Mapping[str, object]) -> None:
        model = self._require_course(course_id)
        for key in _RESTORABLE_KEYS:
            if key not in content:
                continue
            value = content[key]
            if key == "summary":
                if not model.summary and value:
                    model.summary = str(value)
            elif key == "format_options" and isinstance(value, Mapping):
                model.format_options = {**dict(value), **model.format_options}
            elif key == "tags" and isinstance(value, list):
                model.tags = list(dict.fromkeys([*model.tags, *map(str, value)]))
            elif key == "sections" and isinstance(value, list):
                model.sections = list(value)
        self._session.flush()

    def mark_context_dirty(self, course_id: int) -> None:
        model = self._require_course(course_id)
        model.context_dirty_at = self._now()
        self._session.flush()

    def list_enrolment_instances(self, course_id: int) -> list[EnrolmentInstance]:
        statement = (
            select(EnrolmentInstanceModel)
            .where(EnrolmentInstanceModel.course_id == course_id)
            .order_by(EnrolmentInstanceModel.id)
        )
        models = self._session.execute(statement).scalars().all()
        return [_to_enrolment_instance(model) for model in models]

    def add_default_enrolment_instance(self, course_id: int, method: str) -> EnrolmentInstance:
        self._require_course(course_id)
        statement = (
            select(func.count())
            .select_from(EnrolmentInstanceModel)
            .where(EnrolmentInstanceModel.course_id == course_id)
        )
        sortorder = int(self._session.execute(statement).scalar_one())
        model = EnrolmentInstanceModel(
            course_id=course_id,
            enrol=method,
            status=int(EnrolmentStatus.ENABLED),
            sortorder=sortorder,
            enrolstartdate=0,
            enrolenddate=0,
            enrolperiod=0,
            customdata={},
            timemodified=0,
        )
        self._session.add(model)
        self._session.flush()
        return _to_enrolment_instance(model)

    def update_enrolment_instance(self, instance: EnrolmentInstance) -> None:
        model = self._session.get(EnrolmentInstanceModel, instance.id)
        if model is None:
            raise LookupError(f"Enrolment instance {instance.id} does not exist.")
        model.status = int(instance.status)
        model.name = instance.name
        model.enrolstartdate = instance.enrolstartdate
        model.enrolenddate = instance.enrolenddate
        model.enrolperiod = instance.enrolperiod
        model.role_id = instance.role_id
        model.timemodified = instance.timemodified
        model.customdata = {key: _json_value(value) for key, value in instance.options.items()}
        self._session.flush()

    def delete_enrolment_instance(self, instance_id: int) -> None:
        model = self._session.get(EnrolmentInstanceModel, instance_id)
        if model is not None:
            self._session.delete(model)
            self._session.flush()

    def _require_course(self, course_id: int) -> CourseModel:
        model = self._session.get(CourseModel, course_id)
        if model is None:
            raise CourseNotFoundError(f"Course {course_id} does not exist.")
        return model


class SqlAlchemyCategoryDirectory(CategoryDirectory):
    """Look up course categories via SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, category_id: int) -> CategoryRecord | None:
        model = self._session.get(CategoryModel, category_id)
        if model is None:
            return None
        return CategoryRecord(
            id=model.id,
            name=model.name,
            parent_id=model.parent_id,
            idnumber=model.idnumber,
            deleted=model.deleted,
        )

    def find_by_idnumber(self, idnumber: str) -> int | None:
        statement = (
            select(CategoryModel.id)
            .where(CategoryModel.idnumber == idnumber, CategoryModel.deleted.is_(False))
            .order_by(CategoryModel.id)
        )
        return self._session.execute(statement).scalars().first()

    def find_by_name_under_parent(self, name: str, parent_id: int | None) -> int | Ambiguous | None:
        parent_clause = (
            CategoryModel.parent_id.is_(None)
            if parent_id is None
            else CategoryModel.parent_id == parent_id
        )
        statement = (
            select(CategoryModel.id)
            .where(CategoryModel.name == name, parent_clause, CategoryModel.deleted.is_(False))
            .limit(2)
        )
        ids = self._session.execute(statement).scalars().all()
        if len(ids) > 1:
            return AMBIGUOUS
        return ids[0] if ids else None


class SqlAlchemyRoleDirectory(RoleDirectory):
    """List roles via SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_all_roles(self) -> list[tuple[str, int]]:
        statement = select(RoleModel.shortname, RoleModel.id).order_by(RoleModel.id)
        return [(shortname, role_id) for shortname, role_id in self._session.execute(statement)]


def _to_course_record(model: CourseModel) -> CourseRecord:
    return CourseRecord(
        id=model.id,
        shortname=model.shortname,
        fullname=model.fullname,
        category_id=model.category_id,
        format=model.format,
        numsections=model.numsections,
        idnumber=model.idnumber,
        summary=model.summary,
    )


def _to_enrolment_instance(model: EnrolmentInstanceModel) -> EnrolmentInstance:
    return EnrolmentInstance(
        id=model.id,
        course_id=model.course_id,
        method=model.enrol,
        status=EnrolmentStatus(model.status),
        name=model.name,
        enrolstartdate=model.enrolstartdate,
        enrolenddate=model.enrolenddate,
        enrolperiod=model.enrolperiod,
        role_id=model.role_id,
        timemodified=model.timemodified,
        options=dict(model.customdata or {}),
    )


def _json_value(value: object) -> object:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)
