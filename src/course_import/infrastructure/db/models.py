"""SQLAlchemy models for the course catalogue fed by imports."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from course_import.infrastructure.db.base import Base


class CategoryModel(Base):
    """Course category; top-level categories have no parent."""

    __tablename__ = "course_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    idnumber: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("course_categories.id"),
        nullable=True,
        index=True,
    )
    deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    courses: Mapped[list[CourseModel]] = relationship(back_populates="category")


class RoleModel(Base):
    """Role that enrolment instances assign and courses may rename."""

    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shortname: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)


class CourseModel(Base):
    """Course created by the import."""

    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(
        ForeignKey("course_categories.id"),
        nullable=False,
        index=True,
    )
    shortname: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    fullname: Mapped[str] = mapped_column(String(254), nullable=False)
    idnumber: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    format: Mapped[str] = mapped_column(String(21), nullable=False, default="topics")
    visible: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    startdate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    enddate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    theme: Mapped[str | None] = mapped_column(String(50), nullable=True)
    lang: Mapped[str | None] = mapped_column(String(30), nullable=True)
    newsitems: Mapped[int | None] = mapped_column(Integer, nullable=True)
    showgrades: Mapped[int | None] = mapped_column(Integer, nullable=True)
    showreports: Mapped[int | None] = mapped_column(Integer, nullable=True)
    legacyfiles: Mapped[int | None] = mapped_column(Integer, nullable=True)
    maxbytes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    groupmode: Mapped[int | None] = mapped_column(Integer, nullable=True)
    groupmodeforce: Mapped[int | None] = mapped_column(Integer, nullable=True)
    enablecompletion: Mapped[int | None] = mapped_column(Integer, nullable=True)
    numsections: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    format_options: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    role_names: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    sections: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    context_dirty_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    category: Mapped[CategoryModel] = relationship(back_populates="courses")
    enrolment_instances: Mapped[list[EnrolmentInstanceModel]] = relationship(
        back_populates="course",
        order_by="EnrolmentInstanceModel.id",
    )


class EnrolmentInstanceModel(Base):
    """Enrolment method instance attached to a course."""

    __tablename__ = "enrol"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id"), nullable=False, index=True)
    enrol: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sortorder: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    enrolstartdate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    enrolenddate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    enrolperiod: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    role_id: Mapped[int | None] = mapped_column(ForeignKey("roles.id"), nullable=True)
    customdata: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    timemodified: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    course: Mapped[CourseModel] = relationship(back_populates="enrolment_instances")
