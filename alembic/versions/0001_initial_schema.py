"""Create initial SQLite schema for the course catalogue."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

STANDARD_ROLES = (
    {"id": 1, "shortname": "manager", "name": "Manager"},
    {"id": 2, "shortname": "coursecreator", "name": "Course creator"},
    {"id": 3, "shortname": "editingteacher", "name": "Teacher"},
    {"id": 4, "shortname": "teacher", "name": "Non-editing teacher"},
    {"id": 5, "shortname": "student", "name": "Student"},
    {"id": 6, "shortname": "guest", "name": "Guest"},
)


def upgrade() -> None:
    """Apply initial schema."""
    op.create_table(
        "course_categories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("idnumber", sa.String(length=100), nullable=True),
        sa.Column("parent_id", sa.Integer(), nullable=True),
        sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(["parent_id"], ["course_categories.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_course_categories_idnumber", "course_categories", ["idnumber"])
    op.create_index("ix_course_categories_parent_id", "course_categories", ["parent_id"])

    roles = op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("shortname", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("shortname"),
    )
    op.bulk_insert(roles, list(STANDARD_ROLES))

    op.create_table(
        "courses",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("shortname", sa.String(length=255), nullable=False),
        sa.Column("fullname", sa.String(length=254), nullable=False),
        sa.Column("idnumber", sa.String(length=100), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("format", sa.String(length=21), nullable=False, server_default="topics"),
        sa.Column("visible", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("startdate", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("enddate", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("theme", sa.String(length=50), nullable=True),
        sa.Column("lang", sa.String(length=30), nullable=True),
        sa.Column("newsitems", sa.Integer(), nullable=True),
        sa.Column("showgrades", sa.Integer(), nullable=True),
        sa.Column("showreports", sa.Integer(), nullable=True),
        sa.Column("legacyfiles", sa.Integer(), nullable=True),
        sa.Column("maxbytes", sa.Integer(), nullable=True),
        sa.Column("groupmode", sa.Integer(), nullable=True),
        sa.Column("groupmodeforce", sa.Integer(), nullable=True),
        sa.Column("enablecompletion", sa.Integer(), nullable=True),
        sa.Column("numsections", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("format_options", sa.JSON(), nullable=False),
        sa.Column("role_names", sa.JSON(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("sections", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("context_dirty_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["category_id"], ["course_categories.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("shortname"),
    )
    op.create_index("ix_courses_category_id", "courses", ["category_id"])
    op.create_index("ix_courses_idnumber", "courses", ["idnumber"])

    op.create_table(
        "enrol",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("enrol", sa.String(length=20), nullable=False),
        sa.Column("status", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("sortorder", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("enrolstartdate", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("enrolenddate", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("enrolperiod", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("role_id", sa.Integer(), nullable=True),
        sa.Column("customdata", sa.JSON(), nullable=False),
        sa.Column("timemodified", sa.Integer(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"]),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_enrol_course_id", "enrol", ["course_id"])
    op.create_index("ix_enrol_enrol", "enrol", ["enrol"])


def downgrade() -> None:
    """Revert initial schema."""
    op.drop_index("ix_enrol_enrol", table_name="enrol")
    op.drop_index("ix_enrol_course_id", table_name="enrol")
    op.drop_table("enrol")

    op.drop_index("ix_courses_idnumber", table_name="courses")
    op.drop_index("ix_courses_category_id", table_name="courses")
    op.drop_table("courses")

    op.drop_table("roles")

    op.drop_index("ix_course_categories_parent_id", table_name="course_categories")
    op.drop_index("ix_course_categories_idnumber", table_name="course_categories")
    op.drop_table("course_categories")
