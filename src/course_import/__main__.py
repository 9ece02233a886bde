"""Command line entrypoint importing a CSV course feed."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from uuid import uuid4

from pydantic import ValidationError
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from course_import.application.batch import BatchProcessor
from course_import.application.settings import ImportSettings
from course_import.infrastructure.archive.staging import StagingArea, get_backup_temp_root
from course_import.infrastructure.db.session import create_default_session_factory
from course_import.infrastructure.db.unit_of_work import SqlAlchemyCourseImportUnitOfWork
from course_import.infrastructure.feed.csv_reader import FeedFormatError, read_csv_feed
from course_import.infrastructure.logging_config import configure_logging
from course_import.infrastructure.platform.factory import create_platform_factory

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser of the import command."""
    parser = argparse.ArgumentParser(
        prog="course-import",
        description="Create courses from a CSV course feed.",
    )
    parser.add_argument("feed", type=Path, help="CSV file, one course per row")
    parser.add_argument("--db", type=Path, default=None, help="SQLite database path")
    parser.add_argument("--delimiter", default=",", help="CSV cell delimiter")
    parser.add_argument("--encoding", default="utf-8-sig", help="CSV file encoding")
    parser.add_argument("--template-course", default=None, help="Course restored by default")
    parser.add_argument(
        "--shortname-template",
        default=None,
        help="Template for missing shortnames, e.g. %%i or %%+f",
    )
    parser.add_argument("--numsections", type=int, default=4, help="Default section count")
    parser.add_argument("--actor-id", type=int, default=None, help="Importing user id")
    parser.add_argument(
        "--allow-force-language",
        action="store_true",
        help="Allow rows to force a course language",
    )
    parser.add_argument(
        "--keep-temp",
        action="store_true",
        help="Keep staged backups and reuse them across rows",
    )
    parser.add_argument("--log-level", default=None, help="Logging level")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the import and print the batch report as JSON."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        settings = ImportSettings(
            template_course=args.template_course,
            shortname_template=args.shortname_template,
            keep_temp_directories=args.keep_temp,
            default_numsections=args.numsections,
            actor_id=args.actor_id,
            allow_force_language=args.allow_force_language,
        )
    except ValidationError as exc:
        print(f"Invalid import settings:\n{exc}", file=sys.stderr)
        return 2

    correlation_id = str(uuid4())
    staging = StagingArea(get_backup_temp_root())
    session_factory = create_default_session_factory(args.db)
    processor = BatchProcessor(
        uow_factory=lambda: SqlAlchemyCourseImportUnitOfWork(session_factory),
        platform_factory=create_platform_factory(settings, staging),
        settings=settings,
    )
    try:
        _check_database(session_factory)
        rows = read_csv_feed(args.feed, delimiter=args.delimiter, encoding=args.encoding)
        report = processor.execute(rows)
    except (FeedFormatError, OSError, UnicodeDecodeError) as exc:
        LOGGER.exception(
            "event=feed_read_failed correlation_id=%s course_id=- path=%s error_type=%s",
            correlation_id,
            args.feed,
            exc.__class__.__name__,
        )
        print(f"Cannot read feed {args.feed}: {exc}", file=sys.stderr)
        return 2
    except OperationalError:
        LOGGER.exception(
            "event=database_unavailable correlation_id=%s course_id=-",
            correlation_id,
        )
        print(
            "Database is not available. Run migrations: alembic upgrade head.",
            file=sys.stderr,
        )
        return 2
    finally:
        if not settings.keep_temp_directories:
            staging.purge()

    print(report.model_dump_json(indent=2))
    return 0 if report.failed == 0 else 1


def _check_database(session_factory: sessionmaker[Session]) -> None:
    with SqlAlchemyCourseImportUnitOfWork(session_factory) as uow:
        uow.roles.list_all_roles()


if __name__ == "__main__":
    raise SystemExit(main())
