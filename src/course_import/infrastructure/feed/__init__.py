"""Course feed readers package."""

from course_import.infrastructure.feed.csv_reader import FeedFormatError, read_csv_feed

__all__ = ["FeedFormatError", "read_csv_feed"]
