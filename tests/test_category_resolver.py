"""Unit tests for category resolution by id, idnumber and path."""

from __future__ import annotations

from course_import.application.cache import InMemoryLookupCache
from course_import.application.category_resolver import CategoryResolver
from course_import.domain.course import CategoryRecord
from tests.course_import_fakes import FakeCategoryDirectory, default_categories


def test_resolve_by_numeric_id_wins_over_other_inputs() -> None:
    resolver = CategoryResolver(FakeCategoryDirectory(default_categories()), InMemoryLookupCache())

    category_id, errors = resolver.resolve(
        {"category": "2", "category_idnumber": "SCI", "category_path": "Arts"}
    )

    assert category_id == 2
    assert errors == {}


def test_deleted_category_id_falls_through_to_idnumber_and_keeps_error() -> None:
    resolver = CategoryResolver(FakeCategoryDirectory(default_categories()), InMemoryLookupCache())

    category_id, errors = resolver.resolve({"category": "4", "category_idnumber": "SCI"})

    assert category_id == 1
    assert list(errors) == ["couldnotresolvecatgorybyid"]


def test_resolve_by_path_walks_from_root_to_leaf() -> None:
    resolver = CategoryResolver(FakeCategoryDirectory(default_categories()), InMemoryLookupCache())

    category_id, errors = resolver.resolve({"category_path": "Science / Physics"})

    assert category_id == 2
    assert errors == {}


def test_missing_path_segment_reports_path_error() -> None:
    resolver = CategoryResolver(FakeCategoryDirectory(default_categories()), InMemoryLookupCache())

    category_id, errors = resolver.resolve({"category_path": "Science / Chemistry"})

    assert category_id is None
    assert list(errors) == ["couldnotresolvecatgorybypath"]


def test_ambiguous_path_segment_is_reported_as_not_found() -> None:
    categories = [
        *default_categories(),
        CategoryRecord(id=10, name="Physics", parent_id=1),
    ]
    resolver = CategoryResolver(FakeCategoryDirectory(categories), InMemoryLookupCache())

    category_id, errors = resolver.resolve({"category_path": "Science / Physics"})

    assert category_id is None
    assert list(errors) == ["couldnotresolvecatgorybypath"]


def test_no_category_input_is_unresolved_without_error() -> None:
    resolver = CategoryResolver(FakeCategoryDirectory(default_categories()), InMemoryLookupCache())

    assert resolver.resolve({"fullname": "Intro"}) == (None, {})


def test_idnumber_lookups_are_cached_including_misses() -> None:
    directory = FakeCategoryDirectory(default_categories())
    resolver = CategoryResolver(directory, InMemoryLookupCache())

    assert resolver.resolve_by_idnumber("PHY") == 2
    assert resolver.resolve_by_idnumber("PHY") == 2
    assert resolver.resolve_by_idnumber("NOPE") is None
    assert resolver.resolve_by_idnumber("NOPE") is None

    assert directory.calls == 2


def test_shared_cache_spares_directory_hits_across_resolvers() -> None:
    cache = InMemoryLookupCache()
    first_directory = FakeCategoryDirectory(default_categories())
    second_directory = FakeCategoryDirectory(default_categories())

    CategoryResolver(first_directory, cache).resolve({"category_path": "Science / Physics"})
    category_id, _ = CategoryResolver(second_directory, cache).resolve(
        {"category_path": "Science / Physics"}
    )

    assert category_id == 2
    assert first_directory.calls == 2
    assert second_directory.calls == 0


def test_zero_category_id_counts_as_absent() -> None:
    directory = FakeCategoryDirectory(default_categories())
    resolver = CategoryResolver(directory, InMemoryLookupCache())

    category_id, errors = resolver.resolve({"category": "0", "category_path": "Science"})

    assert category_id == 1
    assert errors == {}
