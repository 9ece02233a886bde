"""Key/value lookup caches shared by the import resolvers.

NOTE:
    Caches are process-local. Populating a key is an idempotent
    recomputation, so concurrent readers only ever race to store the same value.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol


class _Missing(Enum):
    MISSING = "missing"


MISSING = _Missing.MISSING


class LookupCache(Protocol):
    """Cache port with explicit miss marker, so ``None`` can be cached."""

    def get(self, key: str) -> object:
        """Return cached value or ``MISSING``."""
        ...

    def set(self, key: str, value: object) -> None:
        """Store ``value`` under ``key``."""
        ...

    def delete(self, key: str) -> None:
        """Forget ``key``; no-op if absent."""
        ...

    def clear(self) -> None:
        """Forget every key."""
        ...


class InMemoryLookupCache(LookupCache):
    """Dictionary-backed cache living for the current process."""

    def __init__(self) -> None:
        self._values: dict[str, object] = {}

    def get(self, key: str) -> object:
        return self._values.get(key, MISSING)

    def set(self, key: str, value: object) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def clear(self) -> None:
        self._values.clear()

    def __len__(self) -> int:
        return len(self._values)


@dataclass(frozen=True)
class ResolverCaches:
    """Caches reused across rows and batches of one process."""

    categories: LookupCache = field(default_factory=InMemoryLookupCache)
    roles: LookupCache = field(default_factory=InMemoryLookupCache)
    enrolment_plugins: LookupCache = field(default_factory=InMemoryLookupCache)
    backups: LookupCache = field(default_factory=InMemoryLookupCache)
