"""Ordered code/message logs and contract errors for course import."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass


class CourseImportContractError(RuntimeError):
    """Raised when the import pipeline is driven in an unsupported order."""


class MessageLog(Mapping[str, str]):
    """Append-only ordered mapping of code to human message.

    Insertion order is detection order. Recording the same code twice is a
    caller bug and raises ``CourseImportContractError``.
    """

    kind = "Message"

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def record(self, code: str, message: str) -> None:
        """Append one entry; codes are unique within a log."""
        if code in self._entries:
            raise CourseImportContractError(f"{self.kind} code already defined: {code}")
        self._entries[code] = message

    def extend(self, entries: Mapping[str, str]) -> None:
        """Append every entry of ``entries`` in order."""
        for code, message in entries.items():
            self.record(code, message)

    def __getitem__(self, code: str) -> str:
        return self._entries[code]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._entries!r})"

    def as_dict(self) -> dict[str, str]:
        """Return a plain copy preserving order."""
        return dict(self._entries)


class ValidationOutcome(MessageLog):
    """Validation errors recorded while preparing one course."""

    kind = "Error"


class StatusLog(MessageLog):
    """Statuses recorded while processing one course."""

    kind = "Status"


@dataclass(frozen=True)
class CommittedStep:
    """One side effect performed after the course was committed."""

    name: str
    succeeded: bool
    detail: str = ""
