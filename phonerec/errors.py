"""Exceptions raised by the phonerec package."""

from __future__ import annotations

from typing import Any


class RecommenderError(Exception):
    """Base class for all errors raised by phonerec."""


class MalformedInputError(RecommenderError, ValueError):
    """A rating record could not be parsed; the whole load is rejected."""

    def __init__(self, message: str, *, line_number: int | None = None, record: str | None = None) -> None:
        self.line_number = line_number
        self.record = record
        if line_number is not None:
            message = f"line {line_number}: {message}"
        if record is not None:
            message = f"{message} (record={record!r})"
        super().__init__(message)


class EmptyDatasetError(RecommenderError, ValueError):
    """The ratings source parsed cleanly but contained no ratings."""


class ConfigError(RecommenderError, ValueError):
    """Invalid configuration value."""


class BatchCancelled(RecommenderError):
    """A batch run was cancelled before every user was processed."""

    def __init__(self, completed: dict[Any, list[Any]], pending: int) -> None:
        self.completed = completed
        self.pending = int(pending)
        super().__init__(f"batch cancelled with {len(completed)} users done and {self.pending} pending")
