"""Exception hierarchy shared by the document, evaluation and function layers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pydantic import ValidationError


class AppDomError(Exception):
    """Base class for all appdom errors."""


class MigrationVersionError(AppDomError):
    """A document cannot be migrated to the requested version."""

    def __init__(self, message: str, *, from_version: int, to_version: int) -> None:
        super().__init__(message)
        self.from_version = from_version
        self.to_version = to_version


class DocumentIntegrityError(AppDomError):
    """A document violates a structural invariant (duplicate id, dangling parent, cycle)."""


class NotFoundError(AppDomError, LookupError):
    """A node, export, function or data provider does not exist."""


class UnsupportedOperationError(AppDomError):
    """An operation was requested that the target does not implement."""


class EvaluationError(AppDomError):
    """A binding expression could not be evaluated."""


class ExpressionSyntaxError(EvaluationError):
    """A binding expression could not be parsed."""

    def __init__(self, message: str, *, source: str, position: int) -> None:
        super().__init__(f"{message} (at position {position})")
        self.source = source
        self.position = position


class LoadingSignal(AppDomError):  # noqa: N818
    """Raised by host callables whose value is not available yet.

    This is a control marker, not a failure: the expression runtime turns it
    into a ``Loading`` result.
    """


class SchemaValidationError(AppDomError):
    """A value does not match the shape it is expected to have.

    Attributes:
        path: Dotted path of the first offending field (empty for the root).
        errors: The raw error entries, one per offending field.

    """

    def __init__(self, message: str, *, path: str = "", errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.path = path
        self.errors = errors or []

    @classmethod
    def from_validation_error(cls, subject: str, error: ValidationError) -> SchemaValidationError:
        """Build from a pydantic ``ValidationError``, naming each field path and its expected shape."""
        entries = [dict(e) for e in error.errors()]
        lines: list[str] = []
        for entry in entries:
            loc = ".".join(str(part) for part in entry["loc"]) or "<root>"
            actual = "missing" if entry["type"] == "missing" else type(entry.get("input")).__name__
            lines.append(f"{loc}: {entry['msg']} (got {actual})")
        first = entries[0]["loc"] if entries else ()
        msg = f"Invalid {subject}:\n  " + "\n  ".join(lines)
        return cls(msg, path=".".join(str(part) for part in first), errors=entries)
