"""Shared definitions for document migrations."""

from collections.abc import Callable
from dataclasses import dataclass

from appdom._dom import Document
from appdom._errors import MigrationVersionError


@dataclass(frozen=True, slots=True)
class Migration:
    """A pure upgrade of a document by exactly one version.

    Attributes:
        to_version: Version of the documents produced by ``up``.
        description: One-line summary shown in logs and the CLI.
        up: The transform. It receives a document at ``to_version - 1``.

    """

    to_version: int
    description: str
    up: Callable[[Document], Document]

    @property
    def from_version(self) -> int:
        return self.to_version - 1


def expect_version(document: Document, version: int) -> None:
    """Raise unless ``document`` is at ``version``.

    Raises:
        MigrationVersionError: If the document is at any other version.

    """
    if document.version != version:
        msg = f"Migration expects a v{version} document, got v{document.version}"
        raise MigrationVersionError(msg, from_version=document.version, to_version=version + 1)
