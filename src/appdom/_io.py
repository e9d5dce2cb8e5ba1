"""Reading and writing persisted documents."""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ._dom import Document
from ._errors import DocumentIntegrityError, SchemaValidationError
from ._migrations import migrate_up

logger = logging.getLogger(__name__)


def _reject_duplicate_keys(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            msg = f"Duplicate key '{key}' in document"
            raise DocumentIntegrityError(msg)
        result[key] = value
    return result


def parse_document(data: Any) -> Document:
    """Validate raw JSON data as a document, without migrating it.

    Raises:
        SchemaValidationError: If the data does not have the document shape.

    """
    try:
        return Document.model_validate(data)
    except ValidationError as e:
        raise SchemaValidationError.from_validation_error("document", e) from e


def loads_document(text: str | bytes, *, migrate: bool = True) -> Document:
    """Parse a document from JSON text.

    Args:
        text: The JSON text.
        migrate: Whether to upgrade the document to the current version.

    Returns:
        The document, checked for integrity.

    Raises:
        DocumentIntegrityError: On duplicate keys, duplicate ids or broken references.
        SchemaValidationError: If the JSON does not have the document shape.
        MigrationVersionError: If the document is newer than this library.

    """
    try:
        data = json.loads(text, object_pairs_hook=_reject_duplicate_keys)
    except json.JSONDecodeError as e:
        msg = f"Document is not valid JSON: {e}"
        raise SchemaValidationError(msg) from e

    document = parse_document(data)
    # Old documents may predate order keys; only references are checked before migrating
    document.check_integrity(require_order_keys=False)
    if migrate:
        document = migrate_up(document)
        document.check_integrity(require_order_keys=document.version >= 1)
    return document


def load_document(path: Path, *, migrate: bool = True) -> Document:
    """Load a document from a JSON file. See ``loads_document``."""
    logger.debug(f"Loading document from {path}")
    return loads_document(path.read_bytes(), migrate=migrate)


def dumps_document(document: Document) -> str:
    """Serialize a document to JSON text."""
    return document.model_dump_json(by_alias=True, exclude_none=True, indent=2) + "\n"


def save_document(document: Document, path: Path) -> None:
    """Write a document to a JSON file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps_document(document), encoding="utf-8")
    logger.debug(f"Saved v{document.version} document with {len(document)} nodes to {path}")
