"""Content-addressed cache of loaded function modules."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path


def content_hash(content: bytes) -> str:
    """Deterministic digest of raw file content, as ``"sha256:<hex>"``."""
    return f"sha256:{hashlib.sha256(content).hexdigest()}"


@dataclass(frozen=True, slots=True)
class ModuleCacheEntry:
    """The exports produced by executing one version of a file.

    Attributes:
        path: Resolved absolute path of the file.
        content_hash: Digest of the content that was executed.
        exports: Export name to value.

    """

    path: Path
    content_hash: str
    exports: Mapping[str, Any]


class ModuleCache:
    """Entries keyed by absolute path; an entry is replaced, never merged, when content changes."""

    def __init__(self) -> None:
        self._entries: dict[Path, ModuleCacheEntry] = {}

    def get(self, path: Path) -> ModuleCacheEntry | None:
        return self._entries.get(path)

    def lookup(self, path: Path, digest: str) -> ModuleCacheEntry | None:
        """Return the entry for ``path`` only if it was produced from content with ``digest``."""
        entry = self._entries.get(path)
        if entry is not None and entry.content_hash == digest:
            return entry
        return None

    def put(self, entry: ModuleCacheEntry) -> None:
        self._entries[entry.path] = entry

    def invalidate(self, path: Path) -> ModuleCacheEntry | None:
        return self._entries.pop(path, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries
