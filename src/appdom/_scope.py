"""Assembly of the scope bindings are evaluated against.

Every entry is recorded twice: its real value in ``PageScope.values`` and a
descriptive ``ScopeMetaField`` in ``PageScope.meta`` for developer tooling.
Values wrapped with ``env_value`` are visible to expressions but redacted to
``undefined`` in the metadata.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum, auto
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Self

from ._expr import LOADING, UNDEFINED, Failed, Loading, Ready

if TYPE_CHECKING:
    from ._expr import LiveBinding

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EnvValueMarker:
    """Flags a value read from the environment (credentials, API keys...)."""

    value: Any

    def __repr__(self) -> str:
        return "EnvValueMarker(<redacted>)"


def env_value(value: Any) -> EnvValueMarker:
    """Mark ``value`` as coming from the environment."""
    return EnvValueMarker(value)


def _transform_markers(value: Any, *, redact: bool) -> Any:
    if isinstance(value, EnvValueMarker):
        return UNDEFINED if redact else value.value
    if isinstance(value, Mapping):
        return {k: _transform_markers(v, redact=redact) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_transform_markers(v, redact=redact) for v in value]
    return value


def unwrap_env_values(value: Any) -> Any:
    """Replace every environment marker in ``value`` by the value it wraps."""
    return _transform_markers(value, redact=False)


def redact_env_values(value: Any) -> Any:
    """Replace every environment marker in ``value`` by ``undefined``."""
    return _transform_markers(value, redact=True)


class ScopeKind(StrEnum):
    LOCAL = auto()
    ELEMENT = auto()
    QUERY = auto()
    OTHER = auto()


@dataclass(frozen=True, slots=True)
class ScopeMetaField:
    """Description of one scope entry, for introspection only.

    Attributes:
        kind: Where the entry comes from.
        value: The entry's value with environment values redacted.
        component_id: Component rendered by the element, for element entries.

    """

    kind: ScopeKind
    value: Any = UNDEFINED
    component_id: str | None = None


@dataclass(frozen=True, slots=True)
class PageScope:
    values: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    meta: Mapping[str, ScopeMetaField] = field(default_factory=lambda: MappingProxyType({}))

    def __contains__(self, name: object) -> bool:
        return name in self.values


def query_state(result: LiveBinding) -> dict[str, Any]:
    """Scope entry of a query from its evaluation state.

    While loading, ``data`` and ``rows`` hold the ``LOADING`` placeholder so that
    expressions reading them resolve to ``Loading`` rather than failing.
    """
    match result:
        case Ready(value=data):
            if isinstance(data, list | tuple):
                rows = list(data)
            elif isinstance(data, Mapping) and isinstance(data.get("rows"), list | tuple):
                rows = list(data["rows"])
            else:
                rows = []
            return {"isLoading": False, "error": None, "data": data, "rows": rows}
        case Loading():
            return {"isLoading": True, "error": None, "data": LOADING, "rows": LOADING}
        case Failed():
            return {"isLoading": False, "error": result.to_dict(), "data": UNDEFINED, "rows": []}
    msg = f"Not a binding result: {result!r}"
    raise TypeError(msg)


class ScopeBuilder:
    """Collects scope entries and their metadata.

    Example:
        >>> scope = ScopeBuilder().add_local("x", 1).add_other("page", {"title": "Home"}).build()
        >>> dict(scope.values)
        {'x': 1, 'page': {'title': 'Home'}}

    """

    def __init__(self) -> None:
        self._entries: dict[str, tuple[ScopeKind, Any, str | None]] = {}

    def _add(self, name: str, kind: ScopeKind, value: Any, component_id: str | None = None) -> Self:
        if name in self._entries:
            msg = f"Scope entry '{name}' is already defined"
            raise ValueError(msg)
        self._entries[name] = (kind, value, component_id)
        return self

    def add_local(self, name: str, value: Any) -> Self:
        return self._add(name, ScopeKind.LOCAL, value)

    def add_element(self, name: str, value: Any, component_id: str | None = None) -> Self:
        return self._add(name, ScopeKind.ELEMENT, value, component_id)

    def add_query(self, name: str, state: LiveBinding | Mapping[str, Any]) -> Self:
        """Add a query entry from its result, or from an already built query state."""
        value = state if isinstance(state, Mapping) else query_state(state)
        return self._add(name, ScopeKind.QUERY, value)

    def add_other(self, name: str, value: Any) -> Self:
        return self._add(name, ScopeKind.OTHER, value)

    def build(self) -> PageScope:
        values: dict[str, Any] = {}
        meta: dict[str, ScopeMetaField] = {}
        for name, (kind, value, component_id) in self._entries.items():
            values[name] = unwrap_env_values(value)
            meta[name] = ScopeMetaField(kind=kind, value=redact_env_values(value), component_id=component_id)
        logger.debug(f"Built scope with {len(values)} entries")
        return PageScope(values=MappingProxyType(values), meta=MappingProxyType(meta))
