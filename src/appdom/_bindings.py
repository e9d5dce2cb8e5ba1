"""Evaluation of a set of bindings that may read each other.

Each binding is addressed by a scope path (``"text1.value"``). An expression
that reads a path another binding writes depends on that binding: results are
computed in dependency order and written back into the scope seen by later
bindings. Failures and loading states of dependencies propagate to their
dependents, and bindings that depend on themselves fail with a cycle error.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from ._dom import ExpressionValue
from ._errors import EvaluationError
from ._expr import LOADING, UNDEFINED, Failed, Loading, Ready, parse, referenced_paths
from ._graph import DependencyGraph

if TYPE_CHECKING:
    from ._dom import BindableAttrValue
    from ._expr import JsRuntime, LiveBinding

logger = logging.getLogger(__name__)


def binding_dependencies(bindings: Mapping[str, BindableAttrValue]) -> DependencyGraph[str]:
    """Graph of which bindings read which other bindings.

    A binding depends on another when it reads the other's scope path or any
    path inside it. Expressions that do not parse have no dependencies.
    """
    edges: list[tuple[str, str]] = []
    for path, bindable in bindings.items():
        if not isinstance(bindable, ExpressionValue):
            continue
        try:
            reads = referenced_paths(parse(bindable.value))
        except EvaluationError:
            continue
        for read in reads:
            for length in range(1, len(read) + 1):
                prefix = ".".join(read[:length])
                if prefix in bindings:
                    edges.append((prefix, path))
    return DependencyGraph.from_edges(edges, nodes=bindings)


def _set_path(scope: dict[str, Any], path: str, value: Any) -> None:
    """Write ``value`` at dotted ``path``, copying the containers along the way."""
    head, *rest = path.split(".")
    if not rest:
        scope[head] = value
        return
    current = scope.get(head)
    container = dict(current) if isinstance(current, Mapping) else {}
    _set_path(container, ".".join(rest), value)
    scope[head] = container


def scope_value(result: LiveBinding) -> Any:
    match result:
        case Ready(value=value):
            return value
        case Loading():
            return LOADING
        case _:
            return UNDEFINED


def evaluate_bindings(
    bindings: Mapping[str, BindableAttrValue],
    scope: Mapping[str, Any],
    runtime: JsRuntime,
) -> dict[str, LiveBinding]:
    """Evaluate ``bindings`` against ``scope``.

    Args:
        bindings: Bindable values keyed by the scope path their result is stored at.
        scope: Values available to every binding.
        runtime: The expression runtime.

    Returns:
        One result per binding, in the order of ``bindings``. A binding whose own
        evaluation fails keeps its error; otherwise the first failing dependency
        makes it fail, then any loading dependency makes it load.

    """
    graph = binding_dependencies(bindings)
    results: dict[str, LiveBinding] = {}

    cyclic = graph.cyclic_nodes()
    if cyclic:
        cycle = graph.find_cycle() or sorted(cyclic)
        logger.debug(f"Binding cycle: {' -> '.join(cycle)}")
        for path in cyclic:
            msg = f"Cycle detected: {' -> '.join(cycle)}"
            results[path] = Failed(EvaluationError(msg))

    working: dict[str, Any] = dict(scope)
    for path in cyclic:
        _set_path(working, path, UNDEFINED)

    for path in graph.subgraph(graph.nodes - cyclic).topological_order():
        result = runtime.evaluate_bindable(bindings[path], working)
        if not isinstance(result, Failed):
            dependency_results = [results[d] for d in sorted(graph.ancestors(path)) if d in results]
            failed = next((r for r in dependency_results if isinstance(r, Failed)), None)
            if failed is not None:
                result = failed
            elif any(isinstance(r, Loading) for r in dependency_results):
                result = Loading()
        results[path] = result
        _set_path(working, path, scope_value(result))

    return {path: results[path] for path in bindings}
