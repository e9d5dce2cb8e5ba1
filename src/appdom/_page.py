"""Evaluation of a whole page: parameters, queries and element props.

A page scope holds one entry per query (its state), one per element (its
evaluated props) and ``page`` with the page parameters. Element props and query
parameters are bindings evaluated with ``evaluate_bindings``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ._bindings import evaluate_bindings, scope_value
from ._dom import ExpressionValue, NodeRefValue, NodeType
from ._errors import NotFoundError
from ._expr import Failed, Loading, Ready
from ._scope import PageScope, ScopeBuilder

if TYPE_CHECKING:
    from pathlib import Path

    from ._dom import BindableAttrValue, Document, Node
    from ._expr import JsRuntime, LiveBinding
    from ._functions import FunctionRuntime

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PageEvaluation:
    """Result of evaluating a page.

    Attributes:
        scope: The final page scope, elements holding their evaluated props.
        bindings: Every element prop binding keyed by ``"<element>.<prop>"``.

    """

    scope: PageScope
    bindings: Mapping[str, LiveBinding]

    def element_props(self, element_name: str) -> dict[str, LiveBinding]:
        prefix = f"{element_name}."
        return {path.removeprefix(prefix): result for path, result in self.bindings.items() if path.startswith(prefix)}


def resolve_node_ref(document: Document, bindable: BindableAttrValue) -> BindableAttrValue:
    """Turn a reference to a node into an expression reading it by name.

    References to missing nodes are returned unchanged and fail when evaluated.
    """
    if not isinstance(bindable, NodeRefValue):
        return bindable
    node = document.get_maybe_node(bindable.node_id)
    if node is None:
        return bindable
    code = f"{node.name}.{bindable.path}" if bindable.path else node.name
    return ExpressionValue(value=code)


def page_parameters(page: Node, overrides: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Declared ``[name, default]`` parameters of ``page``, with ``overrides`` applied."""
    declared = page.const_attribute("parameters", [])
    values: dict[str, Any] = {}
    for item in declared:
        name, default = item
        values[name] = default
    if overrides:
        values.update(overrides)
    return values


def _page_elements(document: Document, page: Node) -> list[Node]:
    return [node for node in document.get_descendants(page) if node.type == NodeType.ELEMENT]


def _base_scope(
    document: Document,
    page: Node,
    query_results: Mapping[str, LiveBinding],
    parameters: Mapping[str, Any] | None,
) -> ScopeBuilder:
    builder = ScopeBuilder().add_other("page", {"parameters": page_parameters(page, parameters)})
    for query in document.get_children(page, "queries"):
        builder.add_query(query.name, query_results.get(query.name, Loading()))
    return builder


def evaluate_page(
    document: Document,
    page_id: str,
    runtime: JsRuntime,
    *,
    query_results: Mapping[str, LiveBinding] | None = None,
    parameters: Mapping[str, Any] | None = None,
) -> PageEvaluation:
    """Evaluate every element prop of a page.

    Args:
        document: The application document.
        page_id: Id of the page node.
        runtime: Expression runtime.
        query_results: Known query results by query name; queries without one are loading.
        parameters: Values of page parameters, overriding their defaults.

    Returns:
        The page scope and the result of every element prop.

    Raises:
        NotFoundError: If ``page_id`` is not a page of ``document``.

    """
    page = document.get_node(page_id, NodeType.PAGE)
    query_results = query_results or {}
    elements = _page_elements(document, page)

    bindings: dict[str, BindableAttrValue] = {}
    for element in elements:
        for prop, bindable in element.props.items():
            bindings[f"{element.name}.{prop}"] = resolve_node_ref(document, bindable)

    base = _base_scope(document, page, query_results, parameters).build()
    results = evaluate_bindings(bindings, base.values, runtime)

    builder = _base_scope(document, page, query_results, parameters)
    for element in elements:
        props = {prop: scope_value(results[f"{element.name}.{prop}"]) for prop in element.props}
        builder.add_element(element.name, props, element.const_attribute("component"))

    failed = [path for path, result in results.items() if isinstance(result, Failed)]
    if failed:
        logger.debug(f"Failed bindings on page {page.name}: {', '.join(failed)}")
    return PageEvaluation(scope=builder.build(), bindings=results)


async def fetch_query(
    document: Document,
    query: Node,
    function_runtime: FunctionRuntime,
    runtime: JsRuntime,
    scope: Mapping[str, Any],
    resources_dir: Path,
) -> LiveBinding:
    """Run one query node: call its ``function`` from its ``module`` with its props as parameters.

    The query fails if a parameter fails and is loading if a parameter is
    loading. Errors raised by the function are returned as ``Failed``.
    """
    module = query.const_attribute("module")
    function = query.const_attribute("function")
    if not module or not function:
        msg = f"Query '{query.name}' has no module or function"
        return Failed(NotFoundError(msg))

    params = [runtime.evaluate_bindable(resolve_node_ref(document, b), scope) for b in query.props.values()]
    for param in params:
        if isinstance(param, Failed):
            return param
    if any(isinstance(param, Loading) for param in params):
        return Loading()

    values = [param.value for param in params if isinstance(param, Ready)]
    try:
        data = await function_runtime.execute(resources_dir / module, function, values)
    except Exception as error:  # noqa: BLE001
        logger.warning(f"Query {query.name} failed: {error}")
        return Failed(error)
    return Ready(data)


async def fetch_page_queries(
    document: Document,
    page_id: str,
    function_runtime: FunctionRuntime,
    runtime: JsRuntime,
    resources_dir: Path,
    *,
    parameters: Mapping[str, Any] | None = None,
) -> dict[str, LiveBinding]:
    """Run every query of a page, in sibling order.

    Query parameters see the page parameters only. Returns results by query name.
    """
    page = document.get_node(page_id, NodeType.PAGE)
    scope = ScopeBuilder().add_other("page", {"parameters": page_parameters(page, parameters)}).build()
    results: dict[str, LiveBinding] = {}
    for query in document.get_children(page, "queries"):
        logger.debug(f"Fetching query {query.name}")
        results[query.name] = await fetch_query(
            document, query, function_runtime, runtime, scope.values, resources_dir
        )
    return results
