"""Tests for evaluating pages and fetching their queries."""

from collections.abc import Iterator
from pathlib import Path

import pytest

from appdom._dom import (
    ConstValue,
    Document,
    ExpressionValue,
    NodeRefValue,
    NodeType,
    add_node,
    create_document,
    create_element,
    create_node,
    get_node_id_by_name,
)
from appdom._errors import NotFoundError
from appdom._expr import Failed, JsRuntime, Loading, Ready
from appdom._functions import FunctionRuntime
from appdom._page import evaluate_page, fetch_page_queries, page_parameters, resolve_node_ref

QUERY_MODULE = """
def get_users(user_id):
    return [{"id": user_id}, {"id": "admin"}]


def broken():
    raise ValueError("database is down")
"""


@pytest.fixture
def runtime() -> Iterator[JsRuntime]:
    runtime = JsRuntime()
    yield runtime
    runtime.close()


@pytest.fixture
def document() -> Document:
    doc = create_document()
    page = create_node(
        doc,
        NodeType.PAGE,
        name="Home",
        attributes={"parameters": ConstValue(value=[["userId", "1"], ["tab", "main"]])},
    )
    doc = add_node(doc, page, doc.root, "pages")

    users = create_node(
        doc,
        NodeType.QUERY,
        name="users",
        attributes={"module": ConstValue(value="users_fns.py"), "function": ConstValue(value="get_users")},
        props={"userId": ExpressionValue(value="page.parameters.userId")},
    )
    doc = add_node(doc, users, page.id, "queries")

    title = create_element(doc, "Text", name="title", props={"value": ExpressionValue(value="users.rows.length")})
    doc = add_node(doc, title, page.id)
    container = create_element(doc, "Container", name="box")
    doc = add_node(doc, container, page.id)
    label = create_element(
        doc,
        "Text",
        name="label",
        props={
            "value": NodeRefValue(node_id=title.id, path="value"),
            "tab": ExpressionValue(value="`tab: ${page.parameters.tab}`"),
        },
    )
    return add_node(doc, label, container.id, "content")


def _page_id(document: Document) -> str:
    return get_node_id_by_name(document, "home")


class TestPageParameters:
    """Tests for page_parameters."""

    def test_defaults(self, document: Document) -> None:
        page = document.get_node(_page_id(document))
        assert page_parameters(page) == {"userId": "1", "tab": "main"}

    def test_overrides(self, document: Document) -> None:
        page = document.get_node(_page_id(document))
        assert page_parameters(page, {"userId": "7"}) == {"userId": "7", "tab": "main"}

    def test_page_without_parameters(self) -> None:
        doc = create_document()
        page = create_node(doc, NodeType.PAGE)
        assert page_parameters(page) == {}


class TestResolveNodeRef:
    """Tests for resolve_node_ref."""

    def test_reference_becomes_expression(self, document: Document) -> None:
        title_id = get_node_id_by_name(document, "title")
        assert resolve_node_ref(document, NodeRefValue(node_id=title_id, path="value")) == ExpressionValue(
            value="title.value",
        )
        assert resolve_node_ref(document, NodeRefValue(node_id=title_id)) == ExpressionValue(value="title")

    def test_missing_node_is_kept(self, document: Document) -> None:
        ref = NodeRefValue(node_id="ghost")
        assert resolve_node_ref(document, ref) is ref

    def test_other_values_are_kept(self, document: Document) -> None:
        value = ConstValue(value=1)
        assert resolve_node_ref(document, value) is value


class TestEvaluatePage:
    """Tests for evaluate_page."""

    def test_queries_without_results_are_loading(self, document: Document, runtime: JsRuntime) -> None:
        evaluation = evaluate_page(document, _page_id(document), runtime)
        assert evaluation.element_props("title") == {"value": Loading()}
        assert evaluation.element_props("label") == {"value": Loading(), "tab": Ready("tab: main")}
        assert evaluation.scope.values["users"]["isLoading"] is True

    def test_with_query_results(self, document: Document, runtime: JsRuntime) -> None:
        evaluation = evaluate_page(
            document,
            _page_id(document),
            runtime,
            query_results={"users": Ready([{"id": 1}, {"id": 2}])},
            parameters={"tab": "details"},
        )
        assert evaluation.bindings == {
            "title.value": Ready(2),
            "label.value": Ready(2),
            "label.tab": Ready("tab: details"),
        }
        assert evaluation.scope.values["label"] == {"value": 2, "tab": "tab: details"}
        assert evaluation.scope.values["box"] == {}
        assert evaluation.scope.meta["title"].component_id == "Text"
        assert evaluation.scope.values["page"] == {"parameters": {"userId": "1", "tab": "details"}}

    def test_failed_query_fails_dependents(self, document: Document, runtime: JsRuntime) -> None:
        evaluation = evaluate_page(
            document,
            _page_id(document),
            runtime,
            query_results={"users": Failed(ValueError("down"))},
        )
        assert evaluation.scope.values["users"]["error"] == {"message": "down", "type": "ValueError"}
        assert evaluation.element_props("title") == {"value": Ready(0)}

    def test_unknown_page(self, document: Document, runtime: JsRuntime) -> None:
        with pytest.raises(NotFoundError):
            evaluate_page(document, document.root, runtime)


class TestFetchPageQueries:
    """Tests for fetch_page_queries."""

    @pytest.fixture
    def resources(self, tmp_path: Path) -> Path:
        (tmp_path / "users_fns.py").write_text(QUERY_MODULE)
        return tmp_path

    async def test_runs_query_with_page_parameters(
        self,
        document: Document,
        runtime: JsRuntime,
        resources: Path,
    ) -> None:
        results = await fetch_page_queries(
            document,
            _page_id(document),
            FunctionRuntime(),
            runtime,
            resources,
            parameters={"userId": "7"},
        )
        assert results == {"users": Ready([{"id": "7"}, {"id": "admin"}])}

    async def test_function_error_is_failed(self, document: Document, runtime: JsRuntime, resources: Path) -> None:
        page_id = _page_id(document)
        query = create_node(
            document,
            NodeType.QUERY,
            name="stats",
            attributes={"module": ConstValue(value="users_fns.py"), "function": ConstValue(value="broken")},
        )
        document = add_node(document, query, page_id, "queries")

        results = await fetch_page_queries(document, page_id, FunctionRuntime(), runtime, resources)

        assert isinstance(results["users"], Ready)
        failed = results["stats"]
        assert isinstance(failed, Failed)
        assert failed.message == "database is down"

    async def test_query_without_function(self, document: Document, runtime: JsRuntime, resources: Path) -> None:
        page_id = _page_id(document)
        document = add_node(document, create_node(document, NodeType.QUERY, name="empty"), page_id, "queries")

        results = await fetch_page_queries(document, page_id, FunctionRuntime(), runtime, resources)

        failed = results["empty"]
        assert isinstance(failed, Failed)
        assert isinstance(failed.error, NotFoundError)

    async def test_failed_parameter(self, document: Document, runtime: JsRuntime, resources: Path) -> None:
        page_id = _page_id(document)
        query = create_node(
            document,
            NodeType.QUERY,
            name="bad",
            attributes={"module": ConstValue(value="users_fns.py"), "function": ConstValue(value="get_users")},
            props={"userId": ExpressionValue(value="page.missing.value")},
        )
        document = add_node(document, query, page_id, "queries")

        results = await fetch_page_queries(document, page_id, FunctionRuntime(), runtime, resources)

        failed = results["bad"]
        assert isinstance(failed, Failed)
        assert "reading 'value'" in failed.message

    async def test_fetched_results_feed_page_evaluation(
        self,
        document: Document,
        runtime: JsRuntime,
        resources: Path,
    ) -> None:
        page_id = _page_id(document)
        results = await fetch_page_queries(document, page_id, FunctionRuntime(), runtime, resources)
        evaluation = evaluate_page(document, page_id, runtime, query_results=results)
        assert evaluation.element_props("label")["value"] == Ready(2)
