"""Tests for the document model and its integrity checks."""

import pytest

from appdom._dom import ConstValue, Document, Node, NodeType, check_child_allowed
from appdom._errors import DocumentIntegrityError, NotFoundError


def _node(node_id: str, node_type: str, parent: str | None, namespace: str | None, index: str | None) -> Node:
    return Node(id=node_id, type=node_type, name=node_id, parent_id=parent, namespace=namespace, parent_index=index)


def _document(*nodes: Node, root: str = "app", version: int = 4) -> Document:
    return Document(version=version, root=root, nodes={n.id: n for n in nodes})


@pytest.fixture
def document() -> Document:
    return _document(
        _node("app", NodeType.APP, None, None, None),
        _node("page1", NodeType.PAGE, "app", "pages", "a0"),
        _node("page2", NodeType.PAGE, "app", "pages", "Zz"),
        _node("button", NodeType.ELEMENT, "page1", "children", "a1"),
        _node("text", NodeType.ELEMENT, "page1", "children", "a0"),
        _node("query", NodeType.QUERY, "page1", "queries", "a0"),
        _node("nested", NodeType.ELEMENT, "button", "content", "a0"),
    )


class TestDocumentQueries:
    """Tests for read-only document queries."""

    def test_get_node(self, document: Document) -> None:
        assert document.get_node("page1").type == NodeType.PAGE

    def test_get_node_missing(self, document: Document) -> None:
        with pytest.raises(NotFoundError, match="not found"):
            document.get_node("nope")

    def test_get_node_wrong_type(self, document: Document) -> None:
        with pytest.raises(NotFoundError, match="expected page"):
            document.get_node("button", NodeType.PAGE)

    def test_not_found_is_lookup_error(self, document: Document) -> None:
        with pytest.raises(LookupError):
            document.get_node("nope")

    def test_get_app(self, document: Document) -> None:
        assert document.get_app().id == "app"

    def test_children_sorted_by_parent_index(self, document: Document) -> None:
        assert [n.id for n in document.get_children("app", "pages")] == ["page2", "page1"]
        assert [n.id for n in document.get_children("page1")] == ["text", "button"]

    def test_child_namespaces(self, document: Document) -> None:
        assert document.get_child_namespaces("page1") == ["children", "queries"]
        assert document.get_child_namespaces("text") == []

    def test_descendants_depth_first(self, document: Document) -> None:
        page = document.get_node("page1")
        assert [n.id for n in document.get_descendants(page)] == ["text", "button", "nested", "query"]

    def test_ancestors_from_root(self, document: Document) -> None:
        nested = document.get_node("nested")
        assert [n.id for n in document.get_ancestors(nested)] == ["app", "page1", "button"]

    def test_page_ancestor(self, document: Document) -> None:
        assert document.get_page_ancestor(document.get_node("nested")).id == "page1"
        assert document.get_page_ancestor(document.get_node("app")) is None

    def test_nodes_by_type_and_name(self, document: Document) -> None:
        assert {n.id for n in document.get_nodes_by_type(NodeType.ELEMENT)} == {"button", "text", "nested"}
        assert document.get_node_by_name("query").id == "query"
        assert document.get_node_by_name("nope") is None

    def test_len_and_contains(self, document: Document) -> None:
        assert len(document) == 7
        assert "page1" in document
        assert "nope" not in document

    def test_const_attribute(self) -> None:
        node = Node(id="x", type=NodeType.ELEMENT, name="x", attributes={"component": ConstValue(value="Button")})
        assert node.const_attribute("component") == "Button"
        assert node.const_attribute("missing", "default") == "default"


class TestCheckIntegrity:
    """Tests for Document.check_integrity."""

    def test_valid_document(self, document: Document) -> None:
        document.check_integrity()

    def test_missing_root(self) -> None:
        doc = _document(_node("page", NodeType.PAGE, "app", "pages", "a0"))
        with pytest.raises(DocumentIntegrityError, match="Root node 'app' does not exist"):
            doc.check_integrity()

    def test_root_must_be_app(self) -> None:
        doc = _document(_node("app", NodeType.PAGE, None, None, None))
        with pytest.raises(DocumentIntegrityError, match="expected app"):
            doc.check_integrity()

    def test_id_mismatch(self) -> None:
        app = _node("app", NodeType.APP, None, None, None)
        doc = Document(version=4, root="app", nodes={"app": app, "other": _node("page", "page", "app", "pages", "a0")})
        with pytest.raises(DocumentIntegrityError, match="declares id 'page'"):
            doc.check_integrity()

    def test_dangling_parent(self) -> None:
        doc = _document(
            _node("app", NodeType.APP, None, None, None),
            _node("orphan", NodeType.ELEMENT, "ghost", "children", "a0"),
        )
        with pytest.raises(DocumentIntegrityError, match="missing parent 'ghost'"):
            doc.check_integrity()

    def test_detached_node(self) -> None:
        doc = _document(
            _node("app", NodeType.APP, None, None, None),
            _node("loose", NodeType.PAGE, None, None, None),
        )
        with pytest.raises(DocumentIntegrityError, match="not attached"):
            doc.check_integrity()

    def test_duplicate_sibling_index(self) -> None:
        doc = _document(
            _node("app", NodeType.APP, None, None, None),
            _node("p1", NodeType.PAGE, "app", "pages", "a0"),
            _node("p2", NodeType.PAGE, "app", "pages", "a0"),
        )
        with pytest.raises(DocumentIntegrityError, match="shares parent index"):
            doc.check_integrity()

    def test_missing_index_allowed_when_not_required(self) -> None:
        doc = _document(
            _node("app", NodeType.APP, None, None, None),
            _node("p1", NodeType.PAGE, "app", "pages", None),
        )
        doc.check_integrity(require_order_keys=False)
        with pytest.raises(DocumentIntegrityError, match="no parent index"):
            doc.check_integrity()

    def test_parent_cycle(self) -> None:
        doc = _document(
            _node("app", NodeType.APP, None, None, None),
            _node("a", NodeType.ELEMENT, "b", "children", "a0"),
            _node("b", NodeType.ELEMENT, "a", "children", "a0"),
        )
        with pytest.raises(DocumentIntegrityError, match="Cycle"):
            doc.check_integrity()


class TestCheckChildAllowed:
    """Tests for check_child_allowed."""

    def test_page_in_app(self) -> None:
        check_child_allowed(_node("app", "app", None, None, None), "pages", _node("p", "page", None, None, None))

    def test_unknown_namespace(self) -> None:
        with pytest.raises(DocumentIntegrityError, match="no 'children' namespace"):
            check_child_allowed(_node("app", "app", None, None, None), "children", _node("p", "page", None, None, None))

    def test_wrong_child_type(self) -> None:
        with pytest.raises(DocumentIntegrityError, match="holds query nodes"):
            check_child_allowed(_node("p", "page", None, None, None), "queries", _node("e", "element", None, None, None))

    def test_element_slots_hold_elements(self) -> None:
        element = _node("e", "element", None, None, None)
        check_child_allowed(element, "anySlot", _node("c", "element", None, None, None))
        with pytest.raises(DocumentIntegrityError, match="only hold elements"):
            check_child_allowed(element, "anySlot", _node("q", "query", None, None, None))
