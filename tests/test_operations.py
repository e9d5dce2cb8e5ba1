"""Tests for pure document editing operations."""

import pytest

from appdom._dom import (
    CURRENT_VERSION,
    ConstValue,
    Document,
    ExpressionValue,
    NodeType,
    add_node,
    create_document,
    create_element,
    create_node,
    get_node_id_by_name,
    move_node,
    propose_name,
    remove_node,
    set_node_attribute,
    set_node_name,
    set_node_prop,
    slugify_node_name,
)
from appdom._errors import DocumentIntegrityError, NotFoundError


@pytest.fixture
def document() -> Document:
    doc = create_document("My App")
    page = create_node(doc, NodeType.PAGE, name="Home")
    return add_node(doc, page, doc.root, "pages")


def _page_id(document: Document) -> str:
    return get_node_id_by_name(document, "home")


class TestNaming:
    """Tests for node name helpers."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Home", "home"),
            ("my button", "myButton"),
            ("Crème brûlée 2", "cremeBrulee2"),
            ("2nd page", "ndPage"),
            ("!!!", ""),
        ],
    )
    def test_slugify(self, name: str, expected: str) -> None:
        assert slugify_node_name(name) == expected

    def test_propose_name_free(self) -> None:
        assert propose_name("button", {"text"}) == "button"

    def test_propose_name_taken(self) -> None:
        assert propose_name("button", {"button", "button1"}) == "button2"

    def test_propose_name_strips_trailing_digits(self) -> None:
        assert propose_name("button1", {"button1"}) == "button2"


class TestCreate:
    """Tests for node and document creation."""

    def test_create_document(self) -> None:
        doc = create_document()
        assert doc.version == CURRENT_VERSION
        assert doc.get_app().name == "Application"
        doc.check_integrity()

    def test_created_node_is_detached(self, document: Document) -> None:
        node = create_node(document, NodeType.QUERY)
        assert not node.is_attached
        assert node.id not in document

    def test_created_names_are_unique(self, document: Document) -> None:
        first = create_element(document, "Button")
        document = add_node(document, first, _page_id(document))
        second = create_element(document, "Button")
        assert (first.name, second.name) == ("button", "button1")

    def test_create_element_sets_component(self, document: Document) -> None:
        element = create_element(document, "TextField", props={"label": ConstValue(value="Name")})
        assert element.const_attribute("component") == "TextField"
        assert element.props["label"] == ConstValue(value="Name")


class TestAddNode:
    """Tests for add_node."""

    def test_appends_after_last_sibling(self, document: Document) -> None:
        page_id = _page_id(document)
        for component in ["Text", "Button", "Image"]:
            document = add_node(document, create_element(document, component), page_id)
        names = [n.name for n in document.get_children(page_id)]
        assert names == ["text", "button", "image"]
        document.check_integrity()

    def test_insert_at_explicit_index(self, document: Document) -> None:
        page_id = _page_id(document)
        document = add_node(document, create_element(document, "Text"), page_id)
        document = add_node(document, create_element(document, "Button"), page_id, parent_index="Zz")
        assert [n.name for n in document.get_children(page_id)] == ["button", "text"]

    def test_input_is_not_modified(self, document: Document) -> None:
        before = document.model_copy(deep=True)
        add_node(document, create_element(document, "Text"), _page_id(document))
        assert document == before

    def test_rejects_attached_node(self, document: Document) -> None:
        page = document.get_node(_page_id(document))
        with pytest.raises(DocumentIntegrityError, match="already attached"):
            add_node(document, page, document.root, "pages")

    def test_rejects_wrong_namespace(self, document: Document) -> None:
        with pytest.raises(DocumentIntegrityError, match="holds element nodes"):
            add_node(document, create_node(document, NodeType.QUERY), _page_id(document), "children")

    def test_missing_parent(self, document: Document) -> None:
        with pytest.raises(NotFoundError):
            add_node(document, create_element(document, "Text"), "ghost")


class TestMoveAndRemove:
    """Tests for move_node and remove_node."""

    @pytest.fixture
    def nested(self, document: Document) -> Document:
        page_id = _page_id(document)
        container = create_element(document, "Container")
        document = add_node(document, container, page_id)
        document = add_node(document, create_element(document, "Text"), container.id, "content")
        return add_node(document, create_element(document, "Button"), page_id)

    def test_move_into_slot(self, nested: Document) -> None:
        button = get_node_id_by_name(nested, "button")
        container = get_node_id_by_name(nested, "container")
        moved = move_node(nested, button, container, "content")
        assert [n.name for n in moved.get_children(container, "content")] == ["text", "button"]
        moved.check_integrity()

    def test_move_into_own_subtree(self, nested: Document) -> None:
        container = get_node_id_by_name(nested, "container")
        text = get_node_id_by_name(nested, "text")
        with pytest.raises(DocumentIntegrityError, match="own subtree"):
            move_node(nested, container, text, "content")

    def test_move_root(self, nested: Document) -> None:
        with pytest.raises(DocumentIntegrityError, match="root node cannot be moved"):
            move_node(nested, nested.root, _page_id(nested))

    def test_remove_with_descendants(self, nested: Document) -> None:
        removed = remove_node(nested, get_node_id_by_name(nested, "container"))
        assert removed.get_node_by_name("text") is None
        assert removed.get_node_by_name("button") is not None
        removed.check_integrity()

    def test_remove_root(self, nested: Document) -> None:
        with pytest.raises(DocumentIntegrityError, match="root node cannot be removed"):
            remove_node(nested, nested.root)


class TestSetters:
    """Tests for name, attribute and prop setters."""

    def test_set_node_name(self, document: Document) -> None:
        renamed = set_node_name(document, _page_id(document), "landing")
        assert renamed.get_node_by_name("landing") is not None

    def test_set_node_name_taken(self, document: Document) -> None:
        with pytest.raises(DocumentIntegrityError, match="already taken"):
            set_node_name(document, _page_id(document), "My App")

    def test_set_and_delete_attribute(self, document: Document) -> None:
        page_id = _page_id(document)
        document = set_node_attribute(document, page_id, "title", ConstValue(value="Welcome"))
        assert document.get_node(page_id).const_attribute("title") == "Welcome"
        document = set_node_attribute(document, page_id, "title", None)
        assert "title" not in document.get_node(page_id).attributes

    def test_set_prop(self, document: Document) -> None:
        page_id = _page_id(document)
        text = create_element(document, "Text")
        document = add_node(document, text, page_id)
        document = set_node_prop(document, text.id, "value", ExpressionValue(value="1 + 1"))
        assert document.get_node(text.id).props["value"] == ExpressionValue(value="1 + 1")

    def test_get_node_id_by_name_missing(self, document: Document) -> None:
        with pytest.raises(NotFoundError, match="No node named"):
            get_node_id_by_name(document, "nope")
