"""Pure editing operations on documents.

Every operation returns a new ``Document`` and leaves its input untouched.
"""

import logging
import re
import unicodedata
import uuid
from collections.abc import Iterable, Mapping

from appdom._errors import DocumentIntegrityError, NotFoundError
from appdom._fractional_index import generate_key_between

from ._bindable import BindableAttrValue, ConstValue
from ._document import CURRENT_VERSION, DEFAULT_NAMESPACE, Document, check_child_allowed
from ._node import Node, NodeType

logger = logging.getLogger(__name__)


def slugify_node_name(name: str) -> str:
    """Turn free text into a valid identifier-like node name.

    Example:
        >>> slugify_node_name("Crème brûlée 2")
        'cremeBrulee2'

    """
    ascii_name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    words = [w for w in re.split(r"[^A-Za-z0-9]+", ascii_name) if w]
    if not words:
        return ""
    camel = words[0][0].lower() + words[0][1:] + "".join(w[0].upper() + w[1:] for w in words[1:])
    return re.sub(r"^[^A-Za-z_$]+", "", camel)


def propose_name(candidate: str, disallowed: Iterable[str]) -> str:
    """Return ``candidate`` or the first free ``candidate<n>`` variant."""
    taken = set(disallowed)
    if candidate not in taken:
        return candidate
    base = re.sub(r"\d+$", "", candidate)
    counter = 1
    while f"{base}{counter}" in taken:
        counter += 1
    return f"{base}{counter}"


def create_node(
    document: Document,
    node_type: str,
    *,
    name: str | None = None,
    attributes: Mapping[str, BindableAttrValue] | None = None,
    props: Mapping[str, BindableAttrValue] | None = None,
) -> Node:
    """Create a detached node with a fresh id and a name unique in ``document``.

    The node is not part of ``document`` until passed to ``add_node``.
    """
    candidate = slugify_node_name(name or node_type) or str(node_type)
    return Node(
        id=uuid.uuid4().hex,
        type=node_type,
        name=propose_name(candidate, document.get_existing_names()),
        attributes=dict(attributes or {}),
        props=dict(props or {}),
    )


def create_element(
    document: Document,
    component: str,
    *,
    name: str | None = None,
    props: Mapping[str, BindableAttrValue] | None = None,
) -> Node:
    """Create a detached element node rendering ``component``."""
    return create_node(
        document,
        NodeType.ELEMENT,
        name=name or component,
        attributes={"component": ConstValue(value=component)},
        props=props,
    )


def create_document(name: str = "Application") -> Document:
    """Create an empty document at the current version."""
    app = Node(id=uuid.uuid4().hex, type=NodeType.APP, name=name)
    return Document(version=CURRENT_VERSION, root=app.id, nodes={app.id: app})


def _last_index(document: Document, parent_id: str, namespace: str) -> str | None:
    children = document.get_children(parent_id, namespace)
    return children[-1].parent_index if children else None


def _with_nodes(document: Document, nodes: dict[str, Node]) -> Document:
    return document.model_copy(update={"nodes": nodes})


def add_node(
    document: Document,
    node: Node,
    parent: Node | str,
    namespace: str = DEFAULT_NAMESPACE,
    parent_index: str | None = None,
) -> Document:
    """Attach a detached node under ``parent``.

    Args:
        document: The document to add to.
        node: A node returned by ``create_node``.
        parent: The parent node or its id.
        namespace: The parent's slot to place the node in.
        parent_index: Order key; defaults to after the last sibling.

    Returns:
        The new document.

    Raises:
        DocumentIntegrityError: If the node is already attached, its id is taken,
            or the parent does not accept it in ``namespace``.
        NotFoundError: If the parent does not exist.

    """
    if node.is_attached or node.id in document:
        msg = f"Node '{node.id}' is already attached"
        raise DocumentIntegrityError(msg)
    parent_node = document.get_node(parent if isinstance(parent, str) else parent.id)
    check_child_allowed(parent_node, namespace, node)
    if parent_index is None:
        parent_index = generate_key_between(_last_index(document, parent_node.id, namespace), None)
    attached = node.model_copy(
        update={"parent_id": parent_node.id, "namespace": namespace, "parent_index": parent_index},
    )
    logger.debug(f"Adding {node.type} '{node.name}' to {parent_node.name}.{namespace}")
    return _with_nodes(document, {**document.nodes, node.id: attached})


def move_node(
    document: Document,
    node_id: str,
    parent_id: str,
    namespace: str = DEFAULT_NAMESPACE,
    parent_index: str | None = None,
) -> Document:
    """Move an attached node to another parent, namespace or position.

    Raises:
        DocumentIntegrityError: If the move would place the node under itself
            or one of its descendants, or targets the root.

    """
    node = document.get_node(node_id)
    parent = document.get_node(parent_id)
    if node.id == document.root:
        msg = "The root node cannot be moved"
        raise DocumentIntegrityError(msg)
    if parent.id == node.id or any(a.id == node.id for a in document.get_ancestors(parent)):
        msg = f"Cannot move node '{node.name}' into its own subtree"
        raise DocumentIntegrityError(msg)
    check_child_allowed(parent, namespace, node)
    if parent_index is None:
        siblings = [n for n in document.get_children(parent.id, namespace) if n.id != node.id]
        parent_index = generate_key_between(siblings[-1].parent_index if siblings else None, None)
    moved = node.model_copy(update={"parent_id": parent.id, "namespace": namespace, "parent_index": parent_index})
    return _with_nodes(document, {**document.nodes, node.id: moved})


def remove_node(document: Document, node_id: str) -> Document:
    """Remove a node together with all of its descendants.

    Raises:
        DocumentIntegrityError: If ``node_id`` is the root.

    """
    node = document.get_node(node_id)
    if node.id == document.root:
        msg = "The root node cannot be removed"
        raise DocumentIntegrityError(msg)
    removed = {node.id} | {d.id for d in document.get_descendants(node)}
    logger.debug(f"Removing {len(removed)} node(s) rooted at '{node.name}'")
    return _with_nodes(document, {k: v for k, v in document.nodes.items() if k not in removed})


def _replace_node(document: Document, node: Node, **changes: object) -> Document:
    return _with_nodes(document, {**document.nodes, node.id: node.model_copy(update=changes)})


def set_node_name(document: Document, node_id: str, name: str) -> Document:
    """Rename a node.

    Raises:
        DocumentIntegrityError: If another node already has this name.

    """
    node = document.get_node(node_id)
    existing = document.get_node_by_name(name)
    if existing is not None and existing.id != node.id:
        msg = f"Node name '{name}' is already taken"
        raise DocumentIntegrityError(msg)
    return _replace_node(document, node, name=name)


def set_node_attribute(document: Document, node_id: str, key: str, value: BindableAttrValue | None) -> Document:
    """Set (or with ``None``, delete) attribute ``key`` of a node."""
    node = document.get_node(node_id)
    attributes = {k: v for k, v in node.attributes.items() if k != key}
    if value is not None:
        attributes[key] = value
    return _replace_node(document, node, attributes=attributes)


def set_node_prop(document: Document, node_id: str, key: str, value: BindableAttrValue | None) -> Document:
    """Set (or with ``None``, delete) prop ``key`` of a node."""
    node = document.get_node(node_id)
    props = {k: v for k, v in node.props.items() if k != key}
    if value is not None:
        props[key] = value
    return _replace_node(document, node, props=props)


def get_node_id_by_name(document: Document, name: str) -> str:
    """Return the id of the node called ``name``.

    Raises:
        NotFoundError: If no node has this name.

    """
    node = document.get_node_by_name(name)
    if node is None:
        msg = f"No node named '{name}'"
        raise NotFoundError(msg)
    return node.id
