"""The versioned application document and its read-only queries."""

import logging
from collections import defaultdict

from pydantic import BaseModel, ConfigDict, Field

from appdom._errors import DocumentIntegrityError, NotFoundError

from ._node import ALLOWED_CHILDREN, Node, NodeType

logger = logging.getLogger(__name__)

CURRENT_VERSION = 4
"""Schema version produced by the latest migration."""

DEFAULT_NAMESPACE = "children"


class Document(BaseModel):
    """One application, stored as a flat mapping of nodes.

    Parent/child structure is derived from each node's ``parent_id`` and
    ``namespace``; sibling order from its ``parent_index``. The document is
    immutable: editing operations return a new document.

    Attributes:
        version: Schema version. Absent in old documents, which means 0.
        root: Id of the application node.
        nodes: All nodes, keyed by id.

    """

    model_config = ConfigDict(frozen=True)

    version: int = Field(default=0, ge=0)
    root: str
    nodes: dict[str, Node]

    def __len__(self) -> int:
        """Return the number of nodes in the document."""
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        """Check if a node id is in the document."""
        return node_id in self.nodes

    def get_maybe_node(self, node_id: str) -> Node | None:
        return self.nodes.get(node_id)

    def get_node(self, node_id: str, node_type: str | None = None) -> Node:
        """Look up a node by id.

        Args:
            node_id: The node id.
            node_type: If given, the node must be of this type.

        Returns:
            The node.

        Raises:
            NotFoundError: If no node has this id, or it has another type.

        """
        node = self.nodes.get(node_id)
        if node is None:
            msg = f"Node '{node_id}' not found"
            raise NotFoundError(msg)
        if node_type is not None and node.type != node_type:
            msg = f"Node '{node_id}' is a {node.type}, expected {node_type}"
            raise NotFoundError(msg)
        return node

    def get_app(self) -> Node:
        return self.get_node(self.root, NodeType.APP)

    def get_parent(self, node: Node) -> Node | None:
        if node.parent_id is None:
            return None
        return self.get_maybe_node(node.parent_id)

    def get_children(self, parent: Node | str, namespace: str = DEFAULT_NAMESPACE) -> list[Node]:
        """Children of ``parent`` in one namespace, in sibling order.

        Raises:
            DocumentIntegrityError: If a child has no order key.

        """
        parent_id = parent if isinstance(parent, str) else parent.id
        children = [n for n in self.nodes.values() if n.parent_id == parent_id and n.namespace == namespace]
        for child in children:
            if child.parent_index is None:
                msg = f"Node '{child.id}' has no parent index"
                raise DocumentIntegrityError(msg)
        return sorted(children, key=lambda n: (n.parent_index, n.id))

    def get_child_namespaces(self, parent: Node | str) -> list[str]:
        """Namespaces of ``parent`` that hold at least one child, sorted by name."""
        parent_id = parent if isinstance(parent, str) else parent.id
        return sorted(
            {n.namespace for n in self.nodes.values() if n.parent_id == parent_id and n.namespace is not None},
        )

    def get_child_nodes(self, parent: Node | str) -> dict[str, list[Node]]:
        """All children of ``parent`` grouped by namespace."""
        return {ns: self.get_children(parent, ns) for ns in self.get_child_namespaces(parent)}

    def get_descendants(self, node: Node) -> list[Node]:
        """All nodes below ``node``, depth first in sibling order."""
        result: list[Node] = []
        for children in self.get_child_nodes(node).values():
            for child in children:
                result.append(child)
                result.extend(self.get_descendants(child))
        return result

    def get_ancestors(self, node: Node) -> list[Node]:
        """Ancestors of ``node``, starting from the root."""
        ancestors: list[Node] = []
        seen = {node.id}
        current = self.get_parent(node)
        while current is not None:
            if current.id in seen:
                msg = f"Cycle in parent chain of node '{node.id}'"
                raise DocumentIntegrityError(msg)
            seen.add(current.id)
            ancestors.append(current)
            current = self.get_parent(current)
        ancestors.reverse()
        return ancestors

    def get_page_ancestor(self, node: Node) -> Node | None:
        """Return the page ``node`` lives on (``node`` itself if it is a page)."""
        if node.type == NodeType.PAGE:
            return node
        for ancestor in reversed(self.get_ancestors(node)):
            if ancestor.type == NodeType.PAGE:
                return ancestor
        return None

    def get_node_by_name(self, name: str) -> Node | None:
        for node in self.nodes.values():
            if node.name == name:
                return node
        return None

    def get_nodes_by_type(self, node_type: str) -> list[Node]:
        return [n for n in self.nodes.values() if n.type == node_type]

    def get_existing_names(self) -> set[str]:
        return {n.name for n in self.nodes.values()}

    def check_integrity(self, *, require_order_keys: bool = True) -> None:  # noqa: C901, PLR0912
        """Validate the structural invariants of the document.

        Args:
            require_order_keys: Whether every attached node must carry a parent index.
                Documents older than version 1 do not have them yet.

        Raises:
            DocumentIntegrityError: On the first violated invariant.

        """
        for key, node in self.nodes.items():
            if key != node.id:
                msg = f"Node stored under '{key}' declares id '{node.id}'"
                raise DocumentIntegrityError(msg)

        root = self.nodes.get(self.root)
        if root is None:
            msg = f"Root node '{self.root}' does not exist"
            raise DocumentIntegrityError(msg)
        if root.type != NodeType.APP:
            msg = f"Root node '{self.root}' is a {root.type}, expected {NodeType.APP}"
            raise DocumentIntegrityError(msg)
        if root.parent_id is not None:
            msg = "Root node must not have a parent"
            raise DocumentIntegrityError(msg)

        siblings: defaultdict[tuple[str, str | None], set[str]] = defaultdict(set)
        for node in self.nodes.values():
            if node.id == self.root:
                continue
            if node.parent_id is None:
                msg = f"Node '{node.id}' is not attached to the document"
                raise DocumentIntegrityError(msg)
            if node.parent_id not in self.nodes:
                msg = f"Node '{node.id}' references missing parent '{node.parent_id}'"
                raise DocumentIntegrityError(msg)
            if node.namespace is None:
                msg = f"Node '{node.id}' has no namespace"
                raise DocumentIntegrityError(msg)
            if require_order_keys:
                if node.parent_index is None:
                    msg = f"Node '{node.id}' has no parent index"
                    raise DocumentIntegrityError(msg)
                slot = (node.parent_id, node.namespace)
                if node.parent_index in siblings[slot]:
                    msg = f"Node '{node.id}' shares parent index '{node.parent_index}' with a sibling"
                    raise DocumentIntegrityError(msg)
                siblings[slot].add(node.parent_index)

        # Every chain must reach the root without revisiting a node
        for node in self.nodes.values():
            self.get_ancestors(node)

        logger.debug(f"Document v{self.version} with {len(self)} nodes passed integrity checks")


def check_child_allowed(parent: Node, namespace: str, child: Node) -> None:
    """Raise if ``child`` cannot be placed in ``namespace`` of ``parent``.

    Raises:
        DocumentIntegrityError: If the namespace or the child type is not accepted.

    """
    if parent.type == NodeType.ELEMENT:
        if child.type != NodeType.ELEMENT:
            msg = f"Element slots only hold elements, got {child.type}"
            raise DocumentIntegrityError(msg)
        return
    allowed = ALLOWED_CHILDREN.get(parent.type, {})
    expected = allowed.get(namespace)
    if expected is None:
        msg = f"A {parent.type} node has no '{namespace}' namespace"
        raise DocumentIntegrityError(msg)
    if child.type != expected:
        msg = f"Namespace '{namespace}' of a {parent.type} holds {expected} nodes, got {child.type}"
        raise DocumentIntegrityError(msg)
