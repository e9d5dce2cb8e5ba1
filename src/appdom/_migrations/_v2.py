"""v1 -> v2: fold legacy ``queryState`` nodes into ``query`` nodes."""

from appdom._dom import Document, NodeType

from ._base import expect_version

LEGACY_QUERY_TYPE = "queryState"
LEGACY_QUERY_NAMESPACE = "queryStates"


def up(document: Document) -> Document:
    expect_version(document, 1)
    nodes = {}
    for node_id, node in document.nodes.items():
        changes: dict[str, object] = {}
        if node.type == LEGACY_QUERY_TYPE:
            changes["type"] = NodeType.QUERY.value
        if node.namespace == LEGACY_QUERY_NAMESPACE:
            changes["namespace"] = "queries"
        nodes[node_id] = node.model_copy(update=changes) if changes else node
    return document.model_copy(update={"nodes": nodes, "version": 2})
