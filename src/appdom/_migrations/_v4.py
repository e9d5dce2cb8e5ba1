"""v3 -> v4: ``Typography`` elements are replaced by the ``Text`` component."""

import re

from appdom._dom import ConstValue, Document, NodeType

from ._base import expect_version

_LEGACY_NAME = re.compile(r"Typography|Link", re.IGNORECASE)


def up(document: Document) -> Document:
    expect_version(document, 3)
    nodes = {}
    for node_id, node in document.nodes.items():
        if node.type == NodeType.ELEMENT and node.const_attribute("component") == "Typography":
            attributes = {**node.attributes, "component": ConstValue(value="Text")}
            node = node.model_copy(update={"name": _LEGACY_NAME.sub("text", node.name), "attributes": attributes})  # noqa: PLW2901
        nodes[node_id] = node
    return document.model_copy(update={"nodes": nodes, "version": 4})
