"""v2 -> v3: page ``urlQuery`` mappings become ordered ``parameters`` lists."""

from appdom._dom import ConstValue, Document, NodeType

from ._base import expect_version


def up(document: Document) -> Document:
    expect_version(document, 2)
    nodes = {}
    for node_id, node in document.nodes.items():
        url_query = node.attributes.get("urlQuery")
        if node.type != NodeType.PAGE or url_query is None:
            nodes[node_id] = node
            continue
        legacy = url_query.value if isinstance(url_query, ConstValue) else None
        parameters = [[name, default] for name, default in (legacy or {}).items()]
        attributes = {k: v for k, v in node.attributes.items() if k != "urlQuery"}
        attributes["parameters"] = ConstValue(value=parameters)
        nodes[node_id] = node.model_copy(update={"attributes": attributes})
    return document.model_copy(update={"nodes": nodes, "version": 3})
