"""v0 -> v1: give every attached node a fractional parent index."""

from collections import defaultdict

from appdom._dom import Document, Node
from appdom._fractional_index import generate_key_between

from ._base import expect_version


def up(document: Document) -> Document:
    expect_version(document, 0)

    # Nodes without a key keep their stored order and go after their indexed siblings
    last_key: dict[tuple[str, str | None], str | None] = {}
    missing: defaultdict[tuple[str, str | None], list[Node]] = defaultdict(list)
    for node in document.nodes.values():
        if node.parent_id is None:
            continue
        slot = (node.parent_id, node.namespace)
        if node.parent_index is None:
            missing[slot].append(node)
        else:
            current = last_key.get(slot)
            last_key[slot] = node.parent_index if current is None else max(current, node.parent_index)

    nodes = dict(document.nodes)
    for slot, unindexed in missing.items():
        key = last_key.get(slot)
        for node in unindexed:
            key = generate_key_between(key, None)
            nodes[node.id] = node.model_copy(update={"parent_index": key})

    return document.model_copy(update={"nodes": nodes, "version": 1})
