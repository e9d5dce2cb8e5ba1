"""Document model: nodes, bindable values and pure editing operations."""

from ._bindable import BindableAttrValue, ConstValue, EnvValue, ExpressionValue, NodeRefValue
from ._document import CURRENT_VERSION, DEFAULT_NAMESPACE, Document, check_child_allowed
from ._node import ALLOWED_CHILDREN, Node, NodeType
from ._operations import (
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

__all__ = [
    "ALLOWED_CHILDREN",
    "CURRENT_VERSION",
    "DEFAULT_NAMESPACE",
    "BindableAttrValue",
    "ConstValue",
    "Document",
    "EnvValue",
    "ExpressionValue",
    "Node",
    "NodeRefValue",
    "NodeType",
    "add_node",
    "check_child_allowed",
    "create_document",
    "create_element",
    "create_node",
    "get_node_id_by_name",
    "move_node",
    "propose_name",
    "remove_node",
    "set_node_attribute",
    "set_node_name",
    "set_node_prop",
    "slugify_node_name",
]
