"""Node model of the application document."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ._bindable import BindableAttrValue, ConstValue


class NodeType(StrEnum):
    """Kinds of node known to the current document version."""

    APP = "app"
    PAGE = "page"
    ELEMENT = "element"
    QUERY = "query"
    CONNECTION = "connection"
    THEME = "theme"
    CODE_COMPONENT = "codeComponent"


# Namespaces a node of each type may hold, with the type of the nodes they hold.
# Elements accept any namespace: each component slot is one.
ALLOWED_CHILDREN: dict[str, dict[str, NodeType]] = {
    NodeType.APP: {
        "pages": NodeType.PAGE,
        "connections": NodeType.CONNECTION,
        "themes": NodeType.THEME,
        "codeComponents": NodeType.CODE_COMPONENT,
    },
    NodeType.PAGE: {
        "children": NodeType.ELEMENT,
        "queries": NodeType.QUERY,
    },
}


class Node(BaseModel):
    """One addressable node of the document graph.

    The document owns every node; ``parent_id`` is only a back-reference.

    Attributes:
        id: Unique id within the document.
        type: Node kind. Kept as a plain string so that legacy kinds survive loading.
        name: Human readable name, unique within the document.
        parent_id: Id of the parent node, None for the root and for detached nodes.
        namespace: Slot of the parent this node belongs to (``pages``, ``queries``, ``children``...).
        parent_index: Fractional order key among the siblings in the same namespace.
        attributes: Node level settings (a page title, an element component, a query function...).
        props: Element component props or query parameters.

    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    type: str
    name: str
    parent_id: str | None = None
    namespace: str | None = None
    parent_index: str | None = None
    attributes: dict[str, BindableAttrValue] = Field(default_factory=dict)
    props: dict[str, BindableAttrValue] = Field(default_factory=dict)

    def const_attribute(self, key: str, default: Any = None) -> Any:
        """Return the literal value of attribute ``key``, or ``default`` when it is absent or not a literal."""
        attr = self.attributes.get(key)
        if isinstance(attr, ConstValue):
            return attr.value
        return default

    @property
    def is_attached(self) -> bool:
        return self.parent_id is not None
