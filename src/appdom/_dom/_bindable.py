"""Bindable attribute values: literals, live expressions and references."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _BindableBase(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ConstValue(_BindableBase):
    """A literal, JSON-serializable value."""

    type: Literal["const"] = "const"
    value: Any = None


class ExpressionValue(_BindableBase):
    """A binding expression evaluated against the page scope."""

    type: Literal["jsExpression"] = "jsExpression"
    value: str


class NodeRefValue(_BindableBase):
    """A reference into another node's output.

    Attributes:
        node_id: Id of the referenced node.
        path: Dotted path inside the referenced node's scope entry (empty for the whole entry).

    """

    type: Literal["nodeRef"] = "nodeRef"
    node_id: str
    path: str = ""


class EnvValue(_BindableBase):
    """A reference to an environment variable, resolved by the runtime."""

    type: Literal["env"] = "env"
    name: str


BindableAttrValue = Annotated[
    ConstValue | ExpressionValue | NodeRefValue | EnvValue,
    Field(discriminator="type"),
]
