"""Syntax tree of binding expressions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Literal:
    value: Any


@dataclass(frozen=True, slots=True)
class Identifier:
    name: str


@dataclass(frozen=True, slots=True)
class TemplateLiteral:
    quasis: tuple[str, ...]
    expressions: tuple[Expr, ...]


@dataclass(frozen=True, slots=True)
class Spread:
    argument: Expr


@dataclass(frozen=True, slots=True)
class ArrayExpr:
    elements: tuple[Expr | Spread, ...]


@dataclass(frozen=True, slots=True)
class Property:
    key: Expr
    value: Expr
    computed: bool = False


@dataclass(frozen=True, slots=True)
class ObjectExpr:
    properties: tuple[Property | Spread, ...]


@dataclass(frozen=True, slots=True)
class Member:
    """Property access. ``prop`` is a ``Literal`` name unless ``computed``."""

    obj: Expr
    prop: Expr
    computed: bool = False
    optional: bool = False


@dataclass(frozen=True, slots=True)
class Call:
    callee: Expr
    arguments: tuple[Expr | Spread, ...]
    optional: bool = False


@dataclass(frozen=True, slots=True)
class Chain:
    """Boundary of an optional chain: a short-circuit inside yields ``undefined`` here."""

    expression: Expr


@dataclass(frozen=True, slots=True)
class Unary:
    operator: str
    operand: Expr


@dataclass(frozen=True, slots=True)
class Binary:
    operator: str
    left: Expr
    right: Expr


@dataclass(frozen=True, slots=True)
class Logical:
    operator: str
    left: Expr
    right: Expr


@dataclass(frozen=True, slots=True)
class Conditional:
    test: Expr
    consequent: Expr
    alternate: Expr


@dataclass(frozen=True, slots=True)
class Arrow:
    params: tuple[str, ...]
    body: Expr
    rest: str | None = None


type Expr = (
    Literal
    | Identifier
    | TemplateLiteral
    | ArrayExpr
    | ObjectExpr
    | Member
    | Call
    | Chain
    | Unary
    | Binary
    | Logical
    | Conditional
    | Arrow
)


def member_path(node: Expr) -> list[str] | None:
    """Return ``["a", "b", "c"]`` for ``a.b.c`` or ``a["b"].c``, None for anything else."""
    match node:
        case Identifier(name=name):
            return [name]
        case Member(obj=obj, prop=Literal(value=key)) if isinstance(key, str | int) and not isinstance(key, bool):
            base = member_path(obj)
            return None if base is None else [*base, str(key)]
        case Chain(expression=expression):
            return member_path(expression)
        case _:
            return None


def iter_children(node: Expr | Spread | Property) -> list[Expr | Spread | Property]:
    """Direct sub-nodes of ``node``, in source order."""
    match node:
        case TemplateLiteral(expressions=expressions):
            return list(expressions)
        case Spread(argument=argument):
            return [argument]
        case ArrayExpr(elements=elements):
            return list(elements)
        case ObjectExpr(properties=properties):
            return list(properties)
        case Property(key=key, value=value, computed=computed):
            return [key, value] if computed else [value]
        case Member(obj=obj, prop=prop, computed=computed):
            return [obj, prop] if computed else [obj]
        case Call(callee=callee, arguments=arguments):
            return [callee, *arguments]
        case Chain(expression=expression):
            return [expression]
        case Unary(operand=operand):
            return [operand]
        case Binary(left=left, right=right) | Logical(left=left, right=right):
            return [left, right]
        case Conditional(test=test, consequent=consequent, alternate=alternate):
            return [test, consequent, alternate]
        case Arrow(body=body):
            return [body]
        case _:
            return []


def referenced_paths(node: Expr) -> set[tuple[str, ...]]:
    """Longest static member paths read by an expression.

    ``a.b.c + d[0]`` reads ``("a", "b", "c")`` and ``("d", "0")``. Names bound
    by arrow function parameters are not references.
    """
    found: set[tuple[str, ...]] = set()

    def visit(current: Expr | Spread | Property, bound: frozenset[str]) -> None:
        if isinstance(current, Member | Identifier | Chain):
            path = member_path(current)
            if path is not None:
                if path[0] not in bound:
                    found.add(tuple(path))
                return
        if isinstance(current, Arrow):
            params = {*current.params, *([current.rest] if current.rest else [])}
            visit(current.body, bound | params)
            return
        for child in iter_children(current):
            visit(child, bound)

    visit(node, frozenset())
    return found
