"""Tree-walking interpreter for binding expressions.

Identifiers are resolved explicitly: first in the evaluation scope, then in
the allow-listed ambient globals; anything else is ``undefined``. Host object
attributes starting with an underscore, modules, frames, code objects and
suspended generators or coroutines are never reachable.

A ``LOADING`` placeholder read anywhere turns the whole expression into
``LOADING`` instead of raising.
"""

from __future__ import annotations

import functools
import logging
import math
from collections import ChainMap
from collections.abc import Mapping
from types import (
    AsyncGeneratorType,
    CodeType,
    CoroutineType,
    FrameType,
    GeneratorType,
    MappingProxyType,
    ModuleType,
    TracebackType,
)
from typing import Any

from appdom._errors import EvaluationError

from ._ast import (
    ArrayExpr,
    Arrow,
    Binary,
    Call,
    Chain,
    Conditional,
    Expr,
    Identifier,
    Literal,
    Logical,
    Member,
    ObjectExpr,
    Property,
    Spread,
    TemplateLiteral,
    Unary,
)
from ._methods import ARRAY_METHODS, BOOLEAN_METHODS, NUMBER_METHODS, STRING_METHODS
from ._values import (
    LOADING,
    UNDEFINED,
    is_array,
    is_nullish,
    is_number,
    is_object,
    loose_equals,
    strict_equals,
    to_number,
    to_primitive,
    to_string,
    truthy,
    typeof,
)

logger = logging.getLogger(__name__)

# Frames expose `f_builtins` and `f_globals`, so interpreter internals are
# neither readable nor returned from host attribute access.
_OPAQUE_TYPES = (ModuleType, FrameType, CodeType, TracebackType, GeneratorType, CoroutineType, AsyncGeneratorType)


class _ShortCircuit(Exception):  # noqa: N818
    """An optional chain met ``null``/``undefined``."""


class ArrowFunction:
    """A closure created by an arrow function expression."""

    __slots__ = ("_interpreter", "_node", "_scope")

    def __init__(self, node: Arrow, scope: Mapping[str, Any], interpreter: Interpreter) -> None:
        self._node = node
        self._scope = scope
        self._interpreter = interpreter

    def __call__(self, *args: Any) -> Any:
        params = self._node.params
        local: dict[str, Any] = {name: args[i] if i < len(args) else UNDEFINED for i, name in enumerate(params)}
        if self._node.rest is not None:
            local[self._node.rest] = list(args[len(params) :])
        return self._interpreter.evaluate(self._node.body, ChainMap(local, self._scope))

    def __repr__(self) -> str:
        return f"<arrow function ({', '.join(self._node.params)})>"


def _array_index(key: Any) -> int | None:
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key if key >= 0 else None
    if isinstance(key, float) and key.is_integer() and key >= 0:
        return int(key)
    if isinstance(key, str) and key.isascii() and key.isdigit():
        return int(key)
    return None


def get_member(obj: Any, key: Any) -> Any:  # noqa: C901, PLR0911, PLR0912
    """Read property ``key`` of ``obj``."""
    if is_nullish(obj):
        msg = f"Cannot read properties of {to_string(obj)} (reading '{to_string(key)}')"
        raise EvaluationError(msg)

    if isinstance(obj, Mapping):
        name = key if isinstance(key, str) else to_string(key)
        if name in obj:
            return obj[name]
        if isinstance(key, int) and not isinstance(key, bool) and key in obj:
            return obj[key]
        return UNDEFINED

    if is_array(obj) or isinstance(obj, str):
        index = _array_index(key)
        if index is not None:
            return obj[index] if index < len(obj) else UNDEFINED
        if key == "length":
            return len(obj)
        methods = STRING_METHODS if isinstance(obj, str) else ARRAY_METHODS
        method = methods.get(key) if isinstance(key, str) else None
        return functools.partial(method, obj) if method is not None else UNDEFINED

    if isinstance(obj, bool) or is_number(obj):
        methods = BOOLEAN_METHODS if isinstance(obj, bool) else NUMBER_METHODS
        method = methods.get(key) if isinstance(key, str) else None
        return functools.partial(method, obj) if method is not None else UNDEFINED

    name = to_string(key)
    if name.startswith("_") or isinstance(obj, _OPAQUE_TYPES):
        return UNDEFINED
    value = getattr(obj, name, UNDEFINED)
    return UNDEFINED if isinstance(value, _OPAQUE_TYPES) else value


def _divide(x: float, y: float) -> float:
    if y == 0:
        if x == 0 or math.isnan(x):
            return math.nan
        return math.copysign(math.inf, x) * math.copysign(1, y)
    if isinstance(x, int) and isinstance(y, int) and x % y == 0:
        return x // y
    return x / y


def _remainder(x: float, y: float) -> float:
    if y == 0 or math.isnan(x) or math.isnan(y) or math.isinf(x):
        return math.nan
    if math.isinf(y):
        return x
    if isinstance(x, int) and isinstance(y, int):
        result = abs(x) % abs(y)
        return -result if x < 0 else result
    return math.fmod(x, y)


def _power(x: float, y: float) -> float:
    if isinstance(x, int) and isinstance(y, int) and y >= 0:
        return x**y
    try:
        result = float(x) ** float(y)
    except OverflowError:
        return math.inf
    except ZeroDivisionError:
        return math.inf
    return math.nan if isinstance(result, complex) else result


def _compare(operator: str, a: Any, b: Any) -> bool:
    a, b = to_primitive(a), to_primitive(b)
    if not (isinstance(a, str) and isinstance(b, str)):
        a, b = to_number(a), to_number(b)
        if math.isnan(a) or math.isnan(b):
            return False
    match operator:
        case "<":
            return a < b
        case ">":
            return a > b
        case "<=":
            return a <= b
        case _:
            return a >= b


def _has_property(key: Any, target: Any) -> bool:
    if is_object(target):
        return to_string(key) in target
    if is_array(target):
        index = _array_index(key)
        return (index is not None and index < len(target)) or key == "length"
    msg = f"Cannot use 'in' operator to search for '{to_string(key)}' in {to_string(target)}"
    raise EvaluationError(msg)


def binary_operation(operator: str, a: Any, b: Any) -> Any:  # noqa: C901, PLR0911
    """Apply a non-logical binary operator."""
    match operator:
        case "+":
            a, b = to_primitive(a), to_primitive(b)
            if isinstance(a, str) or isinstance(b, str):
                return to_string(a) + to_string(b)
            return to_number(a) + to_number(b)
        case "-":
            return to_number(a) - to_number(b)
        case "*":
            return to_number(a) * to_number(b)
        case "/":
            return _divide(to_number(a), to_number(b))
        case "%":
            return _remainder(to_number(a), to_number(b))
        case "**":
            return _power(to_number(a), to_number(b))
        case "==":
            return loose_equals(a, b)
        case "!=":
            return not loose_equals(a, b)
        case "===":
            return strict_equals(a, b)
        case "!==":
            return not strict_equals(a, b)
        case "<" | ">" | "<=" | ">=":
            return _compare(operator, a, b)
        case "in":
            return _has_property(a, b)
    msg = f"Unsupported operator {operator!r}"
    raise EvaluationError(msg)


def _describe(node: Expr) -> str:
    match node:
        case Identifier(name=name):
            return name
        case Literal(value=str(value)):
            return f'"{value}"'
        case Literal(value=value):
            return to_string(value)
        case Call(callee=callee):
            return f"{_describe(callee)}(...)"
        case Member(obj=obj, prop=Literal(value=key), computed=False):
            return f"{_describe(obj)}.{key}"
        case _:
            return "expression"


def root_scope(scope: Mapping[str, Any]) -> Mapping[str, Any]:
    while isinstance(scope, ChainMap):
        scope = scope.maps[-1]
    return scope


class Interpreter:
    """Evaluates syntax trees against a scope.

    Args:
        ambient: Allow-listed globals reachable when a name is not in scope.

    """

    def __init__(self, ambient: Mapping[str, Any]) -> None:
        self.ambient = ambient

    def evaluate(self, node: Expr, scope: Mapping[str, Any]) -> Any:  # noqa: C901, PLR0911, PLR0912
        match node:
            case Literal(value=value):
                return value
            case Identifier(name=name):
                return self.lookup(name, scope)
            case TemplateLiteral(quasis=quasis, expressions=expressions):
                values = [self.evaluate(e, scope) for e in expressions]
                if any(v is LOADING for v in values):
                    return LOADING
                parts = [quasis[0]]
                for value, quasi in zip(values, quasis[1:], strict=True):
                    parts.extend((to_string(value), quasi))
                return "".join(parts)
            case ArrayExpr(elements=elements):
                return self._array(elements, scope)
            case ObjectExpr(properties=properties):
                return self._object(properties, scope)
            case Member():
                obj = self.evaluate(node.obj, scope)
                if obj is LOADING:
                    return LOADING
                if node.optional and is_nullish(obj):
                    raise _ShortCircuit
                key = self.evaluate(node.prop, scope) if node.computed else node.prop.value  # type: ignore[union-attr]
                if key is LOADING:
                    return LOADING
                return get_member(obj, key)
            case Call():
                return self._call(node, scope)
            case Chain(expression=expression):
                try:
                    return self.evaluate(expression, scope)
                except _ShortCircuit:
                    return UNDEFINED
            case Unary(operator=operator, operand=operand):
                value = self.evaluate(operand, scope)
                if value is LOADING:
                    return LOADING
                match operator:
                    case "!":
                        return not truthy(value)
                    case "-":
                        return -to_number(value)
                    case "+":
                        return to_number(value)
                    case _:
                        return typeof(value)
            case Binary(operator=operator, left=left, right=right):
                a = self.evaluate(left, scope)
                b = self.evaluate(right, scope)
                if a is LOADING or b is LOADING:
                    return LOADING
                return binary_operation(operator, a, b)
            case Logical(operator=operator, left=left, right=right):
                a = self.evaluate(left, scope)
                if a is LOADING:
                    return LOADING
                match operator:
                    case "&&":
                        return self.evaluate(right, scope) if truthy(a) else a
                    case "||":
                        return a if truthy(a) else self.evaluate(right, scope)
                    case _:
                        return self.evaluate(right, scope) if is_nullish(a) else a
            case Conditional(test=test, consequent=consequent, alternate=alternate):
                condition = self.evaluate(test, scope)
                if condition is LOADING:
                    return LOADING
                return self.evaluate(consequent if truthy(condition) else alternate, scope)
            case Arrow():
                return ArrowFunction(node, scope, self)
        msg = f"Cannot evaluate {type(node).__name__}"
        raise EvaluationError(msg)

    def lookup(self, name: str, scope: Mapping[str, Any]) -> Any:
        if name in scope:
            return scope[name]
        if name == "globalThis":
            return MappingProxyType(root_scope(scope))  # type: ignore[arg-type]
        return self.ambient.get(name, UNDEFINED)

    def _spread_values(self, value: Any) -> list[Any]:
        if is_array(value):
            return list(value)
        if isinstance(value, str):
            return list(value)
        msg = f"{to_string(value)} is not iterable"
        raise EvaluationError(msg)

    def _array(self, elements: tuple[Expr | Spread, ...], scope: Mapping[str, Any]) -> Any:
        result: list[Any] = []
        for element in elements:
            if isinstance(element, Spread):
                value = self.evaluate(element.argument, scope)
                if value is LOADING:
                    return LOADING
                result.extend(self._spread_values(value))
            else:
                result.append(self.evaluate(element, scope))
        return LOADING if any(v is LOADING for v in result) else result

    def _object(self, properties: tuple[Property | Spread, ...], scope: Mapping[str, Any]) -> Any:
        result: dict[str, Any] = {}
        for prop in properties:
            if isinstance(prop, Spread):
                value = self.evaluate(prop.argument, scope)
                if value is LOADING:
                    return LOADING
                if is_object(value):
                    result.update({to_string(k): v for k, v in value.items()})
                elif is_array(value) or isinstance(value, str):
                    result.update({str(i): v for i, v in enumerate(value)})
                continue
            key = self.evaluate(prop.key, scope)
            value = self.evaluate(prop.value, scope)
            if key is LOADING or value is LOADING:
                return LOADING
            result[to_string(key)] = value
        return result

    def _arguments(self, arguments: tuple[Expr | Spread, ...], scope: Mapping[str, Any]) -> list[Any]:
        values: list[Any] = []
        for argument in arguments:
            if isinstance(argument, Spread):
                spread = self.evaluate(argument.argument, scope)
                values.extend([LOADING] if spread is LOADING else self._spread_values(spread))
            else:
                values.append(self.evaluate(argument, scope))
        return values

    def _call(self, node: Call, scope: Mapping[str, Any]) -> Any:
        callee = node.callee
        if isinstance(callee, Member):
            obj = self.evaluate(callee.obj, scope)
            if obj is LOADING:
                return LOADING
            if callee.optional and is_nullish(obj):
                raise _ShortCircuit
            key = self.evaluate(callee.prop, scope) if callee.computed else callee.prop.value  # type: ignore[union-attr]
            if key is LOADING:
                return LOADING
            fn = get_member(obj, key)
        else:
            fn = self.evaluate(callee, scope)
        if fn is LOADING:
            return LOADING
        if node.optional and is_nullish(fn):
            raise _ShortCircuit
        args = self._arguments(node.arguments, scope)
        if any(a is LOADING for a in args):
            return LOADING
        if not callable(fn):
            msg = f"{_describe(callee)} is not a function"
            raise EvaluationError(msg)
        return fn(*args)
