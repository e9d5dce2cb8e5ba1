"""Sandboxed evaluation of binding expressions.

This module contains:
- parse: JavaScript-like expression source to syntax tree
- Interpreter: explicit scope lookup over the tree, no host ``eval``
- JsRuntime: lazily created isolated context returning LiveBinding results
"""

from ._ast import Expr, referenced_paths
from ._globals import TimerRegistry, build_globals
from ._interpreter import ArrowFunction, Interpreter, get_member
from ._parser import parse
from ._result import Failed, LiveBinding, Loading, Ready
from ._runtime import EvaluationContext, JsRuntime
from ._values import LOADING, UNDEFINED, to_json, to_string, truthy, typeof

__all__ = [
    "LOADING",
    "UNDEFINED",
    "ArrowFunction",
    "EvaluationContext",
    "Expr",
    "Failed",
    "Interpreter",
    "JsRuntime",
    "LiveBinding",
    "Loading",
    "Ready",
    "TimerRegistry",
    "build_globals",
    "get_member",
    "parse",
    "referenced_paths",
    "to_json",
    "to_string",
    "truthy",
    "typeof",
]
