"""Value model of binding expressions.

Expressions operate on plain Python values: ``None`` is ``null``, ``dict`` is
an object, ``list``/``tuple`` an array, ``int``/``float`` a number. Two
sentinels complete the model: ``UNDEFINED`` and ``LOADING``, a placeholder for
data that has not arrived yet.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from typing import Any, Final

from appdom._errors import LoadingSignal


class _Undefined:
    __slots__ = ()

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False


class _Loading:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<loading>"

    def __bool__(self) -> bool:
        return False


UNDEFINED: Final = _Undefined()
LOADING: Final = _Loading()


def is_nullish(value: Any) -> bool:
    return value is None or value is UNDEFINED


def is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def is_array(value: Any) -> bool:
    return isinstance(value, list | tuple)


def is_object(value: Any) -> bool:
    return isinstance(value, Mapping)


def typeof(value: Any) -> str:
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if callable(value):
        return "function"
    return "object"


def truthy(value: Any) -> bool:
    """Truthiness of ``value``: empty arrays and objects are truthy, NaN is not."""
    if is_nullish(value) or value is LOADING:
        return False
    if isinstance(value, bool):
        return value
    if is_number(value):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def format_number(value: float) -> str:
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:  # noqa: PLR2004
        return str(int(value))
    return repr(value)


def to_string(value: Any) -> str:
    """String conversion as done by string concatenation and template literals."""
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        return format_number(value)
    if is_array(value):
        return ",".join("" if is_nullish(v) else to_string(v) for v in value)
    if is_object(value):
        return "[object Object]"
    if callable(value):
        return "function () { [native code] }"
    return str(value)


_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_RADIX_PREFIXES = {"0x": 16, "0o": 8, "0b": 2}


def _parse_numeric_string(value: str) -> float:
    text = value.strip()
    if not text:
        return 0
    if text in ("Infinity", "+Infinity", "-Infinity"):
        return -math.inf if text.startswith("-") else math.inf
    radix = _RADIX_PREFIXES.get(text[:2].lower())
    if radix is not None:
        try:
            return int(text[2:], radix) if "_" not in text else math.nan
        except ValueError:
            return math.nan
    if not _DECIMAL.fullmatch(text):
        return math.nan
    number = float(text)
    return int(number) if number.is_integer() and re.fullmatch(r"[+-]?\d+", text) else number


def to_number(value: Any) -> float:
    """Numeric conversion; returns an ``int`` when the value is integral."""
    if isinstance(value, bool):
        return int(value)
    if is_number(value):
        return value
    if value is None:
        return 0
    if isinstance(value, str):
        return _parse_numeric_string(value)
    if is_array(value):
        if not value:
            return 0
        if len(value) == 1:
            return to_number(value[0])
    return math.nan


def to_primitive(value: Any) -> Any:
    if is_array(value) or is_object(value) or callable(value):
        return to_string(value)
    return value


def strict_equals(a: Any, b: Any) -> bool:
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    if isinstance(a, bool) and isinstance(b, bool):
        return a == b
    return a is b


def loose_equals(a: Any, b: Any) -> bool:
    if is_nullish(a) and is_nullish(b):
        return True
    if is_nullish(a) or is_nullish(b):
        return False
    if typeof(a) == typeof(b):
        return strict_equals(a, b)
    if isinstance(a, bool) or isinstance(b, bool):
        return loose_equals(to_number(a), to_number(b))
    if (is_number(a) and isinstance(b, str)) or (isinstance(a, str) and is_number(b)):
        return to_number(a) == to_number(b)
    if is_array(a) or is_object(a):
        return loose_equals(to_primitive(a), b)
    if is_array(b) or is_object(b):
        return loose_equals(a, to_primitive(b))
    return False


def _json_default(value: Any) -> Any:
    if isinstance(value, tuple):
        return list(value)
    if isinstance(value, Mapping):
        return dict(value)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def _strip_undefined(value: Any) -> Any:
    if value is LOADING:
        raise LoadingSignal
    if is_object(value):
        return {str(k): _strip_undefined(v) for k, v in value.items() if v is not UNDEFINED and not callable(v)}
    if is_array(value):
        return [None if v is UNDEFINED or callable(v) else _strip_undefined(v) for v in value]
    if is_number(value) and not math.isfinite(value):
        return None
    return value


def to_json(value: Any, indent: int | str | None = None) -> str | _Undefined:
    """JSON text of ``value``; undefined and functions are dropped like ``JSON.stringify`` does.

    Raises:
        LoadingSignal: When ``value`` holds a ``LOADING`` placeholder.

    """
    if value is UNDEFINED or callable(value):
        return UNDEFINED
    if isinstance(indent, int | float) and not isinstance(indent, bool):
        indent = min(int(indent), 10) or None
    separators = (",", ":") if indent is None else (",", ": ")
    return json.dumps(_strip_undefined(value), indent=indent, separators=separators, default=_json_default)


def contains_loading(value: Any, _seen: set[int] | None = None) -> bool:
    """Whether ``value`` is, or nests inside objects and arrays, a ``LOADING`` placeholder."""
    if value is LOADING:
        return True
    if not (is_object(value) or is_array(value)):
        return False
    seen = set() if _seen is None else _seen
    if id(value) in seen:
        return False
    seen.add(id(value))
    items = value.values() if is_object(value) else value
    return any(contains_loading(item, seen) for item in items)
