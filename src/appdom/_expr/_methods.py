"""Built-in methods of arrays, strings and numbers."""

from __future__ import annotations

import functools
import inspect
import math
from collections.abc import Callable, Sequence
from typing import Any

from appdom._errors import EvaluationError

from ._values import (
    LOADING,
    UNDEFINED,
    format_number,
    is_array,
    is_nullish,
    is_number,
    strict_equals,
    to_number,
    to_string,
    truthy,
)

type Method = Callable[..., Any]


@functools.lru_cache(maxsize=256)
def _positional_arity(fn: Callable[..., Any]) -> int | None:
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return 1
    count = 0
    for parameter in signature.parameters.values():
        if parameter.kind == parameter.VAR_POSITIONAL:
            return None
        if parameter.kind in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD):
            count += 1
    return count


def call_callback(fn: Any, *args: Any) -> Any:
    """Invoke a callback with as many of ``args`` as it accepts.

    Callbacks receive ``(item, index, array)``; host callables declaring fewer
    positional parameters get only the leading ones.
    """
    if not callable(fn):
        msg = f"{to_string(fn)} is not a function"
        raise EvaluationError(msg)
    try:
        arity = _positional_arity(fn)
    except TypeError:
        # Unhashable callable
        arity = None
    return fn(*args) if arity is None else fn(*args[:arity])


def to_index(value: Any, length: int, default: int) -> int:
    """Resolve a relative index argument (negative counts from the end) into ``[0, length]``."""
    if value is UNDEFINED:
        return default
    number = to_number(value)
    if math.isnan(number):
        return 0
    if math.isinf(number):
        return length if number > 0 else 0
    index = int(number)
    if index < 0:
        return max(length + index, 0)
    return min(index, length)


def _same_value_zero(a: Any, b: Any) -> bool:
    if is_number(a) and is_number(b) and math.isnan(a) and math.isnan(b):
        return True
    return strict_equals(a, b)


# Arrays


def _map(arr: Sequence[Any], fn: Any) -> Any:
    result = [call_callback(fn, v, i, arr) for i, v in enumerate(arr)]
    return LOADING if any(v is LOADING for v in result) else result


def _filter(arr: Sequence[Any], fn: Any) -> list[Any]:
    return [v for i, v in enumerate(arr) if truthy(call_callback(fn, v, i, arr))]


def _find(arr: Sequence[Any], fn: Any) -> Any:
    return next((v for i, v in enumerate(arr) if truthy(call_callback(fn, v, i, arr))), UNDEFINED)


def _find_index(arr: Sequence[Any], fn: Any) -> int:
    return next((i for i, v in enumerate(arr) if truthy(call_callback(fn, v, i, arr))), -1)


def _some(arr: Sequence[Any], fn: Any) -> bool:
    return any(truthy(call_callback(fn, v, i, arr)) for i, v in enumerate(arr))


def _every(arr: Sequence[Any], fn: Any) -> bool:
    return all(truthy(call_callback(fn, v, i, arr)) for i, v in enumerate(arr))


def _for_each(arr: Sequence[Any], fn: Any) -> Any:
    for i, v in enumerate(arr):
        call_callback(fn, v, i, arr)
    return UNDEFINED


def _reduce(arr: Sequence[Any], fn: Any, *initial: Any) -> Any:
    items = list(enumerate(arr))
    if initial:
        accumulator = initial[0]
    elif items:
        accumulator = items.pop(0)[1]
    else:
        msg = "Reduce of empty array with no initial value"
        raise EvaluationError(msg)
    for i, v in items:
        accumulator = call_callback(fn, accumulator, v, i, arr)
    return accumulator


def _join(arr: Sequence[Any], separator: Any = UNDEFINED) -> str:
    sep = "," if separator is UNDEFINED else to_string(separator)
    return sep.join("" if is_nullish(v) else to_string(v) for v in arr)


def _includes(target: Any, value: Any) -> bool:
    if isinstance(target, str):
        return to_string(value) in target
    return any(_same_value_zero(v, value) for v in target)


def _index_of(target: Any, value: Any) -> int:
    if isinstance(target, str):
        return target.find(to_string(value))
    return next((i for i, v in enumerate(target) if strict_equals(v, value)), -1)


def _slice(target: Any, start: Any = UNDEFINED, end: Any = UNDEFINED) -> Any:
    length = len(target)
    result = target[to_index(start, length, 0) : to_index(end, length, length)]
    return result if isinstance(result, str) else list(result)


def _concat(arr: Sequence[Any], *others: Any) -> list[Any]:
    result = list(arr)
    for other in others:
        if is_array(other):
            result.extend(other)
        else:
            result.append(other)
    return result


def _flat(arr: Sequence[Any], depth: Any = 1) -> list[Any]:
    levels = to_number(depth)
    result: list[Any] = []
    for v in arr:
        if is_array(v) and levels >= 1:
            result.extend(_flat(v, levels - 1))
        else:
            result.append(v)
    return result


def _flat_map(arr: Sequence[Any], fn: Any) -> list[Any]:
    return _flat([call_callback(fn, v, i, arr) for i, v in enumerate(arr)], 1)


def _at(target: Any, index: Any = 0) -> Any:
    i = int(to_number(index)) if not math.isnan(to_number(index)) else 0
    if -len(target) <= i < len(target):
        return target[i]
    return UNDEFINED


def _reversed(arr: Sequence[Any]) -> list[Any]:
    return list(reversed(arr))


def _default_compare(a: Any, b: Any) -> int:
    # undefined sorts last, everything else by string value
    if a is UNDEFINED or b is UNDEFINED:
        return (a is UNDEFINED) - (b is UNDEFINED)
    sa, sb = to_string(a), to_string(b)
    return (sa > sb) - (sa < sb)


def _sorted(arr: Sequence[Any], fn: Any = UNDEFINED) -> list[Any]:
    if fn is UNDEFINED:
        return sorted(arr, key=functools.cmp_to_key(_default_compare))

    def compare(a: Any, b: Any) -> int:
        result = to_number(call_callback(fn, a, b))
        if math.isnan(result):
            return 0
        return (result > 0) - (result < 0)

    return sorted(arr, key=functools.cmp_to_key(compare))


ARRAY_METHODS: dict[str, Method] = {
    "map": _map,
    "filter": _filter,
    "find": _find,
    "findIndex": _find_index,
    "some": _some,
    "every": _every,
    "forEach": _for_each,
    "reduce": _reduce,
    "join": _join,
    "includes": _includes,
    "indexOf": _index_of,
    "slice": _slice,
    "concat": _concat,
    "flat": _flat,
    "flatMap": _flat_map,
    "at": _at,
    "toReversed": _reversed,
    "toSorted": _sorted,
    # The mutating variants return copies: expressions never modify the scope
    "reverse": _reversed,
    "sort": _sorted,
    "toString": _join,
}


# Strings


def _split(s: str, separator: Any = UNDEFINED, limit: Any = UNDEFINED) -> list[str]:
    if separator is UNDEFINED:
        parts = [s]
    elif to_string(separator) == "":
        parts = list(s)
    else:
        parts = s.split(to_string(separator))
    if limit is not UNDEFINED:
        parts = parts[: max(int(to_number(limit)), 0)]
    return parts


def _substring(s: str, start: Any = 0, end: Any = UNDEFINED) -> str:
    def clamp(value: Any, default: int) -> int:
        if value is UNDEFINED:
            return default
        number = to_number(value)
        if math.isnan(number):
            return 0
        return int(min(max(number, 0), len(s)))

    a, b = clamp(start, 0), clamp(end, len(s))
    return s[min(a, b) : max(a, b)]


def _replace(s: str, pattern: Any, replacement: Any, count: int = 1) -> str:
    needle = to_string(pattern)
    if callable(replacement):
        parts = s.split(needle, count if count > 0 else -1)
        if len(parts) == 1:
            return s
        out = parts[0]
        for part in parts[1:]:
            out += to_string(replacement(needle)) + part
        return out
    return s.replace(needle, to_string(replacement), count)


def _pad(s: str, length: Any, fill: Any, *, start: bool) -> str:
    target = int(to_number(length)) if not math.isnan(to_number(length)) else 0
    filler = " " if fill is UNDEFINED else to_string(fill)
    if target <= len(s) or not filler:
        return s
    padding = (filler * (target // len(filler) + 1))[: target - len(s)]
    return padding + s if start else s + padding


def _char_at(s: str, index: Any = 0) -> str:
    i = int(to_number(index)) if not math.isnan(to_number(index)) else 0
    return s[i] if 0 <= i < len(s) else ""


def _repeat(s: str, count: Any) -> str:
    n = to_number(count)
    if math.isnan(n) or n < 0 or math.isinf(n):
        msg = f"Invalid count value: {to_string(count)}"
        raise EvaluationError(msg)
    return s * int(n)


STRING_METHODS: dict[str, Method] = {
    "toUpperCase": str.upper,
    "toLowerCase": str.lower,
    "trim": str.strip,
    "trimStart": str.lstrip,
    "trimEnd": str.rstrip,
    "split": _split,
    "includes": _includes,
    "startsWith": lambda s, prefix: s.startswith(to_string(prefix)),
    "endsWith": lambda s, suffix: s.endswith(to_string(suffix)),
    "indexOf": _index_of,
    "slice": _slice,
    "substring": _substring,
    "replace": lambda s, pattern, replacement: _replace(s, pattern, replacement, 1),
    "replaceAll": lambda s, pattern, replacement: _replace(s, pattern, replacement, -1),
    "padStart": lambda s, length, fill=UNDEFINED: _pad(s, length, fill, start=True),
    "padEnd": lambda s, length, fill=UNDEFINED: _pad(s, length, fill, start=False),
    "charAt": _char_at,
    "at": _at,
    "repeat": _repeat,
    "concat": lambda s, *parts: s + "".join(to_string(p) for p in parts),
    "toString": lambda s: s,
}


# Numbers


def _to_fixed(x: float, digits: Any = 0) -> str:
    d = int(to_number(digits)) if digits is not UNDEFINED else 0
    if not 0 <= d <= 100:  # noqa: PLR2004
        msg = "toFixed() digits argument must be between 0 and 100"
        raise EvaluationError(msg)
    if math.isnan(x) or math.isinf(x):
        return format_number(x)
    return f"{x:.{d}f}"


_RADIX_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _number_to_string(x: float, radix: Any = UNDEFINED) -> str:
    base = 10 if radix is UNDEFINED else int(to_number(radix))
    if not 2 <= base <= 36:  # noqa: PLR2004
        msg = "toString() radix must be between 2 and 36"
        raise EvaluationError(msg)
    if base == 10 or not float(x).is_integer():  # noqa: PLR2004
        return format_number(x)
    n = int(x)
    if n == 0:
        return "0"
    digits = []
    magnitude = abs(n)
    while magnitude:
        magnitude, remainder = divmod(magnitude, base)
        digits.append(_RADIX_DIGITS[remainder])
    return ("-" if n < 0 else "") + "".join(reversed(digits))


NUMBER_METHODS: dict[str, Method] = {
    "toFixed": _to_fixed,
    "toString": _number_to_string,
}

BOOLEAN_METHODS: dict[str, Method] = {
    "toString": lambda b: "true" if b else "false",
}
