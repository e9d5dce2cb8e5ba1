"""Ambient globals reachable from binding expressions.

Only this allow-list is visible besides the evaluation scope: the standard
language globals (``Math``, ``JSON``, ``Array``...), structured console output
routed to logging, URL parsing and timer scheduling.
"""

from __future__ import annotations

import functools
import itertools
import json
import logging
import math
import random
import re
import threading
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Any
from urllib.parse import parse_qsl, quote, unquote, urlencode, urljoin, urlsplit

from ._methods import call_callback
from ._values import (
    UNDEFINED,
    is_array,
    is_nullish,
    is_number,
    is_object,
    to_json,
    to_number,
    to_string,
    truthy,
)

console_logger = logging.getLogger("appdom.console")


def _numeric(fn: Callable[..., float]) -> Callable[..., float]:
    @functools.wraps(fn)
    def wrapper(*args: Any) -> float:
        return fn(*(to_number(a) for a in args))

    return wrapper


def _finite_or(value: float, fn: Callable[[float], float]) -> float:
    return value if math.isnan(value) or math.isinf(value) else fn(value)


def _math_round(x: float) -> float:
    return _finite_or(x, lambda v: math.floor(v + 0.5))


def _math_max(*values: float) -> float:
    if any(math.isnan(v) for v in values):
        return math.nan
    return max(values, default=-math.inf)


def _math_min(*values: float) -> float:
    if any(math.isnan(v) for v in values):
        return math.nan
    return min(values, default=math.inf)


def _math_sqrt(x: float) -> float:
    return math.nan if x < 0 or math.isnan(x) else math.sqrt(x)


def _math_log(x: float) -> float:
    if math.isnan(x) or x < 0:
        return math.nan
    return -math.inf if x == 0 else math.log(x)


def _math_pow(x: float, y: float) -> float:
    if isinstance(x, int) and isinstance(y, int) and y >= 0:
        return x**y
    try:
        return math.pow(x, y)
    except OverflowError:
        return math.inf
    except ValueError:
        return math.inf if x == 0 else math.nan


def _math_sign(x: float) -> float:
    if math.isnan(x):
        return math.nan
    return (x > 0) - (x < 0)


MATH = MappingProxyType(
    {
        "PI": math.pi,
        "E": math.e,
        "LN2": math.log(2),
        "LN10": math.log(10),
        "SQRT2": math.sqrt(2),
        "abs": _numeric(abs),
        "ceil": _numeric(lambda x: _finite_or(x, math.ceil)),
        "floor": _numeric(lambda x: _finite_or(x, math.floor)),
        "round": _numeric(_math_round),
        "trunc": _numeric(lambda x: _finite_or(x, math.trunc)),
        "sign": _numeric(_math_sign),
        "sqrt": _numeric(_math_sqrt),
        "cbrt": _numeric(lambda x: math.copysign(abs(x) ** (1 / 3), x)),
        "pow": _numeric(_math_pow),
        "exp": _numeric(math.exp),
        "log": _numeric(_math_log),
        "log2": _numeric(lambda x: _math_log(x) / math.log(2)),
        "log10": _numeric(lambda x: _math_log(x) / math.log(10)),
        "max": _numeric(_math_max),
        "min": _numeric(_math_min),
        "random": random.random,
        "sin": _numeric(math.sin),
        "cos": _numeric(math.cos),
        "tan": _numeric(math.tan),
        "atan": _numeric(math.atan),
        "atan2": _numeric(math.atan2),
        "hypot": _numeric(math.hypot),
    },
)


def _json_parse(text: Any) -> Any:
    return json.loads(to_string(text))


def _json_stringify(value: Any, replacer: Any = None, space: Any = None) -> Any:  # noqa: ARG001
    indent = None if is_nullish(space) else space
    if isinstance(indent, str):
        indent = indent[:10] or None
    return to_json(value, indent)


JSON = MappingProxyType({"parse": _json_parse, "stringify": _json_stringify})


def _keys(value: Any) -> list[str]:
    if is_object(value):
        return [to_string(k) for k in value]
    if is_array(value) or isinstance(value, str):
        return [str(i) for i in range(len(value))]
    return []


def _values(value: Any) -> list[Any]:
    if is_object(value):
        return list(value.values())
    if is_array(value) or isinstance(value, str):
        return list(value)
    return []


def _entries(value: Any) -> list[list[Any]]:
    return [[k, v] for k, v in zip(_keys(value), _values(value), strict=True)]


def _assign(target: Any, *sources: Any) -> dict[str, Any]:
    # Returns a merged copy; expressions never modify the scope
    result = dict(target) if is_object(target) else {}
    for source in sources:
        if is_object(source):
            result.update({to_string(k): v for k, v in source.items()})
    return result


def _from_entries(entries: Iterable[Any]) -> dict[str, Any]:
    return {to_string(entry[0]): entry[1] for entry in entries}


OBJECT = MappingProxyType(
    {
        "keys": _keys,
        "values": _values,
        "entries": _entries,
        "assign": _assign,
        "fromEntries": _from_entries,
        "freeze": lambda value: value,
    },
)


def _array_from(items: Any, map_fn: Any = UNDEFINED) -> list[Any]:
    if is_object(items):
        length = int(to_number(items.get("length", 0)))
        values = [items.get(str(i), UNDEFINED) for i in range(max(length, 0))]
    else:
        values = list(items)
    if map_fn is UNDEFINED:
        return values
    return [call_callback(map_fn, v, i) for i, v in enumerate(values)]


ARRAY = MappingProxyType(
    {
        "isArray": is_array,
        "from": _array_from,
        "of": lambda *items: list(items),
    },
)


_INT_PATTERN = re.compile(r"\s*([+-]?)(0[xX])?([0-9a-zA-Z]*)")
_FLOAT_PATTERN = re.compile(r"\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))")


def parse_int(value: Any, radix: Any = UNDEFINED) -> float:
    """Parse a leading integer like ``parseInt``; ``NaN`` when there is none."""
    match = _INT_PATTERN.match(to_string(value))
    if match is None:
        return math.nan
    sign, hex_prefix, digits = match.groups()
    base = 10 if radix is UNDEFINED or to_number(radix) == 0 else int(to_number(radix))
    if hex_prefix:
        if radix is UNDEFINED or base == 16:  # noqa: PLR2004
            base = 16
        else:
            digits = ""
    if not 2 <= base <= 36:  # noqa: PLR2004
        return math.nan
    valid = ""
    for char in digits:
        if int(char, 36) >= base:
            break
        valid += char
    if not valid:
        return math.nan
    number = int(valid, base)
    return -number if sign == "-" else number


def parse_float(value: Any) -> float:
    """Parse a leading decimal number like ``parseFloat``; ``NaN`` when there is none."""
    match = _FLOAT_PATTERN.match(to_string(value))
    if match is None:
        return math.nan
    text = match.group(1)
    if text.lstrip("+-") == "Infinity":
        return -math.inf if text.startswith("-") else math.inf
    number = float(text)
    return int(number) if number.is_integer() and re.fullmatch(r"[+-]?\d+\.?", text) else number


def is_nan(value: Any) -> bool:
    return math.isnan(to_number(value))


def is_finite(value: Any) -> bool:
    number = to_number(value)
    return not (math.isnan(number) or math.isinf(number))


class NumberConstructor:
    """``Number``: callable conversion plus its static helpers."""

    MAX_SAFE_INTEGER = 2**53 - 1
    MIN_SAFE_INTEGER = -(2**53 - 1)
    EPSILON = 2.0**-52
    POSITIVE_INFINITY = math.inf
    NEGATIVE_INFINITY = -math.inf
    NaN = math.nan

    def __call__(self, value: Any = 0) -> float:
        return to_number(value)

    @staticmethod
    def isInteger(value: Any) -> bool:  # noqa: N802
        return is_number(value) and is_finite(value) and float(value).is_integer()

    @staticmethod
    def isSafeInteger(value: Any) -> bool:  # noqa: N802
        return NumberConstructor.isInteger(value) and abs(value) <= NumberConstructor.MAX_SAFE_INTEGER

    @staticmethod
    def isFinite(value: Any) -> bool:  # noqa: N802
        return is_number(value) and is_finite(value)

    @staticmethod
    def isNaN(value: Any) -> bool:  # noqa: N802
        return is_number(value) and math.isnan(value)

    parseInt = staticmethod(parse_int)  # noqa: N815
    parseFloat = staticmethod(parse_float)  # noqa: N815

    def __repr__(self) -> str:
        return "Number"


class StringConstructor:
    """``String``: callable conversion plus ``String.fromCharCode``."""

    def __call__(self, value: Any = "") -> str:
        return to_string(value)

    @staticmethod
    def fromCharCode(*codes: Any) -> str:  # noqa: N802
        return "".join(chr(int(to_number(c))) for c in codes)

    def __repr__(self) -> str:
        return "String"


def boolean(value: Any = False) -> bool:
    return truthy(value)


def _console_method(level: int) -> Callable[..., Any]:
    def log(*args: Any) -> Any:
        console_logger.log(level, " ".join(a if isinstance(a, str) else _inspect(a) for a in args))
        return UNDEFINED

    return log


def _inspect(value: Any) -> str:
    if is_object(value) or is_array(value):
        serialized = to_json(value)
        return serialized if isinstance(serialized, str) else to_string(value)
    return to_string(value)


CONSOLE = MappingProxyType(
    {
        "log": _console_method(logging.INFO),
        "info": _console_method(logging.INFO),
        "debug": _console_method(logging.DEBUG),
        "warn": _console_method(logging.WARNING),
        "error": _console_method(logging.ERROR),
    },
)


class URLSearchParams:
    """Ordered query string parameters."""

    def __init__(self, init: Any = "") -> None:
        if is_object(init):
            self._pairs = [(to_string(k), to_string(v)) for k, v in init.items()]
        elif is_array(init):
            self._pairs = [(to_string(k), to_string(v)) for k, v in init]
        else:
            self._pairs = parse_qsl(to_string(init).removeprefix("?"), keep_blank_values=True)

    def get(self, name: Any) -> str | None:
        key = to_string(name)
        return next((v for k, v in self._pairs if k == key), None)

    def getAll(self, name: Any) -> list[str]:  # noqa: N802
        key = to_string(name)
        return [v for k, v in self._pairs if k == key]

    def has(self, name: Any) -> bool:
        key = to_string(name)
        return any(k == key for k, _ in self._pairs)

    def keys(self) -> list[str]:
        return [k for k, _ in self._pairs]

    def entries(self) -> list[list[str]]:
        return [[k, v] for k, v in self._pairs]

    @property
    def size(self) -> int:
        return len(self._pairs)

    def toString(self) -> str:  # noqa: N802
        return urlencode(self._pairs)

    def __str__(self) -> str:
        return self.toString()


class URL:
    """A parsed absolute URL."""

    def __init__(self, url: Any, base: Any = UNDEFINED) -> None:
        text = to_string(url)
        if base is not UNDEFINED:
            text = urljoin(to_string(base), text)
        parts = urlsplit(text)
        if not parts.scheme or not (parts.netloc or parts.scheme in ("mailto", "data", "file")):
            msg = f"Invalid URL: {text}"
            raise TypeError(msg)
        self._parts = parts

    @property
    def href(self) -> str:
        return self._parts.geturl()

    @property
    def protocol(self) -> str:
        return f"{self._parts.scheme}:"

    @property
    def host(self) -> str:
        return self._parts.netloc.rpartition("@")[2]

    @property
    def hostname(self) -> str:
        return self._parts.hostname or ""

    @property
    def port(self) -> str:
        return str(self._parts.port) if self._parts.port is not None else ""

    @property
    def origin(self) -> str:
        return f"{self._parts.scheme}://{self.host}"

    @property
    def pathname(self) -> str:
        return self._parts.path or "/"

    @property
    def search(self) -> str:
        return f"?{self._parts.query}" if self._parts.query else ""

    @property
    def hash(self) -> str:
        return f"#{self._parts.fragment}" if self._parts.fragment else ""

    @property
    def searchParams(self) -> URLSearchParams:  # noqa: N802
        return URLSearchParams(self._parts.query)

    def toString(self) -> str:  # noqa: N802
        return self.href

    def __str__(self) -> str:
        return self.href


class TimerRegistry:
    """Timers scheduled by ``setTimeout``, run on daemon threads."""

    def __init__(self) -> None:
        self._timers: dict[int, threading.Timer] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def set_timeout(self, callback: Any, delay: Any = 0, *args: Any) -> int:
        if not callable(callback):
            msg = "setTimeout callback must be a function"
            raise TypeError(msg)
        timer_id = next(self._ids)
        seconds = max(to_number(delay), 0) / 1000 if not math.isnan(to_number(delay)) else 0

        def run() -> None:
            with self._lock:
                self._timers.pop(timer_id, None)
            try:
                callback(*args)
            except Exception:
                console_logger.exception(f"Uncaught error in timer {timer_id}")

        timer = threading.Timer(seconds, run)
        timer.daemon = True
        with self._lock:
            self._timers[timer_id] = timer
        timer.start()
        return timer_id

    def clear_timeout(self, timer_id: Any = UNDEFINED) -> Any:
        if is_number(timer_id):
            with self._lock:
                timer = self._timers.pop(int(timer_id), None)
            if timer is not None:
                timer.cancel()
        return UNDEFINED

    def cancel_all(self) -> None:
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()

    def __len__(self) -> int:
        return len(self._timers)


def build_globals(timers: TimerRegistry) -> Mapping[str, Any]:
    """Build the read-only ambient allow-list bound to ``timers``."""
    return MappingProxyType(
        {
            "Math": MATH,
            "JSON": JSON,
            "Object": OBJECT,
            "Array": ARRAY,
            "Number": NumberConstructor(),
            "String": StringConstructor(),
            "Boolean": boolean,
            "parseInt": parse_int,
            "parseFloat": parse_float,
            "isNaN": is_nan,
            "isFinite": is_finite,
            "encodeURIComponent": lambda value: quote(to_string(value), safe="-_.!~*'()"),
            "decodeURIComponent": lambda value: unquote(to_string(value)),
            "Infinity": math.inf,
            "NaN": math.nan,
            "undefined": UNDEFINED,
            "console": CONSOLE,
            "URL": URL,
            "URLSearchParams": URLSearchParams,
            "setTimeout": timers.set_timeout,
            "clearTimeout": timers.clear_timeout,
        },
    )
