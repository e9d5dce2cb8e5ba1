"""Fractional order keys for sibling nodes.

Keys are opaque strings over a base-62 alphabet that sort lexicographically.
A new key can always be generated strictly between two existing keys, so
inserting a node never renumbers its siblings.

A key is an *integer part* whose length is encoded by its head character
(``a``-``z`` for positive lengths, ``A``-``Z`` for negative ones) followed by
an optional *fraction* that never ends in the zero digit.
"""

from __future__ import annotations

BASE_62_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"

_ZERO = BASE_62_DIGITS[0]
_SMALLEST_INTEGER = "A" + _ZERO * 26


def _midpoint(a: str, b: str | None) -> str:
    """Return a fraction strictly between fractions ``a`` and ``b`` (``None`` meaning 1)."""
    if b is not None and a >= b:
        msg = f"{a!r} is not less than {b!r}"
        raise ValueError(msg)
    if a.endswith(_ZERO) or (b is not None and b.endswith(_ZERO)):
        msg = "Fraction must not end with the zero digit"
        raise ValueError(msg)

    if b is not None:
        # Skip the common prefix
        n = 0
        while (a[n] if n < len(a) else _ZERO) == b[n]:
            n += 1
        if n > 0:
            return b[:n] + _midpoint(a[n:], b[n:])

    digit_a = BASE_62_DIGITS.index(a[0]) if a else 0
    digit_b = BASE_62_DIGITS.index(b[0]) if b is not None else len(BASE_62_DIGITS)
    if digit_b - digit_a > 1:
        return BASE_62_DIGITS[(digit_a + digit_b + 1) // 2]
    # Adjacent digits
    if b is not None and len(b) > 1:
        return b[0]
    return BASE_62_DIGITS[digit_a] + _midpoint(a[1:], None)


def _integer_length(head: str) -> int:
    if "a" <= head <= "z":
        return ord(head) - ord("a") + 2
    if "A" <= head <= "Z":
        return ord("Z") - ord(head) + 2
    msg = f"Invalid order key head: {head!r}"
    raise ValueError(msg)


def _integer_part(key: str) -> str:
    length = _integer_length(key[0])
    if length > len(key):
        msg = f"Invalid order key: {key!r}"
        raise ValueError(msg)
    return key[:length]


def validate_order_key(key: str) -> None:
    """Raise ``ValueError`` if ``key`` is not a well-formed order key."""
    if not key or key == _SMALLEST_INTEGER:
        msg = f"Invalid order key: {key!r}"
        raise ValueError(msg)
    integer = _integer_part(key)
    if key[len(integer) :].endswith(_ZERO):
        msg = f"Invalid order key: {key!r}"
        raise ValueError(msg)


def _increment_integer(x: str) -> str | None:
    head, digits = x[0], list(x[1:])
    carry = True
    for i in reversed(range(len(digits))):
        d = BASE_62_DIGITS.index(digits[i]) + 1
        if d == len(BASE_62_DIGITS):
            digits[i] = _ZERO
        else:
            digits[i] = BASE_62_DIGITS[d]
            carry = False
            break
    if not carry:
        return head + "".join(digits)
    if head == "Z":
        return "a" + _ZERO
    if head == "z":
        return None
    new_head = chr(ord(head) + 1)
    if new_head > "a":
        digits.append(_ZERO)
    else:
        digits.pop()
    return new_head + "".join(digits)


def _decrement_integer(x: str) -> str | None:
    head, digits = x[0], list(x[1:])
    borrow = True
    for i in reversed(range(len(digits))):
        d = BASE_62_DIGITS.index(digits[i]) - 1
        if d == -1:
            digits[i] = BASE_62_DIGITS[-1]
        else:
            digits[i] = BASE_62_DIGITS[d]
            borrow = False
            break
    if not borrow:
        return head + "".join(digits)
    if head == "a":
        return "Z" + BASE_62_DIGITS[-1]
    if head == "A":
        return None
    new_head = chr(ord(head) - 1)
    if new_head < "Z":
        digits.append(BASE_62_DIGITS[-1])
    else:
        digits.pop()
    return new_head + "".join(digits)


def generate_key_between(a: str | None, b: str | None) -> str:
    """Generate an order key that sorts strictly between ``a`` and ``b``.

    Args:
        a: Lower bound, or None for "before everything".
        b: Upper bound, or None for "after everything".

    Returns:
        A new order key ``k`` with ``a < k < b``.

    Raises:
        ValueError: If a bound is malformed or ``a >= b``.

    Example:
        >>> generate_key_between(None, None)
        'a0'
        >>> generate_key_between("a0", "a1")
        'a0V'

    """
    if a is not None:
        validate_order_key(a)
    if b is not None:
        validate_order_key(b)
    if a is not None and b is not None and a >= b:
        msg = f"{a!r} is not less than {b!r}"
        raise ValueError(msg)

    if a is None:
        if b is None:
            return "a" + _ZERO
        int_b = _integer_part(b)
        frac_b = b[len(int_b) :]
        if int_b == _SMALLEST_INTEGER:
            return int_b + _midpoint("", frac_b)
        if int_b < b:
            return int_b
        decremented = _decrement_integer(int_b)
        if decremented is None:
            msg = "Cannot decrement any more"
            raise ValueError(msg)
        return decremented

    int_a = _integer_part(a)
    frac_a = a[len(int_a) :]
    if b is None:
        incremented = _increment_integer(int_a)
        return int_a + _midpoint(frac_a, None) if incremented is None else incremented

    int_b = _integer_part(b)
    frac_b = b[len(int_b) :]
    if int_a == int_b:
        return int_a + _midpoint(frac_a, frac_b)
    incremented = _increment_integer(int_a)
    if incremented is None:
        msg = "Cannot increment any more"
        raise ValueError(msg)
    if incremented < b:
        return incremented
    return int_a + _midpoint(frac_a, None)


def generate_n_keys_between(a: str | None, b: str | None, n: int) -> list[str]:
    """Generate ``n`` ascending order keys between ``a`` and ``b``."""
    keys: list[str] = []
    current = a
    for _ in range(n):
        current = generate_key_between(current, b)
        keys.append(current)
    return keys


def compare_fractional_index(a: str | None, b: str | None) -> int:
    """Three-way comparison of order keys; missing keys sort last."""
    if a == b:
        return 0
    if a is None:
        return 1
    if b is None:
        return -1
    return -1 if a < b else 1
