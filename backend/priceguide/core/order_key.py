"""
Fractional order keys.

Siblings are ordered by an opaque string key. A new key can always be
generated strictly between two existing keys, so inserting or moving one
category never renumbers its siblings.

A key is an *integer part* followed by an optional *fraction*. The first
character of the integer part encodes its length: ``a``..``z`` are
non-negative integers of 2..27 characters, ``A``..``Z`` negative integers of
27..2 characters. Digits are base 62 in ASCII order, so plain string
comparison is the sort order. Fractions never end in ``"0"``.
"""
from typing import List, Optional

DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
ZERO = DIGITS[0]
SMALLEST_INTEGER = "A" + ZERO * 26
INITIAL_KEY = "a" + ZERO


def compare(a: str, b: str) -> int:
    """Return -1, 0 or 1. Code-point order, no numeric parsing."""
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def _midpoint(a: str, b: Optional[str]) -> str:
    """Fraction strictly between fractions ``a`` and ``b`` (``None`` = open end)."""
    if b is not None and a >= b:
        raise ValueError(f"{a!r} >= {b!r}")
    if a[-1:] == ZERO or (b is not None and b[-1:] == ZERO):
        raise ValueError("trailing zero")

    prefix = ""
    # strip the common prefix; the loop replaces recursion on it
    if b is not None:
        n = 0
        while n < len(b) and (a[n] if n < len(a) else ZERO) == b[n]:
            n += 1
        prefix = b[:n]
        a, b = a[n:], b[n:]

    digit_a = DIGITS.index(a[0]) if a else 0
    digit_b = DIGITS.index(b[0]) if b is not None else len(DIGITS)
    if digit_b - digit_a > 1:
        return prefix + DIGITS[(digit_a + digit_b + 1) // 2]
    if b is not None and len(b) > 1:
        return prefix + b[0]
    return prefix + DIGITS[digit_a] + _midpoint(a[1:], None)


def _integer_length(head: str) -> int:
    if "a" <= head <= "z":
        return ord(head) - ord("a") + 2
    if "A" <= head <= "Z":
        return ord("Z") - ord(head) + 2
    raise ValueError(f"invalid order key head: {head!r}")


def _integer_part(key: str) -> str:
    length = _integer_length(key[0])
    if length > len(key):
        raise ValueError(f"invalid order key: {key!r}")
    return key[:length]


def validate_order_key(key: str) -> None:
    """Raise ValueError unless ``key`` is a well-formed order key."""
    if not key:
        raise ValueError("order key must not be empty")
    if key == SMALLEST_INTEGER:
        raise ValueError(f"invalid order key: {key!r}")
    if any(ch not in DIGITS for ch in key):
        raise ValueError(f"invalid order key: {key!r}")
    integer = _integer_part(key)
    if key[len(integer):][-1:] == ZERO:
        raise ValueError(f"invalid order key: {key!r}")


def is_valid_order_key(key: str) -> bool:
    try:
        validate_order_key(key)
    except ValueError:
        return False
    return True


def _increment_integer(x: str) -> Optional[str]:
    head, digits = x[0], list(x[1:])
    carry = True
    for i in range(len(digits) - 1, -1, -1):
        d = DIGITS.index(digits[i]) + 1
        if d == len(DIGITS):
            digits[i] = ZERO
        else:
            digits[i] = DIGITS[d]
            carry = False
            break
    if not carry:
        return head + "".join(digits)
    if head == "Z":
        return "a" + ZERO
    if head == "z":
        return None
    new_head = chr(ord(head) + 1)
    if new_head > "a":
        digits.append(ZERO)
    else:
        digits.pop()
    return new_head + "".join(digits)


def _decrement_integer(x: str) -> Optional[str]:
    head, digits = x[0], list(x[1:])
    borrow = True
    for i in range(len(digits) - 1, -1, -1):
        d = DIGITS.index(digits[i]) - 1
        if d == -1:
            digits[i] = DIGITS[-1]
        else:
            digits[i] = DIGITS[d]
            borrow = False
            break
    if not borrow:
        return head + "".join(digits)
    if head == "a":
        return "Z" + DIGITS[-1]
    if head == "A":
        return None
    new_head = chr(ord(head) - 1)
    if new_head < "Z":
        digits.append(DIGITS[-1])
    else:
        digits.pop()
    return new_head + "".join(digits)


def key_between(before: Optional[str], after: Optional[str]) -> str:
    """
    Generate a key sorting strictly after ``before`` and strictly before
    ``after``. Either bound may be ``None`` for an open end.

    Raises:
        ValueError: if a bound is malformed or ``before >= after``.
    """
    if before is not None:
        validate_order_key(before)
    if after is not None:
        validate_order_key(after)
    if before is not None and after is not None and before >= after:
        raise ValueError(f"{before!r} >= {after!r}")

    if before is None:
        if after is None:
            return INITIAL_KEY
        int_b = _integer_part(after)
        frac_b = after[len(int_b):]
        if int_b == SMALLEST_INTEGER:
            return int_b + _midpoint("", frac_b)
        if int_b < after:
            return int_b
        result = _decrement_integer(int_b)
        if result is None:
            raise ValueError("cannot decrement any more")
        return result

    if after is None:
        int_a = _integer_part(before)
        frac_a = before[len(int_a):]
        result = _increment_integer(int_a)
        return int_a + _midpoint(frac_a, None) if result is None else result

    int_a = _integer_part(before)
    frac_a = before[len(int_a):]
    int_b = _integer_part(after)
    frac_b = after[len(int_b):]
    if int_a == int_b:
        return int_a + _midpoint(frac_a, frac_b)
    result = _increment_integer(int_a)
    if result is None:
        raise ValueError("cannot increment any more")
    if result < after:
        return result
    return int_a + _midpoint(frac_a, None)


def keys_after(last: Optional[str], count: int) -> List[str]:
    """``count`` consecutive keys appended after ``last``."""
    keys = []
    previous = last
    for _ in range(count):
        previous = key_between(previous, None)
        keys.append(previous)
    return keys
