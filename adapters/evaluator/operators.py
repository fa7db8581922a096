"""
Operator application for Decimal operands.

apply_operator() — dispatches a canonical operator symbol to Decimal arithmetic
alias_operator() — maps localized operator words/glyphs to canonical symbols
"""
from __future__ import annotations

import math
from decimal import Decimal

from contracts import UnknownOperatorError

MULTIPLY_SYMBOLS = ("*", "×", "x")
CONVERT_SYMBOLS = ("in", "to")

# Ordered (alias, canonical) pairs; first match wins.
OPERATOR_ALIASES: list[tuple[str, str]] = [
    ("加上", "+"),
    ("加", "+"),
    ("减去", "-"),
    ("减", "-"),
    ("乘以", "*"),
    ("乘", "*"),
    ("除以", "/"),
    ("除", "/"),
    ("模", "%"),
    ("转换为", "in"),
    ("兑换成", "in"),
    ("换成", "in"),
    ("折合", "in"),
    ("plus", "+"),
    ("minus", "-"),
    ("times", "*"),
    ("multiplied by", "*"),
    ("divided by", "/"),
    ("mod", "%"),
    ("into", "in"),
    ("−", "-"),
    ("·", "*"),
    ("÷", "/"),
]


def alias_operator(op: str) -> str:
    """Returns the canonical symbol for `op`, or `op` itself if it has no alias."""
    key = op.strip().casefold()
    for alias, canonical in OPERATOR_ALIASES:
        if key == alias:
            return canonical
    return op.strip()


def _safe_div(a: Decimal, b: Decimal) -> Decimal:
    if b == 0:
        raise ZeroDivisionError("Division by zero")
    return a / b


def _safe_mod(a: Decimal, b: Decimal) -> Decimal:
    if b == 0:
        raise ZeroDivisionError("Modulo by zero")
    return a % b


def _power(a: Decimal, b: Decimal) -> Decimal:
    # Exponent goes through float; a non-finite exponent or result is an overflow.
    exponent = float(b)
    if not math.isfinite(exponent):
        raise OverflowError(f"Exponent out of range: {b}")
    if exponent.is_integer():
        result = a ** int(exponent)
    else:
        result = a ** Decimal(repr(exponent))
    if not result.is_finite():
        raise OverflowError(f"Power result out of range: {a} ^ {b}")
    return result


_OP_FUNCS = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "×": lambda a, b: a * b,
    "x": lambda a, b: a * b,
    "/": _safe_div,
    "%": _safe_mod,
    "^": _power,
}


def apply_operator(op: str, left: Decimal, right: Decimal) -> Decimal:
    fn = _OP_FUNCS.get(op)
    if fn is None:
        raise UnknownOperatorError(f"Unknown operator: {op!r}")
    return fn(left, right)


def is_convert(op: str) -> bool:
    return op in CONVERT_SYMBOLS


def is_multiply(op: str) -> bool:
    return op in MULTIPLY_SYMBOLS
