"""Average damage estimation for strike damage expressions.

Damage strings are parsed with the d20 library and the resulting
expression tree is walked to compute an expected value: each die group
contributes ``num * (size + 1) / 2`` and literals contribute their value.
The estimate is only used to rank strikes against each other.
"""

from __future__ import annotations

import re
from typing import Any

import d20
from d20 import diceast

from tactician.core.logging import get_logger


logger = get_logger(__name__)

_PLUS_WORD_RE = re.compile(r"\bplus\b", re.IGNORECASE)
_WORD_RE = re.compile(r"\b(?!\d*d\d)[a-z][a-z-]+\b", re.IGNORECASE)
_SIGN_RUN_RE = re.compile(r"\+\s*\+")


def normalize_damage_expression(text: str) -> str:
    """Reduce a rules-text damage string to a dice expression.

    ``"1d8+4 piercing plus 1d6 fire"`` becomes ``"1d8+4+1d6"``.
    """
    expression = _PLUS_WORD_RE.sub("+", text)
    expression = _WORD_RE.sub("", expression)
    expression = re.sub(r"\s+", "", expression)
    while _SIGN_RUN_RE.search(expression):
        expression = _SIGN_RUN_RE.sub("+", expression)
    return expression.strip("+")


def _die_size(size: Any) -> int:
    if size == "%":
        return 100
    return int(size)


def _expected(node: Any) -> float:
    """Expected value of a d20 AST node."""
    if isinstance(node, diceast.Expression):
        return _expected(node.roll)
    if isinstance(node, diceast.AnnotatedNumber):
        return _expected(node.value)
    if isinstance(node, diceast.Literal):
        return float(node.value)
    if isinstance(node, diceast.Parenthetical):
        return _expected(node.value)
    if isinstance(node, diceast.UnOp):
        value = _expected(node.value)
        return -value if node.op == "-" else value
    if isinstance(node, diceast.BinOp):
        left = _expected(node.left)
        right = _expected(node.right)
        if node.op == "+":
            return left + right
        if node.op == "-":
            return left - right
        if node.op == "*":
            return left * right
        if node.op == "/" and right:
            return left / right
        return left
    if isinstance(node, diceast.OperatedDice):
        return _expected(node.value)
    if isinstance(node, diceast.Dice):
        return node.num * (_die_size(node.size) + 1) / 2
    if isinstance(node, diceast.NumberSet):
        return sum(_expected(child) for child in node.values)
    return 0.0


def average_damage(expression: str | None) -> float:
    """Estimate the average of a damage expression.

    Args:
        expression: Damage text such as ``"2d6+4"`` or
            ``"1d8+3 slashing plus 1d6 fire"``.

    Returns:
        The expected damage, or 0.0 when the expression is missing or
        cannot be parsed.
    """
    if not expression:
        return 0.0
    normalized = normalize_damage_expression(expression)
    if not normalized:
        return 0.0
    try:
        tree = d20.parse(normalized)
    except d20.RollSyntaxError:
        logger.warning("Unparseable damage expression", expression=expression)
        return 0.0
    return _expected(tree)


__all__ = [
    "normalize_damage_expression",
    "average_damage",
]
