"""
Restricted literal evaluator.

Strings, finite numbers, booleans and homogeneous arrays (strings, numbers,
or arrays of strings). Every other expression shape evaluates to None.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..schema import ValueType
from .ast import Attribute, Expr, ExprShape


class LiteralType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING_LIST = "string[]"
    NUMBER_LIST = "number[]"
    STRING_MATRIX = "string[][]"
    EMPTY_LIST = "empty[]"


_SCHEMA_TYPES = {
    LiteralType.STRING: ValueType.STRING,
    LiteralType.NUMBER: ValueType.NUMBER,
    LiteralType.BOOLEAN: ValueType.BOOLEAN,
    LiteralType.STRING_LIST: ValueType.STRING_LIST,
    LiteralType.NUMBER_LIST: ValueType.NUMBER_LIST,
    LiteralType.STRING_MATRIX: ValueType.STRING_MATRIX,
}


@dataclass(frozen=True)
class Literal:
    type: LiteralType
    value: Any

    def satisfies(self, expected: ValueType) -> bool:
        """An empty list fits any list type; a string fits a node."""
        if self.type is LiteralType.EMPTY_LIST:
            return expected.is_list
        if self.type is LiteralType.STRING and expected is ValueType.NODE:
            return True
        return _SCHEMA_TYPES[self.type] is expected


def _scalar(expr: Expr) -> Literal | None:
    match expr.shape:
        case ExprShape.STRING if isinstance(expr.value, str):
            return Literal(LiteralType.STRING, expr.value)
        case ExprShape.NUMBER if isinstance(expr.value, (int, float)) and math.isfinite(expr.value):
            return Literal(LiteralType.NUMBER, expr.value)
        case ExprShape.BOOLEAN if isinstance(expr.value, bool):
            return Literal(LiteralType.BOOLEAN, expr.value)
    return None


def _array(items: tuple[Expr, ...]) -> Literal | None:
    if not items:
        return Literal(LiteralType.EMPTY_LIST, [])

    if items[0].shape is ExprShape.ARRAY:
        rows = []
        for item in items:
            if item.shape is not ExprShape.ARRAY:
                return None
            row = [_scalar(cell) for cell in item.items]
            if any(cell is None or cell.type is not LiteralType.STRING for cell in row):
                return None
            rows.append([cell.value for cell in row])
        return Literal(LiteralType.STRING_MATRIX, rows)

    values = [_scalar(item) for item in items]
    if any(value is None for value in values):
        return None
    kinds = {value.type for value in values}
    if kinds == {LiteralType.STRING}:
        return Literal(LiteralType.STRING_LIST, [value.value for value in values])
    if kinds == {LiteralType.NUMBER}:
        return Literal(LiteralType.NUMBER_LIST, [value.value for value in values])
    return None


def evaluate(expr: Expr) -> Literal | None:
    """Evaluate a literal expression. Total and side-effect free."""
    if expr.shape is ExprShape.ARRAY:
        return _array(expr.items)
    return _scalar(expr)


def evaluate_attribute(attribute: Attribute) -> Literal | None:
    """A bare attribute is ``true``; quoted text is a string."""
    if attribute.is_bare:
        return Literal(LiteralType.BOOLEAN, True)
    if attribute.text is not None:
        return Literal(LiteralType.STRING, attribute.text)
    return evaluate(attribute.expr)
