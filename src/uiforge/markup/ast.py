"""
Markup Syntax Tree
Node types produced by the parser and consumed read-only by the validator and
the interpreter. Expressions are reduced to a closed set of shapes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class ExprShape(str, Enum):
    """Every expression the parser can produce."""

    EMPTY = "empty"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    HOLE = "hole"
    SPREAD = "spread"
    IDENTIFIER = "identifier"
    MEMBER = "member"
    CALL = "call"
    TEMPLATE = "template"
    OBJECT = "object"
    MARKUP = "markup"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class Expr:
    """
    An expression reduced to its shape.

    ``value`` holds the decoded literal for STRING/NUMBER/BOOLEAN, ``items``
    the elements of an ARRAY and ``markup`` the parsed tag of a MARKUP
    expression; ``source`` keeps the original text for messages.
    """

    shape: ExprShape
    source: str = ""
    value: str | int | float | bool | None = None
    items: tuple["Expr", ...] = ()
    markup: Union["Element", "Fragment", None] = None

    @property
    def is_literal(self) -> bool:
        return self.shape in (ExprShape.STRING, ExprShape.NUMBER, ExprShape.BOOLEAN, ExprShape.ARRAY)


class NameForm(str, Enum):
    SIMPLE = "simple"
    MEMBER = "member"
    NAMESPACED = "namespaced"


@dataclass(frozen=True)
class Attribute:
    """``name="text"``, ``name={expr}`` or a bare ``name``."""

    name: str
    form: NameForm = NameForm.SIMPLE
    text: str | None = None
    expr: Expr | None = None

    @property
    def is_bare(self) -> bool:
        return self.text is None and self.expr is None


@dataclass(frozen=True)
class SpreadAttribute:
    expr: Expr


@dataclass(frozen=True)
class Text:
    value: str

    @property
    def is_blank(self) -> bool:
        return not self.value.strip()


@dataclass(frozen=True)
class ExpressionSlot:
    expr: Expr

    @property
    def is_empty(self) -> bool:
        return self.expr.shape is ExprShape.EMPTY


@dataclass(frozen=True)
class Element:
    name: str
    form: NameForm = NameForm.SIMPLE
    attributes: tuple[Union[Attribute, SpreadAttribute], ...] = ()
    children: tuple["Node", ...] = ()


@dataclass(frozen=True)
class Fragment:
    children: tuple["Node", ...] = ()


Node = Union[Element, Fragment, Text, ExpressionSlot]


@dataclass(frozen=True)
class ImportStatement:
    source: str


@dataclass
class Document:
    """Parsed markup: leading import statements plus one root node."""

    imports: list[ImportStatement] = field(default_factory=list)
    root: Element | Fragment | None = None


def is_meaningful(node: Node) -> bool:
    """Non-blank text, non-empty expression, or any element/fragment."""
    if isinstance(node, Text):
        return not node.is_blank
    if isinstance(node, ExpressionSlot):
        return not node.is_empty
    return True
