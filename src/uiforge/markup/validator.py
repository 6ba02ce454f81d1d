"""
Whitelist Markup Validator
Statically checks parsed markup against the Component Schema Registry.

Two facets are reported separately: ``component_check`` covers structure
(unknown components, member/namespaced tags, inline styles, imports,
markup hidden in expressions, unparseable input) and ``prop_check`` covers properties (unknown, missing,
mistyped, disallowed values, attribute syntax, children).
"""

import re
from dataclasses import dataclass, field
from typing import Any

from ..core.logging_config import get_logger
from ..schema import ComponentKind, accepts_children, resolve_kind, schema_for, stringify
from .ast import (
    Attribute,
    Document,
    Element,
    Expr,
    ExpressionSlot,
    ExprShape,
    Fragment,
    NameForm,
    Node,
    SpreadAttribute,
    is_meaningful,
)
from .literals import evaluate_attribute
from .parser import MarkupSyntaxError, parse_markup

logger = get_logger(__name__)

UNPARSEABLE = "Invalid markup: unable to parse"

_TAG_OPENER = re.compile(r"<\s*[A-Za-z_$>/]")


@dataclass
class MarkupValidation:
    """Validation facets plus every violation found."""

    errors: list[str] = field(default_factory=list)
    component_check: bool = True
    prop_check: bool = True
    unparseable: bool = False

    @property
    def is_valid(self) -> bool:
        return not self.errors and self.component_check and self.prop_check

    def component_error(self, message: str) -> None:
        self.errors.append(message)
        self.component_check = False

    def prop_error(self, message: str) -> None:
        self.errors.append(message)
        self.prop_check = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "componentCheck": self.component_check,
            "propCheck": self.prop_check,
            "errors": list(self.errors),
        }

    @classmethod
    def unparseable_result(cls, detail: str = "") -> "MarkupValidation":
        message = f"{UNPARSEABLE} ({detail})" if detail else UNPARSEABLE
        return cls(errors=[message], component_check=False, prop_check=False, unparseable=True)


class MarkupValidator:
    """Walks a Document and records violations."""

    def validate(self, document: Document) -> MarkupValidation:
        result = MarkupValidation()
        if document.imports:
            result.component_error("External imports are not allowed.")
        if document.root is None:
            result.component_error("No markup element found.")
            return result
        self._walk(document.root, result)
        return result

    def _walk(self, node: Node, result: MarkupValidation) -> None:
        if isinstance(node, Element):
            self._check_element(node, result)
        if isinstance(node, (Element, Fragment)):
            for child in node.children:
                self._walk(child, result)
        if isinstance(node, ExpressionSlot):
            self._check_expression(node.expr, result)

    def _check_expression(self, expr: Expr, result: MarkupValidation) -> None:
        """Tags inside braces are held to the same rules as direct children."""
        if expr.markup is not None:
            self._walk(expr.markup, result)
        elif expr.shape is ExprShape.ARRAY:
            for item in expr.items:
                self._check_expression(item, result)
        elif not expr.is_literal and _TAG_OPENER.search(expr.source):
            result.component_error("Markup inside expressions is not allowed.")

    def _check_element(self, element: Element, result: MarkupValidation) -> None:
        if element.form is not NameForm.SIMPLE:
            result.component_error(f"Member or namespaced tags are not allowed: {element.name}.")
            return

        kind = resolve_kind(element.name)
        if kind is None:
            result.component_error(f"Unknown component: {element.name}.")
            return

        schema = schema_for(kind)
        provided: set[str] = set()
        for attribute in element.attributes:
            name = self._check_attribute(kind, attribute, result)
            if name:
                provided.add(name)

        for prop_name, prop in schema.items():
            if prop.required and prop_name not in provided:
                result.prop_error(f'Missing required prop "{prop_name}" on {kind.value}.')

        if any(is_meaningful(child) for child in element.children) and not accepts_children(kind):
            result.prop_error(f"{kind.value} does not accept children.")

    def _check_attribute(
        self, kind: ComponentKind, attribute: Attribute | SpreadAttribute, result: MarkupValidation
    ) -> str | None:
        """Check one attribute; returns its name when it counts as provided."""
        if isinstance(attribute, SpreadAttribute):
            result.prop_error(f"Spread attributes are not allowed on {kind.value}.")
            return None
        if attribute.expr is not None:
            self._check_expression(attribute.expr, result)
        if attribute.form is not NameForm.SIMPLE:
            result.prop_error(f"Unsupported attribute syntax in {kind.value}.")
            return None
        if attribute.name == "style":
            result.component_error("Inline styles are not allowed.")
            return None

        prop = schema_for(kind).get(attribute.name)
        if prop is None:
            result.prop_error(f'Unknown prop "{attribute.name}" on {kind.value}.')
            return None

        literal = evaluate_attribute(attribute)
        if literal is None:
            result.prop_error(f'Invalid value for prop "{attribute.name}" on {kind.value}.')
            return None

        if prop.allowed_values is not None and stringify(literal.value) not in prop.allowed_values:
            result.prop_error(f'Invalid value for prop "{attribute.name}" on {kind.value}.')
        if not literal.satisfies(prop.type):
            result.prop_error(f'Type mismatch for prop "{attribute.name}" on {kind.value}.')
        return attribute.name


def validate_document(document: Document) -> MarkupValidation:
    return MarkupValidator().validate(document)


def validate_markup(text: str) -> MarkupValidation:
    """
    Parse and validate markup text.

    Unparseable input fails closed with a single violation that clears both
    facets and sets ``unparseable``.
    """
    try:
        document = parse_markup(text)
    except MarkupSyntaxError as e:
        logger.debug("markup_unparseable", error=str(e))
        return MarkupValidation.unparseable_result(str(e))

    result = validate_document(document)
    if not result.is_valid:
        logger.debug(
            "markup_invalid",
            errors=len(result.errors),
            component_check=result.component_check,
            prop_check=result.prop_check,
        )
    return result
