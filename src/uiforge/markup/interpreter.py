"""
Safe Interpreter
Turns validated markup into a render tree. Only the restricted literal grammar
is evaluated; a node that needs anything else is dropped with an error and the
whole render is withheld.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping

from ..core.logging_config import get_logger
from ..render import DEFAULT_PRIMITIVES, RenderNode, RenderPrimitive, render_fragment
from ..render.primitives import RenderChild
from .ast import Attribute, Document, Element, ExpressionSlot, Fragment, NameForm, Node, Text, is_meaningful
from .literals import evaluate, evaluate_attribute
from .parser import MarkupSyntaxError, parse_markup
from .validator import MarkupValidation, validate_document

logger = get_logger(__name__)


@dataclass
class RenderResult:
    """Render tree (None when anything failed) plus accumulated errors."""

    root: RenderNode | None
    errors: list[str] = field(default_factory=list)
    validation: MarkupValidation | None = None

    @property
    def ok(self) -> bool:
        return self.root is not None and not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "tree": self.root.to_dict() if self.root else None,
            "errors": list(self.errors),
            "validation": self.validation.to_dict() if self.validation else None,
        }


class SafeInterpreter:
    """Maps element tags to render primitives by exact name."""

    def __init__(self, primitives: Mapping[str, RenderPrimitive] | None = None) -> None:
        self.primitives = dict(primitives if primitives is not None else DEFAULT_PRIMITIVES)

    def render(self, markup: str) -> RenderResult:
        """Parse, validate, then interpret markup."""
        try:
            document = parse_markup(markup)
        except MarkupSyntaxError as e:
            validation = MarkupValidation.unparseable_result(str(e))
            return RenderResult(root=None, errors=list(validation.errors), validation=validation)

        validation = validate_document(document)
        if not validation.is_valid:
            return RenderResult(root=None, errors=list(validation.errors), validation=validation)

        result = self.interpret(document)
        result.validation = validation
        return result

    def interpret(self, document: Document) -> RenderResult:
        """Interpret an already-validated document."""
        errors: list[str] = []
        if document.root is None:
            return RenderResult(root=None, errors=["No markup element found."])

        root = self._node(document.root, errors)
        if errors or not isinstance(root, RenderNode):
            logger.info("render_withheld", errors=len(errors))
            return RenderResult(root=None, errors=errors)
        return RenderResult(root=root, errors=[])

    def _node(self, node: Node, errors: list[str]) -> RenderChild | None:
        match node:
            case Element():
                return self._element(node, errors)
            case Fragment():
                return render_fragment(self._children(node.children, errors))
            case Text():
                return node.value
            case ExpressionSlot() if node.expr.markup is not None:
                return self._node(node.expr.markup, errors)
            case ExpressionSlot():
                literal = evaluate(node.expr)
                if literal is None:
                    errors.append(f"Unsupported expression in child position: {node.expr.shape.value}.")
                    return None
                return literal.value
        errors.append(f"Unsupported node: {type(node).__name__}.")
        return None

    def _element(self, element: Element, errors: list[str]) -> RenderNode | None:
        if element.form is not NameForm.SIMPLE:
            errors.append(f"Member or namespaced tags are not allowed: {element.name}.")
            return None

        primitive = self.primitives.get(element.name)
        if primitive is None:
            errors.append(f"Unknown component: {element.name}.")
            return None

        props: dict[str, Any] = {}
        for attribute in element.attributes:
            if not isinstance(attribute, Attribute) or attribute.form is not NameForm.SIMPLE:
                errors.append(f"Unsupported attribute syntax in {element.name}.")
                continue
            if attribute.name == "style":
                errors.append("Inline styles are not allowed.")
                continue
            literal = evaluate_attribute(attribute)
            if literal is None:
                errors.append(f'Invalid value for prop "{attribute.name}" on {element.name}.')
                continue
            props[attribute.name] = literal.value

        return primitive(props, self._children(element.children, errors))

    def _children(self, nodes: tuple[Node, ...], errors: list[str]) -> list[RenderChild]:
        children: list[RenderChild] = []
        for child in nodes:
            if not is_meaningful(child):
                continue
            rendered = self._node(child, errors)
            if rendered is None:
                continue
            if isinstance(rendered, RenderNode) and rendered.key is None:
                rendered.key = f"sr-{len(children)}"
            children.append(rendered)
        return children


def render_markup(markup: str, primitives: Mapping[str, RenderPrimitive] | None = None) -> RenderResult:
    return SafeInterpreter(primitives).render(markup)
