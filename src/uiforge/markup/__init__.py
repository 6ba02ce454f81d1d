"""Markup parsing, validation, building and safe interpretation."""

from .builder import build_markup
from .interpreter import RenderResult, SafeInterpreter, render_markup
from .parser import MarkupSyntaxError, parse_expression, parse_markup
from .validator import MarkupValidation, validate_markup

__all__ = [
    "MarkupSyntaxError",
    "MarkupValidation",
    "RenderResult",
    "SafeInterpreter",
    "build_markup",
    "parse_expression",
    "parse_markup",
    "render_markup",
    "validate_markup",
]
