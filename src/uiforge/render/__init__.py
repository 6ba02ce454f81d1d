"""Render primitives and render-tree nodes."""

from .primitives import DEFAULT_PRIMITIVES, FRAGMENT, RenderNode, RenderPrimitive, render_fragment

__all__ = ["DEFAULT_PRIMITIVES", "FRAGMENT", "RenderNode", "RenderPrimitive", "render_fragment"]
