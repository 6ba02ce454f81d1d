"""
Render Primitives
One named primitive per component kind. The interpreter looks primitives up by
exact name and never inspects the nodes they return.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Union

from ..schema import ComponentKind

FRAGMENT = "Fragment"

RenderChild = Union["RenderNode", str, int, float, bool, list]


@dataclass
class RenderNode:
    """Opaque render-tree node."""

    component: str
    props: dict[str, Any] = field(default_factory=dict)
    children: list[RenderChild] = field(default_factory=list)
    key: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "component": self.component,
            "key": self.key,
            "props": dict(self.props),
            "children": [child.to_dict() if isinstance(child, RenderNode) else child for child in self.children],
        }


RenderPrimitive = Callable[[dict[str, Any], list[RenderChild]], RenderNode]


def _primitive(name: str) -> RenderPrimitive:
    def render(props: dict[str, Any], children: list[RenderChild]) -> RenderNode:
        return RenderNode(component=name, props=dict(props), children=list(children))

    render.__name__ = f"render_{name.lower()}"
    return render


def render_fragment(children: list[RenderChild]) -> RenderNode:
    return RenderNode(component=FRAGMENT, children=list(children))


DEFAULT_PRIMITIVES: Mapping[str, RenderPrimitive] = {kind.value: _primitive(kind.value) for kind in ComponentKind}
