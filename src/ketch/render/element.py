"""Element tree — construction, lookup, and HTML serialization.

Pages build their markup with :func:`h`::

    from ketch.render import h

    def render(title="Home"):
        return h("main", {"class": "page"}, h("h1", {}, title))

An element's ``type`` is either a tag name or a component: any callable
taking the element's props as keyword arguments (children arrive as
``children``) and returning more renderable content.

Renderable content is an :class:`Element`, a string (escaped on output),
:class:`Raw` markup (emitted as-is), a number, a list/tuple of renderables,
or ``None``/``True``/``False`` (which render nothing).
"""

from __future__ import annotations

import html
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

# Elements serialized without a closing tag
VOID_ELEMENTS: frozenset[str] = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})


class Raw(str):
    """Trusted markup, emitted without escaping."""

    __slots__ = ()


def Fragment(children: Iterable[Any] = ()) -> list[Any]:  # noqa: N802
    """Group children without a wrapping element."""
    return list(children)


@dataclass(slots=True)
class Element:
    """A node in the element tree.

    Attributes:
        type: Tag name or component callable.
        props: Attributes (for tags) or keyword arguments (for components).
        children: Child renderables; mutable so a document shell can have
            page markup inserted into it.

    """

    type: str | Callable[..., Any]
    props: dict[str, Any] = field(default_factory=dict)
    children: list[Any] = field(default_factory=list)

    def find(
        self,
        predicate: Callable[[Element], bool] | None = None,
        **criteria: Any,
    ) -> Element | None:
        """Return the first element (self included, depth-first) that matches.

        Match with a predicate, or with keyword criteria where ``type`` is
        compared against the element type and any other key against props::

            document.find(type="body")
            document.find(id="ketch")

        Components are not expanded; only the literal tree is searched.

        """
        if predicate is None and not criteria:
            msg = "find() needs a predicate or keyword criteria"
            raise TypeError(msg)

        if self._matches(predicate, criteria):
            return self
        for child in self.children:
            if isinstance(child, Element):
                found = child.find(predicate, **criteria)
                if found is not None:
                    return found
        return None

    def _matches(
        self,
        predicate: Callable[[Element], bool] | None,
        criteria: dict[str, Any],
    ) -> bool:
        if predicate is not None and not predicate(self):
            return False
        for key, expected in criteria.items():
            actual = self.type if key == "type" else self.props.get(key)
            if actual != expected:
                return False
        return True

    def to_html(self) -> str:
        """Serialize this element (expanding components) to an HTML string."""
        parts: list[str] = []
        _render_into(self, parts)
        return "".join(parts)

    def __str__(self) -> str:
        return self.to_html()


def h(
    type_: str | Callable[..., Any],
    props: dict[str, Any] | None = None,
    *children: Any,
) -> Element:
    """Create an element. Nested child lists are flattened."""
    return Element(type_, dict(props or {}), _flatten(children))


def render_to_string(node: Any) -> str:
    """Serialize any renderable to HTML."""
    parts: list[str] = []
    _render_into(node, parts)
    return "".join(parts)


def _flatten(children: Iterable[Any]) -> list[Any]:
    flat: list[Any] = []
    for child in children:
        if isinstance(child, (list, tuple)):
            flat.extend(_flatten(child))
        else:
            flat.append(child)
    return flat


def _render_into(node: Any, parts: list[str]) -> None:
    if node is None or isinstance(node, bool):
        return
    if isinstance(node, Raw):
        parts.append(str(node))
        return
    if isinstance(node, str):
        parts.append(html.escape(node, quote=False))
        return
    if isinstance(node, (int, float)):
        parts.append(str(node))
        return
    if isinstance(node, (list, tuple)):
        for child in node:
            _render_into(child, parts)
        return
    if not isinstance(node, Element):
        msg = f"Cannot render object of type {type(node).__name__}"
        raise TypeError(msg)

    if callable(node.type):
        kwargs = dict(node.props)
        if node.children:
            kwargs["children"] = list(node.children)
        _render_into(node.type(**kwargs), parts)
        return

    tag = node.type
    parts.append(f"<{tag}{_render_attrs(node.props)}>")
    if tag in VOID_ELEMENTS:
        return
    for child in node.children:
        _render_into(child, parts)
    parts.append(f"</{tag}>")


def _render_attrs(props: dict[str, Any]) -> str:
    out: list[str] = []
    for name, value in props.items():
        if value is None or value is False:
            continue
        if name == "class_name":
            name = "class"
        if value is True:
            out.append(f" {name}")
        else:
            out.append(f' {name}="{html.escape(str(value), quote=True)}"')
    return "".join(out)
