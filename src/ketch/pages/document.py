"""Document shell and page wrapper.

The *document shell* is the outer ``<html>`` tree every page is rendered
into; the *page wrapper* is a component wrapping every page (layouts,
providers).  Both can be overridden by modules at the top of the pages
directory, each exporting ``render``:

    pages/_document.py   render() -> Element    (the shell)
    pages/_app.py        render(component, page_props) -> renderable

Page markup is inserted into the element with ``id="ketch"`` or, failing
that, into ``<body>``.  ``Head`` contributions go into ``<head>``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ketch._errors import MalformedPageError, MissingDocumentStructureError
from ketch.pages.module import load_component
from ketch.render.element import Element, Raw, h

if TYPE_CHECKING:
    from pathlib import Path

    from ketch._types import Component, Props
    from ketch.pages.module import ModuleLoader

DOCTYPE = "<!DOCTYPE html>"


def default_document() -> Element:
    """Minimal built-in shell."""
    return h(
        "html", {"lang": "en"},
        h("head", {}, h("meta", {"charset": "utf-8"})),
        h("body", {}),
    )


def default_wrapper(component: Component, page_props: Props) -> Element:
    """Render the page as-is."""
    return h(component, dict(page_props))


@dataclass(slots=True)
class DocumentShell:
    """A resolved shell with its insertion points located.

    Attributes:
        root: The whole document tree.
        entry: Element receiving each page's markup.
        head: The ``<head>`` element.
        base_head: The head's own children, restored before every page.

    """

    root: Element
    entry: Element
    head: Element
    base_head: list[Any]

    @classmethod
    def from_tree(cls, root: Element, *, entry_id: str = "ketch") -> DocumentShell:
        """Locate insertion points in *root*.

        Raises:
            MissingDocumentStructureError: If there is no entry point or head.

        """
        entry = root.find(id=entry_id) or root.find(type="body")
        if entry is None:
            msg = "Invalid document, no entry point found."
            raise MissingDocumentStructureError(msg)

        head = root.find(type="head")
        if head is None:
            msg = "Invalid document, no head found."
            raise MissingDocumentStructureError(msg)

        return cls(root=root, entry=entry, head=head, base_head=list(head.children))

    def render(self, markup: str, head_items: list[Any]) -> str:
        """Serialize the shell with *markup* as the page body."""
        self.entry.children = [Raw(markup)]
        self.head.children = [*self.base_head, *head_items]
        return DOCTYPE + self.root.to_html()


def resolve_document(
    loader: ModuleLoader,
    staged_path: Path,
    *,
    entry_id: str = "ketch",
) -> DocumentShell:
    """Build the shell from ``_document`` if staged, else the default."""
    custom = load_component(loader, staged_path)
    if custom is None:
        return DocumentShell.from_tree(default_document(), entry_id=entry_id)

    tree = custom()
    if not isinstance(tree, Element):
        raise MalformedPageError(
            loader.source_for(staged_path),
            f"document `render` returned {type(tree).__name__}, expected an Element",
        )
    return DocumentShell.from_tree(tree, entry_id=entry_id)


def resolve_wrapper(loader: ModuleLoader, staged_path: Path) -> Component:
    """The ``_app`` render function if staged, else :func:`default_wrapper`."""
    return load_component(loader, staged_path) or default_wrapper
