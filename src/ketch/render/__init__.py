"""Rendering primitives for page modules.

Element construction (:func:`h`), tree lookup (:meth:`Element.find`) and HTML
serialization (:meth:`Element.to_html`), plus the :func:`Head` component.
"""

from ketch.render.element import (
    VOID_ELEMENTS,
    Element,
    Fragment,
    Raw,
    h,
    render_to_string,
)
from ketch.render.head import Head, collect_head

__all__ = [
    "VOID_ELEMENTS",
    "Element",
    "Fragment",
    "Head",
    "Raw",
    "collect_head",
    "h",
    "render_to_string",
]
