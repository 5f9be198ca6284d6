"""Ketch — an incremental static page builder.

Turns a directory of Python page modules into a tree of HTML files and, on
every file change, re-renders only the pages that change affects.

Quick start::

    import ketch

    ketch.build("my-site/")       # Render every page into my-site/out/
    ketch.watch("my-site/")       # ...and keep rebuilding on change

A page is a module under ``pages/``::

    from ketch.render import h

    def get_paths():
        return ["first-post", "second-post"]

    def get_props(slug):
        return {"slug": slug}

    def render(slug):
        return h("h1", {}, slug)

"""

__version__ = "0.1.0-dev"

# Free-threading declaration (PEP 703)
_Py_mod_gil = 0

__all__ = [
    "BuildOptions",
    "BuildSession",
    "KetchConfig",
    "PageCache",
    "__version__",
    "build",
    "watch",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import ketch`` fast (page modules import ``ketch.render``).
    """
    if name == "KetchConfig":
        from ketch.config import KetchConfig

        return KetchConfig

    if name == "PageCache":
        from ketch.pages.cache import PageCache

        return PageCache

    if name == "BuildOptions":
        from ketch.pages.builder import BuildOptions

        return BuildOptions

    if name in ("BuildSession", "build", "watch"):
        from ketch import app

        return getattr(app, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
