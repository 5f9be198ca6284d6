"""Page modules — load compiled pages and validate their contract.

A page module exposes:

    render(**props)        required; returns renderable content
    get_paths()            optional; returns route suffixes to render
    get_props(suffix)      optional; returns the props for one suffix

``get_paths`` and ``get_props`` may be ``async``.

Pages are loaded from the staging area but executed as members of a private
namespace package rooted at the parent of the pages directory, so relative
imports resolve against the *source* tree::

    pages/blog/post.py  ->  _ketch_pages.pages.blog.post
    from ..lib import x ->  _ketch_pages.pages.lib   (pages/lib.py)

The namespace is dropped from ``sys.modules`` at the start of every build so
edited dependencies are executed afresh.

Every page directory is a package in that namespace.  When a page shares its
name with a directory (``pages/blog.py`` next to ``pages/blog/``) the
directory wins the module name, so other pages cannot import that page by
name; it still renders normally.
"""

from __future__ import annotations

import importlib
import importlib.machinery
import importlib.util
import inspect
import sys
import types
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ketch._errors import MalformedPageError

NAMESPACE = "_ketch_pages"


async def _no_props(suffix: str = "") -> dict[str, Any]:
    return {}


@dataclass(frozen=True, slots=True)
class PageModule:
    """The validated contract of one page.

    Attributes:
        source: Source file the page was compiled from.
        render: Render function, called with the page props as keywords.
        get_paths: Route suffix enumerator, or None for a single route.
        get_props: Maps a route suffix to render props.

    """

    source: Path
    render: Callable[..., Any]
    get_paths: Callable[[], Any] | None
    get_props: Callable[[str], Any]

    @property
    def name(self) -> str:
        """Base name of the page (extension stripped)."""
        return self.source.stem


class ModuleLoader:
    """Executes staged bytecode inside the ``_ketch_pages`` namespace.

    Args:
        pages_root: The source pages directory.
        staging_root: Where compiled modules mirror the pages directory.
        suffix: Source module extension.

    """

    def __init__(self, pages_root: Path, staging_root: Path, *, suffix: str = ".py") -> None:
        self._pages_root = pages_root
        self._staging_root = staging_root
        self._suffix = suffix
        self._import_root = pages_root.parent

    def reset(self) -> None:
        """Forget every module loaded by a previous build."""
        for name in [m for m in sys.modules if m == NAMESPACE or m.startswith(NAMESPACE + ".")]:
            del sys.modules[name]

        sys.modules[NAMESPACE] = _namespace_package(NAMESPACE, self._import_root)
        importlib.invalidate_caches()

    def source_for(self, staged_path: Path) -> Path:
        """Map a staged ``.pyc`` back to its source module."""
        relative = staged_path.relative_to(self._staging_root)
        return (self._pages_root / relative).with_suffix(self._suffix)

    def module_name(self, source_path: Path) -> str:
        relative = source_path.relative_to(self._import_root).with_suffix("")
        return ".".join((NAMESPACE, *relative.parts))

    def load(self, staged_path: Path) -> types.ModuleType:
        """Execute a staged module and return it.

        Raises:
            MalformedPageError: If the module raises while executing.

        """
        if NAMESPACE not in sys.modules:
            self.reset()

        source_path = self.source_for(staged_path)
        name = self.module_name(source_path)

        # Source dependencies are compiled fresh and never cached in the source tree
        write_bytecode = sys.dont_write_bytecode
        sys.dont_write_bytecode = True
        try:
            self._ensure_packages(source_path.parent)
            loader = importlib.machinery.SourcelessFileLoader(name, str(staged_path))
            spec = importlib.util.spec_from_file_location(name, staged_path, loader=loader)
            if spec is None:
                msg = "cannot build an import spec"
                raise ImportError(msg)
            module = importlib.util.module_from_spec(spec)
            module.__file__ = str(source_path)
            sys.modules[name] = module
            loader.exec_module(module)
            # A same-named directory keeps the name for its submodules
            directory = source_path.with_suffix("")
            if directory.is_dir():
                self._ensure_packages(directory)
        except MalformedPageError:
            raise
        except Exception as exc:
            sys.modules.pop(name, None)
            raise MalformedPageError(source_path, f"failed to load: {exc}") from exc
        finally:
            sys.dont_write_bytecode = write_bytecode

        return module

    def _ensure_packages(self, directory: Path) -> None:
        """Make every directory from the import root down to *directory* a package.

        Directories with an ``__init__.py`` are imported normally; the rest
        become namespace packages, replacing any page module of the same
        name so ``pages/blog.py`` cannot shadow ``pages/blog/``.
        """
        name = NAMESPACE
        path = self._import_root
        for part in directory.relative_to(self._import_root).parts:
            name = f"{name}.{part}"
            path = path / part
            if (path / "__init__.py").is_file():
                importlib.import_module(name)
            elif not hasattr(sys.modules.get(name), "__path__"):
                sys.modules[name] = _namespace_package(name, path)


def _namespace_package(name: str, path: Path) -> types.ModuleType:
    package = types.ModuleType(name)
    package.__spec__ = importlib.machinery.ModuleSpec(name, None, is_package=True)
    package.__spec__.submodule_search_locations = [str(path)]
    package.__path__ = [str(path)]
    package.__package__ = name
    return package


def load_page(loader: ModuleLoader, staged_path: Path) -> PageModule:
    """Load a staged page and validate its contract.

    Raises:
        MalformedPageError: If ``render`` is missing or not callable, or
            ``get_paths``/``get_props`` is present but not callable.

    """
    module = loader.load(staged_path)
    return page_from_module(module, loader.source_for(staged_path))


def page_from_module(module: object, source: Path) -> PageModule:
    """Extract the page contract from an already executed module."""
    render = getattr(module, "render", None)
    if render is None:
        raise MalformedPageError(source, "does not define a `render` function")
    if not callable(render):
        raise MalformedPageError(source, "`render` is not callable")
    if inspect.iscoroutinefunction(render):
        raise MalformedPageError(source, "`render` must not be async; load data in `get_props`")

    get_paths = getattr(module, "get_paths", None)
    if get_paths is not None and not callable(get_paths):
        raise MalformedPageError(source, "has an invalid `get_paths` export")

    get_props = getattr(module, "get_props", None)
    if get_props is None:
        get_props = _no_props
    elif not callable(get_props):
        raise MalformedPageError(source, "has an invalid `get_props` export")

    return PageModule(
        source=source,
        render=render,
        get_paths=get_paths,
        get_props=get_props,
    )


def load_component(loader: ModuleLoader, staged_path: Path) -> Callable[..., Any] | None:
    """Load a shell/wrapper module and return its ``render`` function.

    Returns None when *staged_path* does not exist.

    Raises:
        MalformedPageError: If the module has no callable ``render``.

    """
    if not staged_path.is_file():
        return None

    module = loader.load(staged_path)
    render = getattr(module, "render", None)
    if not callable(render):
        raise MalformedPageError(
            loader.source_for(staged_path), "`render` is missing or not callable",
        )
    return render


async def call_maybe_async(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it is awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def ensure_mapping(value: Any, source: Path) -> Mapping[str, Any]:
    """Validate a ``get_props`` result; ``None`` means no props."""
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise MalformedPageError(
            source, f"`get_props` returned {type(value).__name__}, expected a mapping",
        )
    return value
