"""Page layer — the incremental dependency-tracking and route-caching engine.

Extracts local dependencies, keeps the per-source page cache, decides what a
change invalidates, resolves page routes, and sequences each build.
"""

from ketch.pages.builder import BuildOptions, BuildResult, PageBuilder, RenderedRoute
from ketch.pages.cache import CacheEntry, PageCache
from ketch.pages.deps import extract_dependencies
from ketch.pages.invalidation import InvalidationPlan, plan_invalidation
from ketch.pages.module import PageModule
from ketch.pages.routes import ResolvedRoute, resolve_routes

__all__ = [
    "BuildOptions",
    "BuildResult",
    "CacheEntry",
    "InvalidationPlan",
    "PageBuilder",
    "PageCache",
    "PageModule",
    "RenderedRoute",
    "ResolvedRoute",
    "extract_dependencies",
    "plan_invalidation",
    "resolve_routes",
]
