"""Shared type definitions for ketch."""

from collections.abc import Callable, Mapping
from typing import Any, Literal

# Kind of filesystem change reported to a build
type ChangeKind = Literal["added", "modified", "removed"]

# Logical route relative to the output root, posix-style ("" is the root)
type RoutePath = str

# Properties handed to a page's ``render``
type Props = Mapping[str, Any]

# A component or page render function
type Component = Callable[..., Any]
