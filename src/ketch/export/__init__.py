"""Export helpers that run after pages are built."""

from ketch.export.public import copy_public

__all__ = ["copy_public"]
