"""Content layer — file watching and change events."""

from ketch.content.watcher import ChangeEvent, SiteWatcher, categorize_change

__all__ = [
    "ChangeEvent",
    "SiteWatcher",
    "categorize_change",
]
