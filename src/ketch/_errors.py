"""Ketch error hierarchy.

All ketch-specific errors inherit from KetchError for easy catching.
"""

from pathlib import Path


class KetchError(Exception):
    """Base error for all ketch operations."""


class ConfigError(KetchError):
    """Invalid or missing configuration."""


class BuildError(KetchError):
    """A build could not run to completion."""


class MalformedPageError(BuildError):
    """A page (or shell/wrapper) module does not honour the page contract.

    Attributes:
        path: Source file of the offending module.
        reason: What is missing or invalid.

    """

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Malformed page ({self.path}): {reason}")


class MissingDocumentStructureError(BuildError):
    """The document shell lacks an insertion point or a head element."""


class TranspileError(BuildError):
    """A source module could not be compiled into the staging area.

    Attributes:
        path: Source file that failed to compile.
        reason: Compiler message.

    """

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to transpile {self.path}: {reason}")
