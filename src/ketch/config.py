"""Ketch configuration.

KetchConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class KetchConfig:
    """Configuration for a ketch site.

    Attributes:
        root: Path to the site root directory (contains pages/, public/, etc.).
              Always resolved to an absolute path on construction.
        pages_dir: Directory containing page modules, relative to root.
        public_dir: Directory copied verbatim into the output.
        output: Output directory for rendered HTML.
        staging_dir: Name of the transient directory (inside the output)
            holding compiled page modules during a build.
        index_name: Page base name that renders to its own directory.
        document_name: Module name of the document shell override.
        wrapper_name: Module name of the page wrapper override.
        module_suffix: File extension of page modules.
        entry_id: Element id marking the page insertion point in the shell.
        transitive_propagation: Follow dependency chains to a fixed point
            instead of a single sweep per build.
        debounce_ms: Watch-mode debounce window for batching changes.

    """

    root: Path = field(default_factory=Path.cwd)
    pages_dir: str = "pages"
    public_dir: str = "public"
    output: Path = field(default_factory=lambda: Path("out"))
    staging_dir: str = ".staging"
    index_name: str = "index"
    document_name: str = "_document"
    wrapper_name: str = "_app"
    module_suffix: str = ".py"
    entry_id: str = "ketch"
    transitive_propagation: bool = False
    debounce_ms: int = 300

    def __post_init__(self) -> None:
        # watchfiles reports absolute paths; keep root comparable with them.
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())

    @property
    def pages_path(self) -> Path:
        """Absolute path to the page modules directory."""
        return self.root / self.pages_dir

    @property
    def public_path(self) -> Path:
        """Absolute path to the public directory."""
        return self.root / self.public_dir

    @property
    def output_path(self) -> Path:
        """Absolute path to output directory."""
        if self.output.is_absolute():
            return self.output
        return self.root / self.output

    @property
    def staging_path(self) -> Path:
        """Absolute path to the staging area for compiled page modules."""
        return self.output_path / self.staging_dir

    @property
    def shell_modules(self) -> frozenset[str]:
        """Base names of the document shell and page wrapper modules."""
        return frozenset({self.document_name, self.wrapper_name})
