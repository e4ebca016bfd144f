"""Logseq graph directory layout.

A graph root holds ``pages/`` and ``journals/`` with one markdown file per
page, plus Logseq's own ``logseq/`` directory (config, backups, version
files) which is never part of the content.
"""

from pathlib import Path
from typing import Iterator, Optional


class GraphPaths:
    """Locates the page and journal files of a Logseq graph.

    Attributes:
        graph_path: Root path to Logseq graph directory
    """

    def __init__(self, graph_path: Path):
        """Initialize with graph root path.

        Args:
            graph_path: Path to Logseq graph directory

        Raises:
            ValueError: If graph_path doesn't exist or isn't a directory
        """
        if not graph_path.exists():
            raise ValueError(f"Graph path does not exist: {graph_path}")
        if not graph_path.is_dir():
            raise ValueError(f"Graph path is not a directory: {graph_path}")

        self.graph_path = graph_path

    @property
    def journals_dir(self) -> Path:
        return self.graph_path / "journals"

    @property
    def pages_dir(self) -> Path:
        return self.graph_path / "pages"

    @property
    def config_path(self) -> Path:
        """Logseq's ``logseq/config.edn``; present in every graph Logseq has opened."""
        return self.graph_path / "logseq" / "config.edn"

    def list_journals(self) -> list[Path]:
        """Journal files sorted by file name (chronological for YYYY_MM_DD)."""
        return sorted(_markdown_files(self.journals_dir))

    def list_pages(self) -> list[Path]:
        """Page files sorted by path, subdirectories of pages/ included."""
        return sorted(_markdown_files(self.pages_dir))

    def relative(self, path: Path) -> Optional[str]:
        """Graph-relative POSIX path of a file, or None if outside the graph."""
        try:
            return path.relative_to(self.graph_path).as_posix()
        except ValueError:
            return None


def _markdown_files(directory: Path) -> Iterator[Path]:
    """Markdown files below directory, skipping hidden files and folders."""
    if not directory.is_dir():
        return
    for path in directory.rglob("*.md"):
        parts = path.relative_to(directory).parts
        if any(part.startswith(".") for part in parts):
            continue
        if path.is_file():
            yield path
