"""Output file layout and writing."""

import os
from pathlib import Path

import structlog

from logseq_quartz.graph.names import output_relative_path
from logseq_quartz.models.page import Page
from logseq_quartz.services.exceptions import ConversionError

logger = structlog.get_logger()


def atomic_write(path: Path, content: str) -> None:
    """
    Write content via a temp file and rename.

    A reader (e.g. a site generator in watch mode) never sees a half-written
    page.

    Raises:
        OSError: On file I/O errors
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.parent / f".{path.name}.tmp.{os.getpid()}"
    try:
        temp_path.write_text(content, encoding="utf-8")
        temp_path.replace(path)
    except OSError:
        if temp_path.exists():
            temp_path.unlink()
        raise


class OutputWriter:
    """Writes converted pages under an output directory.

    Layout: journals keep their ``journals/YYYY-MM-DD.md`` path; pages and
    stubs go under ``pages/`` with namespaces as subdirectories.
    """

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir

    def path_for(self, page: Page) -> Path:
        return self.output_dir / output_relative_path(page.name, journal=page.is_journal)

    def write(self, page: Page, content: str) -> Path:
        """
        Write one page.

        Returns:
            Path written

        Raises:
            ConversionError: If the file cannot be written
        """
        path = self.path_for(page)
        try:
            atomic_write(path, content)
        except OSError as e:
            logger.error("page_write_failed", page=page.name, path=str(path), error=str(e))
            raise ConversionError(str(path), f"Failed to write page: {e}") from e
        logger.debug("page_written", page=page.name, path=str(path), size=len(content))
        return path
