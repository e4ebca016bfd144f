"""Two-phase conversion run: index the graph, then transform and write pages."""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

import structlog
from logseq_outline import GraphPaths

from logseq_quartz.export.frontmatter import render_document
from logseq_quartz.export.gitdates import GitDates, collect_git_dates
from logseq_quartz.export.writer import OutputWriter
from logseq_quartz.graph.builder import IndexBuilder
from logseq_quartz.graph.page_graph import PageGraph
from logseq_quartz.graph.resolver import LinkResolver
from logseq_quartz.graph.stubs import render_stub_body
from logseq_quartz.models.config import ConverterConfig
from logseq_quartz.models.page import Page, PageKind
from logseq_quartz.services.exceptions import ConversionError
from logseq_quartz.transform.pipeline import PageTransformer

logger = structlog.get_logger()


@dataclass
class ConversionStats:
    """Counts reported at the end of a run."""

    pages: int = 0
    journals: int = 0
    stubs: int = 0
    skipped_private: int = 0
    failed: list[str] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def written(self) -> int:
        return self.pages + self.journals + self.stubs


class Converter:
    """Runs one conversion of a Logseq graph into Quartz markdown.

    Phase 1 builds and freezes the page graph; no link is resolved and no
    query evaluated before it completes. Phase 2 transforms pages in a thread
    pool, then writes stub pages once every page has recorded its references.
    """

    def __init__(self, config: ConverterConfig):
        self.config = config
        self.graph_paths = GraphPaths(config.input_dir)
        self.writer = OutputWriter(config.output_dir)
        self.builder: Optional[IndexBuilder] = None
        self.graph: Optional[PageGraph] = None
        self.git_dates: dict[str, GitDates] = {}

    def build_graph(self) -> PageGraph:
        """Phase 1: parse every page and freeze the graph."""
        if not self.graph_paths.config_path.exists():
            logger.warning(
                "graph_config_missing",
                path=str(self.graph_paths.config_path),
                hint="input directory may not be a Logseq graph",
            )
        self.builder = IndexBuilder(
            self.graph_paths,
            include_private=self.config.include_private,
            workers=self.config.workers,
        )
        self.graph = self.builder.build()
        return self.graph

    def run(self) -> ConversionStats:
        """
        Convert the whole graph.

        Returns:
            ConversionStats for the run

        Raises:
            ValueError: If the graph has no pages or journals
        """
        started = time.monotonic()
        stats = ConversionStats()

        graph = self.build_graph()
        stats.skipped_private = len(self.builder.skipped)
        stats.failed.extend(str(path) for path in self.builder.failed)
        if len(graph) == 0:
            raise ValueError(f"No pages found in {self.config.input_dir}")

        if self.config.git_dates:
            self.git_dates = collect_git_dates(self.config.input_dir)

        resolver = LinkResolver(graph)
        transformer = PageTransformer(
            resolver,
            create_stubs=self.config.create_stubs,
            query_table=self.config.query_table,
        )

        logger.info("transform_started", pages=len(graph), workers=self.config.workers)
        pages = graph.pages
        if self.config.workers > 1 and len(pages) > 1:
            with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
                outcomes = list(executor.map(lambda page: self._convert(page, transformer), pages))
        else:
            outcomes = [self._convert(page, transformer) for page in pages]

        for page, ok in zip(pages, outcomes):
            if not ok:
                stats.failed.append(str(page.source_path))
            elif page.kind is PageKind.JOURNAL:
                stats.journals += 1
            else:
                stats.pages += 1

        if self.config.create_stubs:
            for stub in list(graph.stubs.values()):
                try:
                    self.writer.write(stub, render_document(stub, render_stub_body(stub, graph)))
                    stats.stubs += 1
                except ConversionError as e:
                    stats.failed.append(e.path)

        stats.elapsed = time.monotonic() - started
        logger.info(
            "conversion_completed",
            pages=stats.pages,
            journals=stats.journals,
            stubs=stats.stubs,
            skipped_private=stats.skipped_private,
            failed=len(stats.failed),
            elapsed=round(stats.elapsed, 3),
        )
        return stats

    def _git_dates_for(self, page: Page) -> Optional[GitDates]:
        if not self.git_dates or page.source_path is None:
            return None
        relative = self.graph_paths.relative(page.source_path)
        return self.git_dates.get(relative) if relative else None

    def _convert(self, page: Page, transformer: PageTransformer) -> bool:
        """Transform and write one page; failures are logged, never raised."""
        try:
            try:
                body = transformer.transform(page)
            except Exception as e:
                raise ConversionError(str(page.source_path), f"Failed to transform page: {e}") from e
            self.writer.write(page, render_document(page, body, self._git_dates_for(page)))
        except ConversionError as e:
            logger.error("page_conversion_failed", page=page.name, path=e.path, error=e.message, exc_info=True)
            return False
        return True
