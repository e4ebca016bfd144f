"""Index builder: parse a Logseq graph into a frozen PageGraph."""

import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Optional

import structlog
from logseq_outline import GraphPaths, LogseqOutline

from logseq_quartz.graph.names import page_name_from_stem
from logseq_quartz.graph.page_graph import PageGraph
from logseq_quartz.models.page import Page, PageKind, PropertyValue
from logseq_quartz.utils.dates import journal_title, parse_date

logger = structlog.get_logger()

# Properties whose values are comma-separated page lists
LIST_PROPERTIES = ("tags", "alias")

LIST_SPLIT_RE = re.compile(r",(?![^\[]*\]\])")


def split_list_value(value: str) -> list[str]:
    """
    Split a ``tags::``/``alias::`` value into page names.

    Commas inside ``[[...]]`` do not split; brackets and a leading ``#`` are
    stripped from each item and empty items dropped.

    Examples:
        >>> split_list_value("[[Project]], #active, [[a, b]]")
        ['Project', 'active', 'a, b']
    """
    items = []
    for raw in LIST_SPLIT_RE.split(value):
        item = raw.strip()
        if item.startswith("#"):
            item = item[1:]
        if item.startswith("[[") and item.endswith("]]"):
            item = item[2:-2]
        item = item.strip()
        if item and item not in items:
            items.append(item)
    return items


def convert_properties(raw: dict[str, str]) -> dict[str, PropertyValue]:
    """Type raw page properties: list properties split, dates parsed."""
    properties: dict[str, PropertyValue] = {}
    for key, value in raw.items():
        if key in LIST_PROPERTIES:
            properties[key] = split_list_value(value)
            continue
        parsed = parse_date(value) if value else None
        properties[key] = parsed if parsed is not None else value
    return properties


def page_from_markdown(
    name: str,
    markdown: str,
    kind: PageKind = PageKind.PAGE,
    source_path: Optional[Path] = None,
) -> Page:
    """
    Build a Page from Logseq markdown.

    Journal pages get the ``journals/YYYY-MM-DD`` name, their date, and the
    ISO, underscore and Logseq title spellings as aliases.

    Args:
        name: Page name (for journals, the file stem, e.g. ``2024_01_15``)
        markdown: Raw page text
        kind: PAGE or JOURNAL
        source_path: Source file, recorded on the page

    Returns:
        Parsed Page
    """
    outline = LogseqOutline.parse(markdown)
    properties = convert_properties(outline.page_properties)

    aliases = list(properties.get("alias", []))
    tags = list(properties.get("tags", []))
    journal_date = None

    if kind is PageKind.JOURNAL:
        journal_date = parse_date(name)
        if journal_date is None:
            logger.warning("journal_name_not_a_date", name=name)
            name = f"journals/{name}"
        else:
            iso = journal_date.isoformat()
            name = f"journals/{iso}"
            for alias in (iso, iso.replace("-", "_"), journal_title(journal_date)):
                if alias not in aliases:
                    aliases.append(alias)

    return Page(
        name=name,
        kind=kind,
        source_path=source_path,
        outline=outline,
        properties=properties,
        aliases=aliases,
        tags=tags,
        journal_date=journal_date,
    )


def build_graph(pages: Iterable[Page]) -> PageGraph:
    """Merge pages into a graph in order (last write wins) and freeze it."""
    graph = PageGraph()
    for page in pages:
        graph.add_page(page)
    graph.freeze()
    return graph


class IndexBuilder:
    """Reads every page and journal of a graph directory into a PageGraph.

    Files are parsed in a thread pool; results are merged in discovery order
    (pages sorted by path, then journals) so duplicate handling does not
    depend on scheduling.
    """

    def __init__(
        self,
        graph_paths: GraphPaths,
        include_private: bool = False,
        workers: int = 4,
    ):
        """
        Initialize index builder.

        Args:
            graph_paths: GraphPaths for the Logseq graph
            include_private: Keep pages marked ``private:: true``
            workers: Thread pool size (1 parses serially)
        """
        self.graph_paths = graph_paths
        self.include_private = include_private
        self.workers = workers
        self.skipped: list[Path] = []
        self.failed: list[Path] = []

    def discover(self) -> list[tuple[Path, PageKind]]:
        """All page and journal files in merge order."""
        files = [(path, PageKind.PAGE) for path in self.graph_paths.list_pages()]
        files.extend((path, PageKind.JOURNAL) for path in self.graph_paths.list_journals())
        return files

    def parse_file(self, path: Path, kind: PageKind) -> Optional[Page]:
        """
        Parse one file into a Page.

        Returns:
            The page, or None if it could not be read
        """
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("page_read_failed", path=str(path), error=str(e))
            self.failed.append(path)
            return None

        name = path.stem if kind is PageKind.JOURNAL else page_name_from_stem(path.stem)
        page = page_from_markdown(name, text, kind=kind, source_path=path)
        logger.debug("page_parsed", page=page.name, kind=kind.value, blocks=len(page.blocks))
        return page

    def build(self) -> PageGraph:
        """Parse every file, merge into a PageGraph and freeze it."""
        files = self.discover()
        logger.info("index_build_started", files=len(files), workers=self.workers)

        if self.workers > 1 and len(files) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                parsed = list(executor.map(lambda item: self.parse_file(*item), files))
        else:
            parsed = [self.parse_file(path, kind) for path, kind in files]

        pages = []
        for page in parsed:
            if page is None:
                continue
            if page.is_private and not self.include_private:
                logger.info("private_page_skipped", page=page.name)
                self.skipped.append(page.source_path)
                continue
            pages.append(page)

        graph = build_graph(pages)
        logger.info(
            "index_build_completed",
            pages=len(graph),
            skipped=len(self.skipped),
            failed=len(self.failed),
        )
        return graph
