"""Page graph: every page plus the name, alias and block indexes.

The graph is filled by the index builder, then frozen. After ``freeze()`` the
only mutation left is stub registration, which is serialized by a lock so
transform workers can share one graph.
"""

import threading
from typing import Iterator, Optional

import structlog
from logseq_outline import LogseqBlock

from logseq_quartz.graph.names import normalize_name
from logseq_quartz.models.page import Page

logger = structlog.get_logger()


class GraphFrozenError(RuntimeError):
    """Raised when a page is added after the graph has been frozen."""


class PageGraph:
    """All pages of one conversion run and their lookup structures.

    Attributes:
        pages: Pages in insertion order (stubs excluded)
        name_index: Normalized name -> Page
        alias_index: Normalized alias -> canonical page name
        block_index: Block id -> (Page, LogseqBlock)
        stubs: Stub slug -> stub Page, in creation order
    """

    def __init__(self):
        self.name_index: dict[str, Page] = {}
        self.alias_index: dict[str, str] = {}
        self.block_index: dict[str, tuple[Page, LogseqBlock]] = {}
        self.stubs: dict[str, Page] = {}
        self._stub_lock = threading.Lock()
        self._frozen = False
        self._prefix_keys: list[str] = []

    @property
    def pages(self) -> list[Page]:
        return list(self.name_index.values())

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def prefix_keys(self) -> list[str]:
        """Name-index keys sorted by (length, key), computed at freeze."""
        return self._prefix_keys

    def add_page(self, page: Page) -> Optional[Page]:
        """
        Add a page, replacing any page with the same normalized name.

        Duplicate names are resolved last-write-wins: the later page takes
        the earlier one's place in the name index and in insertion order.

        Args:
            page: Page to add

        Returns:
            The page that was replaced, or None

        Raises:
            GraphFrozenError: If the graph is already frozen
        """
        if self._frozen:
            raise GraphFrozenError(f"Cannot add page after freeze: {page.name}")

        replaced = self.name_index.get(page.key)
        if replaced is not None:
            logger.warning(
                "duplicate_page_name",
                name=page.name,
                kept=str(page.source_path),
                replaced=str(replaced.source_path),
            )

        self.name_index[page.key] = page
        return replaced

    def freeze(self) -> None:
        """Build the derived indexes and stop accepting real pages."""
        if self._frozen:
            return

        for page in self.name_index.values():
            for alias in page.aliases:
                self._register_alias(alias, page)

        for page in self.name_index.values():
            for block in page.iter_blocks():
                if block.block_id:
                    self.block_index[block.block_id.lower()] = (page, block)

        self._prefix_keys = sorted(self.name_index, key=lambda key: (len(key), key))
        self._frozen = True

        logger.info(
            "page_graph_frozen",
            pages=len(self.name_index),
            aliases=len(self.alias_index),
            blocks=len(self.block_index),
        )

    def _register_alias(self, alias: str, page: Page) -> None:
        key = normalize_name(alias)
        if not key or key == page.key:
            return
        if key in self.name_index:
            # A real page always wins over an alias
            logger.debug("alias_shadows_page", alias=alias, page=page.name)
            return
        existing = self.alias_index.get(key)
        if existing is not None and existing != page.name:
            logger.warning(
                "duplicate_alias", alias=alias, kept=page.name, replaced=existing
            )
        self.alias_index[key] = page.name

    def get(self, name: str) -> Optional[Page]:
        """Page by exact (normalized) name."""
        return self.name_index.get(normalize_name(name))

    def canonical(self, alias: str) -> Optional[Page]:
        """Page an alias points at, in one hop."""
        canonical_name = self.alias_index.get(normalize_name(alias))
        if canonical_name is None:
            return None
        return self.name_index.get(normalize_name(canonical_name))

    def find_block(self, block_id: str) -> Optional[tuple[Page, LogseqBlock]]:
        return self.block_index.get(block_id.strip().lower())

    def get_or_add_stub(self, slug: str, factory) -> Page:
        """
        Return the stub registered under slug, creating it with factory().

        Lookup-or-insert runs under a lock so concurrent resolutions of the
        same missing name produce one stub.
        """
        with self._stub_lock:
            stub = self.stubs.get(slug)
            if stub is None:
                stub = factory()
                self.stubs[slug] = stub
                logger.debug("stub_registered", name=stub.name)
            return stub

    def iter_all(self) -> Iterator[Page]:
        """Real pages followed by stubs."""
        yield from self.name_index.values()
        with self._stub_lock:
            stubs = list(self.stubs.values())
        yield from stubs

    def __len__(self) -> int:
        return len(self.name_index)

    def __contains__(self, name: str) -> bool:
        return normalize_name(name) in self.name_index
