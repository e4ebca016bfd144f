"""Link resolution against the frozen page graph.

Resolution order (first match wins):

1. exact page name
2. exact alias (one hop to a canonical name)
3. namespace expansion: ``ns/rest`` where ``ns`` is a page or alias
4. boundary-aligned prefix of a page name, shortest name first
5. stub page
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import structlog

from logseq_quartz.graph.names import clean_reference, is_boundary, normalize_name
from logseq_quartz.graph.page_graph import PageGraph
from logseq_quartz.graph.stubs import StubSynthesizer
from logseq_quartz.models.page import Page

logger = structlog.get_logger()


class MatchKind(Enum):
    """How a reference was matched."""

    EXACT = "exact"
    ALIAS = "alias"
    NAMESPACE = "namespace"
    PREFIX = "prefix"
    STUB = "stub"


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one reference."""

    kind: MatchKind
    page: Page

    @property
    def name(self) -> str:
        """Canonical name to link to."""
        return self.page.name

    @property
    def is_stub(self) -> bool:
        return self.kind is MatchKind.STUB


class LinkResolver:
    """Resolves reference strings to pages.

    The graph must be frozen first; only the stub path writes to it.
    """

    def __init__(self, graph: PageGraph, stubs: Optional[StubSynthesizer] = None):
        if not graph.frozen:
            raise ValueError("PageGraph must be frozen before links are resolved")
        self.graph = graph
        self.stubs = stubs or StubSynthesizer(graph)

    def resolve(self, reference: str, referenced_from: Optional[str] = None) -> Resolution:
        """
        Resolve a reference, creating a stub page when nothing matches.

        Args:
            reference: Link target as written (``[[...]]``, ``#`` and a
                       leading ``pages/`` are tolerated)
            referenced_from: Name of the referencing page (recorded on stubs)

        Returns:
            Resolution with the match kind and target page
        """
        resolution = self.lookup(reference)
        if resolution is not None:
            return resolution

        stub = self.stubs.stub_for(reference, referenced_from=referenced_from)
        logger.debug("link_resolved", reference=reference, kind="stub", target=stub.name)
        return Resolution(MatchKind.STUB, stub)

    def lookup(self, reference: str) -> Optional[Resolution]:
        """Resolve without creating stubs; None when nothing matches."""
        cleaned = clean_reference(reference)
        key = normalize_name(cleaned)
        if not key:
            return None

        resolution = self._match_exact_or_alias(key)
        if resolution is None:
            resolution = self._match_namespace(key)
        if resolution is None:
            resolution = self._match_prefix(key)

        if resolution is not None:
            logger.debug(
                "link_resolved",
                reference=reference,
                kind=resolution.kind.value,
                target=resolution.name,
            )
        return resolution

    def _match_exact_or_alias(self, key: str) -> Optional[Resolution]:
        page = self.graph.name_index.get(key)
        if page is not None:
            return Resolution(MatchKind.EXACT, page)

        page = self.graph.canonical(key)
        if page is not None:
            return Resolution(MatchKind.ALIAS, page)
        return None

    def _match_namespace(self, key: str) -> Optional[Resolution]:
        if "/" not in key:
            return None
        namespace, rest = key.split("/", 1)
        base = self._match_exact_or_alias(namespace.strip())
        if base is None:
            return None
        expanded = normalize_name(f"{base.page.name}/{rest}")
        page = self.graph.name_index.get(expanded)
        if page is None:
            return None
        return Resolution(MatchKind.NAMESPACE, page)

    def _match_prefix(self, key: str) -> Optional[Resolution]:
        # prefix_keys is sorted by (length, key): the first hit is the
        # shortest name, ties broken lexically
        for candidate in self.graph.prefix_keys:
            if len(candidate) <= len(key):
                continue
            if candidate.startswith(key) and is_boundary(candidate[len(key)]):
                return Resolution(MatchKind.PREFIX, self.graph.name_index[candidate])
        return None
