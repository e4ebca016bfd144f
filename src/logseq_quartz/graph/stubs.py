"""Placeholder pages for link targets that do not exist."""

from typing import Optional

import structlog

from logseq_quartz.graph.names import clean_reference, normalize_name, stub_slug
from logseq_quartz.graph.page_graph import PageGraph
from logseq_quartz.models.page import Page, PageKind
from logseq_quartz.transform.links import render_link

logger = structlog.get_logger()


class StubSynthesizer:
    """Creates and registers stub pages on a PageGraph.

    A stub's name is ``stub_slug(reference)``, so every spelling of the same
    missing page (case, spacing, ``[[...]]`` or ``#tag`` form) lands on one
    stub.
    """

    def __init__(self, graph: PageGraph):
        self.graph = graph

    def stub_for(self, name: str, referenced_from: Optional[str] = None) -> Page:
        """
        Get or create the stub page for a missing reference.

        Args:
            name: Reference text as written in the source
            referenced_from: Name of the page containing the reference

        Returns:
            The registered stub Page (same instance for the same slug)
        """
        slug = stub_slug(name)

        def create() -> Page:
            logger.info("stub_created", name=slug, reference=name)
            return Page(
                name=slug,
                kind=PageKind.STUB,
                properties={"title": normalize_name(clean_reference(name))},
            )

        stub = self.graph.get_or_add_stub(slug, create)
        if referenced_from:
            # set.add is atomic under the GIL; stub bodies are only rendered
            # after every page has been transformed
            stub.referenced_by.add(referenced_from)
        return stub


def render_stub_body(stub: Page, graph: Optional[PageGraph] = None) -> str:
    """
    Markdown body of a stub page: a note callout with back-references.

    Args:
        stub: Stub page
        graph: Graph the referencing pages live in, used to link journals to
               their own folder
    """
    lines = [
        "> [!note] Stub Page",
        "> This page was auto-generated for a link target that does not exist yet.",
    ]
    if stub.referenced_by:
        lines.append(">")
        lines.append("> Referenced by:")
        for name in sorted(stub.referenced_by, key=normalize_name):
            page = graph.get(name) if graph is not None else None
            journal = page.is_journal if page is not None else False
            lines.append(f"> - {render_link(name, journal=journal)}")
    return "\n".join(lines) + "\n"
