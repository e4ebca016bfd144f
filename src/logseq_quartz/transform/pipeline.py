"""Page transformer: runs the stage pipeline over every block of a page."""

from typing import Optional

import structlog
from logseq_outline import LogseqBlock

from logseq_quartz.graph.resolver import LinkResolver
from logseq_quartz.models.page import Page
from logseq_quartz.query.engine import QueryEngine
from logseq_quartz.transform.context import TransformContext
from logseq_quartz.transform.hiccup import is_block_html
from logseq_quartz.transform.stages import STAGES, Stage
from logseq_quartz.transform.tables import is_table

logger = structlog.get_logger()


def run_stages(text: str, ctx: TransformContext, stages: Optional[list[Stage]] = None) -> str:
    """Run text through the stages in order."""
    for stage in stages or STAGES:
        text = stage.apply(text, ctx)
    return text


def is_block_level(text: str) -> bool:
    """Output that must not sit behind a list bullet."""
    stripped = text.lstrip()
    return is_table(stripped) or stripped.startswith(("- ", "> ")) or is_block_html(stripped)


def with_block_anchor(text: str, block_id: str) -> str:
    """Append an Obsidian block anchor so ``[[Page#^id]]`` links land."""
    last = text.rsplit("\n", 1)[-1].lstrip()
    if last.startswith(("|", "```", "<")):
        return f"{text}\n^{block_id}"
    return f"{text} ^{block_id}"


class PageTransformer:
    """Turns a page's outline into output markdown.

    One transformer is shared by all worker threads; each ``transform`` call
    works on its own TransformContext.
    """

    def __init__(
        self,
        resolver: LinkResolver,
        queries: Optional[QueryEngine] = None,
        create_stubs: bool = True,
        query_table: bool = True,
    ):
        self.resolver = resolver
        self.queries = queries or QueryEngine(resolver.graph, resolver)
        self.create_stubs = create_stubs
        self.query_table = query_table

    def new_context(self, page: Page) -> TransformContext:
        return TransformContext(
            page=page,
            resolver=self.resolver,
            queries=self.queries,
            create_stubs=self.create_stubs,
            query_table=self.query_table,
        )

    def transform_text(self, text: str, page: Page, block: Optional[LogseqBlock] = None) -> str:
        """Transform a single piece of text (one block's content)."""
        ctx = self.new_context(page)
        ctx.block = block
        return run_stages(text, ctx)

    def transform(self, page: Page) -> str:
        """
        Transform a page body.

        Never raises for malformed content: unrecognized constructs pass
        through as text.

        Args:
            page: Page from the frozen graph

        Returns:
            Markdown body (without front matter)
        """
        if page.outline is None:
            return ""
        ctx = self.new_context(page)
        lines: list[str] = []
        self._emit(page.blocks, 0, ctx, page.outline.indent_str, lines)
        logger.debug("page_transformed", page=page.name, spans=len(ctx.spans))
        return "\n".join(lines).strip("\n") + "\n" if lines else ""

    def _emit(
        self,
        blocks: list[LogseqBlock],
        depth: int,
        ctx: TransformContext,
        indent_str: str,
        lines: list[str],
    ) -> None:
        for block in blocks:
            ctx.block = block
            text = run_stages(block.get_full_content(), ctx).strip("\n")
            indent = indent_str * depth

            if not text.strip():
                # No bullet for an empty block; children keep their level
                self._emit(block.children, depth, ctx, indent_str, lines)
                continue

            if block.block_id:
                text = with_block_anchor(text, block.block_id.lower())

            if is_block_level(text):
                is_table = text.lstrip().startswith("|")
                if is_table and lines and lines[-1].strip():
                    lines.append("")
                lines.extend(indent + line if line else "" for line in text.split("\n"))
                if is_table:
                    lines.append("")
            else:
                first, *rest = text.split("\n")
                lines.append(f"{indent}- {first}")
                lines.extend(f"{indent}  {line}" if line else "" for line in rest)

            self._emit(block.children, depth + 1, ctx, indent_str, lines)
