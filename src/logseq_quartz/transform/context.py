"""Per-page transform state: protected spans and their placeholders."""

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from logseq_outline import LogseqBlock

    from logseq_quartz.graph.resolver import LinkResolver, Resolution
    from logseq_quartz.models.page import Page
    from logseq_quartz.query.engine import QueryEngine

PLACEHOLDER_RE = re.compile("\x00P(\\d+)\x00")


@dataclass
class ProtectedSpan:
    """A region of text hidden from later stages.

    Attributes:
        kind: What was protected (code, wikilink, math, link, embed, query...)
        original: Source text of the span
        rendered: Replacement written back on restore (defaults to original)
        reference: Link target as written, for wikilink spans
        resolution: Resolution of the link target, set by the links stage
    """

    kind: str
    original: str
    rendered: Optional[str] = None
    reference: Optional[str] = None
    resolution: Optional["Resolution"] = None

    @property
    def output(self) -> str:
        return self.original if self.rendered is None else self.rendered


@dataclass
class TransformContext:
    """State for transforming one page.

    Placeholders look like ``\\x00P<n>\\x00``; NUL never occurs in page text,
    so no later regex can match inside one.
    """

    page: "Page"
    resolver: "LinkResolver"
    queries: Optional["QueryEngine"] = None
    create_stubs: bool = True
    query_table: bool = True
    block: Optional["LogseqBlock"] = None
    spans: list[ProtectedSpan] = field(default_factory=list)

    def protect(self, original: str, kind: str, rendered: Optional[str] = None, **extra) -> str:
        """Record a span and return its placeholder token."""
        self.spans.append(ProtectedSpan(kind, original, rendered, **extra))
        return placeholder(len(self.spans) - 1)

    def span(self, token: str) -> Optional[ProtectedSpan]:
        """Span for a placeholder token (None if text is not a token)."""
        match = PLACEHOLDER_RE.fullmatch(token)
        if match is None:
            return None
        index = int(match.group(1))
        return self.spans[index] if index < len(self.spans) else None

    def restore(self, text: str) -> str:
        """Replace placeholders with their rendered text, newest first.

        A rendered span may itself contain older placeholders, so spans are
        restored in reverse creation order.
        """
        for index in range(len(self.spans) - 1, -1, -1):
            token = placeholder(index)
            if token in text:
                text = text.replace(token, self.spans[index].output)
        return text

    def restore_original(self, text: str) -> str:
        """Replace placeholders with their original source text."""
        for index in range(len(self.spans) - 1, -1, -1):
            token = placeholder(index)
            if token in text:
                text = text.replace(token, self.spans[index].original)
        return text


def placeholder(index: int) -> str:
    return f"\x00P{index}\x00"
