"""Page model for the page graph."""

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from functools import cached_property
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Optional, Union

from logseq_outline import iter_blocks, outline_text

from logseq_quartz.graph.names import namespace_of, normalize_name
from logseq_quartz.utils.dates import long_title

if TYPE_CHECKING:
    from logseq_outline import LogseqBlock, LogseqOutline

PropertyValue = Union[str, list[str], date]

QUERY_MACRO_RE = re.compile(r"\{\{query\s.*?\}\}", re.DOTALL)


class PageKind(Enum):
    """Where a page came from."""

    PAGE = "page"
    JOURNAL = "journal"
    STUB = "stub"


@dataclass(eq=False)
class Page:
    """One note in the graph.

    Pages are created by the index builder (or the stub synthesizer) and are
    read-only once the graph is frozen. Identity is object identity: the same
    canonical page is always the same Page instance.

    Attributes:
        name: Canonical name, case preserved (e.g., "Project/Alpha")
        kind: Page, journal or stub
        source_path: File the page was parsed from (None for stubs)
        outline: Parsed outline (None for stubs)
        properties: Page-level properties in source order; ``tags`` and
                    ``alias`` hold lists, date-valued properties hold dates
        aliases: Alias names declared by the page
        tags: Tag names declared by the page, display case preserved
        journal_date: Date of a journal page
        referenced_by: Names of pages linking here (stubs only)
    """

    name: str
    kind: PageKind = PageKind.PAGE
    source_path: Optional[Path] = None
    outline: Optional["LogseqOutline"] = None
    properties: dict[str, PropertyValue] = field(default_factory=dict)
    aliases: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    journal_date: Optional[date] = None
    referenced_by: set[str] = field(default_factory=set)

    @cached_property
    def key(self) -> str:
        """Normalized name used by the name index."""
        return normalize_name(self.name)

    @cached_property
    def tag_keys(self) -> frozenset[str]:
        """Normalized tag names."""
        return frozenset(normalize_name(tag) for tag in self.tags)

    @property
    def is_stub(self) -> bool:
        return self.kind is PageKind.STUB

    @property
    def is_journal(self) -> bool:
        return self.kind is PageKind.JOURNAL

    @property
    def is_private(self) -> bool:
        return self.property_text("private").lower() == "true"

    @property
    def namespace(self) -> Optional[str]:
        return namespace_of(self.name)

    @property
    def title(self) -> str:
        """Display title: title:: property, journal date, or the name."""
        title = self.property_text("title")
        if title:
            return title
        if self.journal_date is not None:
            return long_title(self.journal_date)
        return self.name.replace("_", " ")

    @property
    def icon(self) -> str:
        return self.property_text("icon")

    @property
    def date(self) -> Optional[date]:
        """Journal date, or the value of a date:: property."""
        if self.journal_date is not None:
            return self.journal_date
        value = self.properties.get("date")
        return value if isinstance(value, date) else None

    @property
    def blocks(self) -> list["LogseqBlock"]:
        """Top-level content blocks (the page-properties block excluded)."""
        if self.outline is None:
            return []
        return self.outline.content_blocks

    @cached_property
    def text(self) -> str:
        """Raw text of the whole page, for substring searches."""
        if self.outline is None:
            return ""
        return outline_text(self.outline)

    @cached_property
    def search_text(self) -> str:
        """Page text as queries see it: embedded ``{{query ...}}`` macros removed.

        A page hosting a query never matches that query through its own
        macro text.
        """
        return QUERY_MACRO_RE.sub("", self.text)

    def iter_blocks(self) -> Iterator["LogseqBlock"]:
        """Every block of the page, depth-first."""
        if self.outline is None:
            return
        for block, _parents in iter_blocks(self.outline.blocks):
            yield block

    def property_text(self, key: str) -> str:
        """Property value rendered as a string ("" when missing)."""
        value = self.properties.get(key.lower())
        if value is None:
            return ""
        if isinstance(value, list):
            return ", ".join(value)
        if isinstance(value, date):
            return value.isoformat()
        return value

    def __repr__(self) -> str:
        return f"Page({self.name!r}, kind={self.kind.value})"
