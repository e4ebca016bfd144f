"""Rendering of query results as markdown tables or lists."""

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

from logseq_quartz.models.page import Page
from logseq_quartz.transform.links import render_link

EMPTY_RESULT = "> [!info] Query Results\n> No pages match this query."
MAX_QUERY_ECHO = 80

# Properties never shown as automatic columns
HIDDEN_COLUMNS = {"title", "alias", "tags", "id", "collapsed", "icon", "public", "filters"}

COLUMN_SPLIT_RE = re.compile(r"[\s,]+")
PAGE_COLUMNS = ("page", "name")


@dataclass(frozen=True)
class QueryOptions:
    """Rendering options read from a query block's ``query-*`` properties."""

    properties: tuple[str, ...] = ()
    table: bool = True
    sort_by: Optional[str] = None
    sort_desc: bool = False

    @classmethod
    def from_properties(cls, properties: dict[str, str], default_table: bool = True) -> "QueryOptions":
        """
        Build options from block properties.

        Understands ``query-properties:: [:page :status]``,
        ``query-table:: false``, ``query-sort-by:: name`` and
        ``query-sort-desc:: true``.
        """
        columns = properties.get("query-properties", "").strip().strip("[]")
        table = properties.get("query-table")
        sort_by = properties.get("query-sort-by", "").strip().lstrip(":")
        return cls(
            properties=tuple(
                column.lstrip(":").lower()
                for column in COLUMN_SPLIT_RE.split(columns)
                if column.lstrip(":")
            ),
            table=default_table if table is None else table.strip().lower() == "true",
            sort_by=sort_by.lower() or None,
            sort_desc=properties.get("query-sort-desc", "").strip().lower() == "true",
        )

    @property
    def as_table(self) -> bool:
        return bool(self.properties) or self.table


def column_value(page: Page, column: str) -> str:
    """Plain-text value of a column, used for sorting."""
    column = column.lower()
    if column in PAGE_COLUMNS:
        return page.name
    if column == "namespace":
        return page.namespace or ""
    return page.property_text(column)


def sort_results(pages: list[Page], options: QueryOptions) -> list[Page]:
    """Stable sort by the sort column; input order kept without one."""
    if not options.sort_by:
        return list(pages)

    def sort_key(page: Page):
        value = page.properties.get(options.sort_by)
        if isinstance(value, date):
            return value.isoformat()
        return column_value(page, options.sort_by).casefold()

    # sorted() stays stable with reverse=True
    return sorted(pages, key=sort_key, reverse=options.sort_desc)


def auto_columns(pages: list[Page]) -> list[str]:
    """Page, tags, then every other property key in first-seen order."""
    columns = ["page", "tags"]
    for page in pages:
        for key in page.properties:
            if key in HIDDEN_COLUMNS or key.startswith("query-") or key in columns:
                continue
            columns.append(key)
    return columns


def page_link(page: Page) -> str:
    label = f"{page.icon} {page.title}" if page.icon else page.title
    return render_link(page.name, label, journal=page.is_journal)


def _cell(page: Page, column: str) -> str:
    if column in PAGE_COLUMNS:
        text = page_link(page)
    elif column == "tags":
        text = ", ".join(render_link(tag) for tag in page.tags)
    else:
        text = column_value(page, column)
    return text.replace("\n", " ").replace("|", "\\|")


def _header(column: str) -> str:
    if column in PAGE_COLUMNS:
        return "Page"
    return column.replace("-", " ").replace("_", " ").title()


def render_table(pages: list[Page], columns: list[str]) -> str:
    lines = [
        "| " + " | ".join(_header(column) for column in columns) + " |",
        "|" + " --- |" * len(columns),
    ]
    for page in pages:
        lines.append("| " + " | ".join(_cell(page, column) for column in columns) + " |")
    return "\n".join(lines)


def render_list(pages: list[Page]) -> str:
    return "\n".join(f"- {page_link(page)}" for page in pages)


def render_results(pages: list[Page], query: str, options: QueryOptions) -> str:
    """
    Render query results.

    Args:
        pages: Matching pages in graph order
        query: Raw query text (echoed when nothing matches)
        options: Rendering options

    Returns:
        Markdown table, list, or an info callout for an empty result
    """
    if not pages:
        echo = query if len(query) <= MAX_QUERY_ECHO else query[:MAX_QUERY_ECHO] + "..."
        return f"{EMPTY_RESULT}\n> `{echo}`"

    ordered = sort_results(pages, options)
    if not options.as_table:
        return render_list(ordered)
    columns = list(options.properties) or auto_columns(ordered)
    return render_table(ordered, columns)
