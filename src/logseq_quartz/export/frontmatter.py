"""YAML front matter for output pages."""

from typing import Any, Optional

import yaml

from logseq_quartz.export.gitdates import GitDates
from logseq_quartz.models.page import Page

# Page properties with a dedicated front matter field, or none at all
RESERVED_PROPERTIES = {
    "title", "icon", "tags", "alias", "description", "date",
    "id", "collapsed", "filters", "public", "private",
}


def build_frontmatter(page: Page, git_dates: Optional[GitDates] = None) -> dict[str, Any]:
    """
    Front matter fields for a page, in output order.

    Args:
        page: Page (real, journal or stub)
        git_dates: Created/modified dates from git, if known

    Returns:
        Ordered mapping ready for YAML serialization
    """
    data: dict[str, Any] = {}
    data["title"] = f"{page.icon} {page.title}" if page.icon else page.title
    if page.icon:
        data["icon"] = page.icon
    if page.tags:
        data["tags"] = list(page.tags)

    aliases = page.properties.get("alias")
    if aliases:
        data["aliases"] = list(aliases)

    description = page.property_text("description")
    if description:
        data["description"] = description

    if page.date is not None:
        data["date"] = page.date

    if git_dates is not None:
        data["modified"] = git_dates.modified
        data["created"] = git_dates.created

    if page.is_stub:
        data["stub"] = True

    for key, value in page.properties.items():
        if key in RESERVED_PROPERTIES or key.startswith(("logseq.", "query-")) or key in data:
            continue
        data[key] = value
    return data


def render_frontmatter(data: dict[str, Any]) -> str:
    """Serialize front matter between ``---`` fences."""
    body = yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
    return f"---\n{body}---\n"


def render_document(page: Page, body: str, git_dates: Optional[GitDates] = None) -> str:
    """Complete output file: front matter, blank line, body."""
    document = render_frontmatter(build_frontmatter(page, git_dates))
    if body:
        document += "\n" + body
    return document
