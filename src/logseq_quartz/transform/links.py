"""Rendering of resolved links in the output markdown."""

from html import escape
from typing import Optional

from logseq_quartz.graph.names import url_slug

DOLLAR_ENTITY = "&#36;"


def needs_html_anchor(*texts: str) -> bool:
    """Whether a link must be written as an HTML anchor.

    The site renderer runs its math pass before its wikilink pass, so any
    ``$`` inside ``[[...]]`` would be taken as a math delimiter.
    """
    return any("$" in text for text in texts if text)


def html_anchor(target: str, label: str, anchor: Optional[str] = None, journal: bool = False) -> str:
    """Raw ``<a>`` link to a page's output URL, with every ``$`` written as an entity."""
    href = url_slug(target, journal=journal)
    if anchor:
        href = f"{href}#{anchor}"
    text = escape(label, quote=False).replace("$", DOLLAR_ENTITY)
    return f'<a href="{href}" class="internal">{text}</a>'


def render_link(
    target: str,
    label: Optional[str] = None,
    reference: Optional[str] = None,
    anchor: Optional[str] = None,
    embed: bool = False,
    journal: bool = False,
) -> str:
    """
    Render a link to a resolved page.

    Args:
        target: Canonical name of the resolved page
        label: Display text (omitted when it equals the target)
        reference: Reference as written in the source
        anchor: Heading or ``^block`` anchor inside the target
        embed: Render as a transclusion (``![[...]]``)
        journal: Target is a journal page (its file lives under ``journals/``)

    Returns:
        ``[[Target]]``, ``[[Target|label]]`` or, when a ``$`` is involved, an
        HTML anchor

    Examples:
        >>> render_link("Project Alpha", "project alpha")
        '[[Project Alpha|project alpha]]'
        >>> render_link("$BOOT")
        '<a href="/pages/%24BOOT" class="internal">&#36;BOOT</a>'
    """
    label = label or reference or target
    if needs_html_anchor(target, label, reference or ""):
        return html_anchor(target, label, anchor, journal=journal)

    destination = f"{target}#{anchor}" if anchor else target
    prefix = "!" if embed else ""
    if embed or label == target:
        return f"{prefix}[[{destination}]]"
    return f"[[{destination}|{label}]]"
