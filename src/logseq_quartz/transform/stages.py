"""The ordered transform stages.

Each stage is a pure function ``(text, ctx) -> text`` over one block's text.
The order in ``STAGES`` is load-bearing:

- ``protect`` must run first so that code, math and wikilinks are out of
  reach of every later regex (in particular the ``$`` escaping).
- ``links`` renders protected wikilinks; ``embeds`` and ``queries`` look at
  the link spans it resolved.
- ``queries`` needs the block's ``query-*`` properties, so it runs before
  ``structure`` strips them.
- ``tables`` runs after everything that can emit a table.
- ``escape_and_restore`` runs last and is the only stage that puts protected
  text back.
"""

import re
from typing import Callable, NamedTuple

import structlog
from logseq_outline import parse_property_line

from logseq_quartz.query.render import QueryOptions, render_results
from logseq_quartz.services.exceptions import QuerySyntaxError
from logseq_quartz.transform.context import ProtectedSpan, TransformContext
from logseq_quartz.transform.hiccup import hiccup_to_html, is_hiccup
from logseq_quartz.transform.links import render_link
from logseq_quartz.transform.tables import fix_tables

logger = structlog.get_logger()

TOKEN = "\x00P\\d+\x00"

FENCED_CODE_RE = re.compile(r"^[ \t]*```.*?^[ \t]*```[ \t]*$", re.MULTILINE | re.DOTALL)
INLINE_CODE_RE = re.compile(r"`[^`\n]+`")
WIKILINK_RE = re.compile(r"([!#]?)\[\[([^\[\]\n]+?)\]\]")
DISPLAY_MATH_RE = re.compile(r"\$\$.+?\$\$", re.DOTALL)
INLINE_MATH_RE = re.compile(r"(?<![\\$])\$(?=\S)[^$\n]*?(?<=\S)\$(?![\d$])")

MD_LINK_TO_PAGE_RE = re.compile(r"\[([^\]\n]+)\]\((" + TOKEN + r")\)")
PAGE_EMBED_RE = re.compile(r"\{\{embed\s+(" + TOKEN + r")\s*\}\}")
BLOCK_EMBED_RE = re.compile(r"\{\{embed\s+\(\(([0-9a-fA-F-]{36})\)\)\s*\}\}")
BLOCK_REF_RE = re.compile(r"\(\(([0-9a-fA-F-]{36})\)\)")
QUERY_RE = re.compile(r"\{\{query\s+(.*?)\}\}", re.DOTALL)

TASK_PREFIXES = {
    "DONE": "[x] ",
    "TODO": "[ ] ",
    "NOW": "[ ] 🔄 ",
    "DOING": "[ ] 🔄 ",
    "LATER": "[ ] 📅 ",
    "WAITING": "[ ] ⏳ ",
    "CANCELLED": "[x] ❌ ",
}
TASK_RE = re.compile(r"^(" + "|".join(TASK_PREFIXES) + r")(?:\s+|$)")
PRIORITY_ICONS = {"A": "🔴", "B": "🟡", "C": "🟢"}
PRIORITY_RE = re.compile(r"\[#([ABC])\]")
SCHEDULED_RE = re.compile(r"SCHEDULED:\s*<([^>]+)>")
DEADLINE_RE = re.compile(r"DEADLINE:\s*<([^>]+)>")

CLOZE_RE = re.compile(r"\{\{cloze\s+([^}]+)\}\}")
VIDEO_RE = re.compile(r"\{\{(?:video|youtube)\s+([^}]+?)\s*\}\}")
PDF_RE = re.compile(r"\{\{pdf\s+([^}]+?)\s*\}\}")
IMAGE_PDF_RE = re.compile(r"!\[[^\]]*\]\(([^)\s]+\.pdf)\)")
RENDERER_RE = re.compile(r"\{\{renderer\s+[^}]*\}\}")
IMAGE_SIZE_RE = re.compile(r"\{:height\s+\d+,?\s*:width\s+\d+\}|\{:width\s+\d+,?\s*:height\s+\d+\}")
LOGBOOK_LINE_RE = re.compile(r"^\s*(:LOGBOOK:|CLOCK:.*|:END:)\s*$")
IFRAME = '<iframe src="{src}" width="100%" height="600px" style="border: 1px solid #333; border-radius: 4px;"></iframe>'

SYSTEM_PROPERTIES = {"id", "collapsed", "heading", "background-color", "title", "filters", "public"}

DOLLAR_RE = re.compile(r"(?<!\\)\$(?=[0-9A-Z_])")


class Stage(NamedTuple):
    name: str
    apply: Callable[[str, TransformContext], str]


def protect(text: str, ctx: TransformContext) -> str:
    """Replace code, wikilinks and math with placeholders.

    Post: no code span, wikilink or math span is visible in the text.
    """
    text = FENCED_CODE_RE.sub(lambda m: ctx.protect(m.group(0), "code"), text)
    text = INLINE_CODE_RE.sub(lambda m: ctx.protect(m.group(0), "code"), text)

    def wikilink(match: re.Match) -> str:
        return ctx.protect(match.group(0), "wikilink", reference=match.group(2).strip())

    def spans(part: str) -> str:
        part = WIKILINK_RE.sub(wikilink, part)
        part = DISPLAY_MATH_RE.sub(lambda m: ctx.protect(m.group(0), "math"), part)
        return INLINE_MATH_RE.sub(lambda m: ctx.protect(m.group(0), "math"), part)

    # Query arguments are not links: [[project]] in a query must not
    # resolve (or create a stub) on its own
    parts = []
    last = 0
    for match in QUERY_RE.finditer(text):
        parts.append(spans(text[last:match.start()]))
        parts.append(match.group(0))
        last = match.end()
    parts.append(spans(text[last:]))
    return "".join(parts)


def _is_external(reference: str) -> bool:
    return "://" in reference or reference.startswith(("http:", "https:", "#", "mailto:"))


def links(text: str, ctx: TransformContext) -> str:
    """Resolve every protected wikilink and set its rendered form.

    Pre: ``protect`` has run. Post: wikilink spans carry a resolution (except
    URLs and anchors, which keep their source text).
    """
    for span in ctx.spans:
        if span.kind != "wikilink" or span.rendered is not None:
            continue
        reference, _, label = span.reference.partition("|")
        reference = reference.strip()
        if not reference or _is_external(reference):
            span.rendered = span.original
            continue

        span.reference = reference
        span.resolution = ctx.resolver.resolve(reference, referenced_from=ctx.page.name)
        embed = span.original.startswith("!")
        span.rendered = render_link(
            link_target(span, ctx),
            label.strip() or reference,
            reference=reference,
            embed=embed,
            journal=span.resolution.page.is_journal,
        )

    def markdown_link(match: re.Match) -> str:
        span = ctx.span(match.group(2))
        if span is None or span.resolution is None:
            return match.group(0)
        rendered = render_link(
            link_target(span, ctx),
            match.group(1),
            reference=span.reference,
            journal=span.resolution.page.is_journal,
        )
        return ctx.protect(match.group(0), "link", rendered)

    return MD_LINK_TO_PAGE_RE.sub(markdown_link, text)


def link_target(span: ProtectedSpan, ctx: TransformContext) -> str:
    """Page name a resolved wikilink span points at.

    Without stub pages, a missing target keeps the reference as written.
    """
    if span.resolution.is_stub and not ctx.create_stubs:
        return span.reference
    return span.resolution.name


def embeds(text: str, ctx: TransformContext) -> str:
    """Page embeds, block embeds and block references."""

    def page_embed(match: re.Match) -> str:
        span = ctx.span(match.group(1))
        if span is None or span.resolution is None:
            return match.group(0)
        rendered = render_link(link_target(span, ctx), embed=True, journal=span.resolution.page.is_journal)
        return ctx.protect(match.group(0), "embed", rendered)

    def block_embed(match: re.Match) -> str:
        block_id = match.group(1).lower()
        found = ctx.resolver.graph.find_block(block_id)
        if found is None:
            logger.debug("block_embed_unresolved", page=ctx.page.name, block_id=block_id)
            return ctx.protect(match.group(0), "embed", "*Block embed - view in Logseq*")
        page, _block = found
        rendered = render_link(page.name, anchor=f"^{block_id}", embed=True, journal=page.is_journal)
        return ctx.protect(match.group(0), "embed", rendered)

    def block_ref(match: re.Match) -> str:
        block_id = match.group(1).lower()
        found = ctx.resolver.graph.find_block(block_id)
        if found is None:
            return ctx.protect(match.group(0), "blockref", f"[→ block](#^{block_id})")
        page, block = found
        label = _block_label(block.first_line) or page.title
        rendered = render_link(page.name, label, anchor=f"^{block_id}", journal=page.is_journal)
        return ctx.protect(match.group(0), "blockref", rendered)

    text = PAGE_EMBED_RE.sub(page_embed, text)
    text = BLOCK_EMBED_RE.sub(block_embed, text)
    return BLOCK_REF_RE.sub(block_ref, text)


def _block_label(line: str) -> str:
    line = TASK_RE.sub("", line.strip())
    line = BLOCK_REF_RE.sub("", line)
    for char in "[]|":
        line = line.replace(char, "")
    return line.strip()


def queries(text: str, ctx: TransformContext) -> str:
    """Evaluate ``{{query ...}}`` and protect the rendered result."""
    if ctx.queries is None:
        return text

    properties = ctx.block.properties if ctx.block is not None else {}
    options = QueryOptions.from_properties(properties, default_table=ctx.query_table)

    def run(match: re.Match) -> str:
        query = ctx.restore_original(match.group(1)).strip()
        try:
            results = ctx.queries.evaluate(query)
        except QuerySyntaxError as e:
            logger.warning("query_syntax_error", page=ctx.page.name, query=query, error=e.message)
            return ctx.protect(match.group(0), "query", f"```\n{{{{query {query}}}}}\n```")
        logger.debug("query_rendered", page=ctx.page.name, query=query, results=len(results))
        return ctx.protect(match.group(0), "query", render_results(results, query, options))

    return QUERY_RE.sub(run, text)


def tasks(text: str, ctx: TransformContext) -> str:
    """Task markers to checkboxes, priorities to icons, planning to badges."""
    text = TASK_RE.sub(lambda m: TASK_PREFIXES[m.group(1)], text, count=1)
    text = PRIORITY_RE.sub(lambda m: PRIORITY_ICONS[m.group(1)], text)
    text = SCHEDULED_RE.sub(lambda m: f"📅 Scheduled: {m.group(1)}", text)
    return DEADLINE_RE.sub(lambda m: f"⏰ Deadline: {m.group(1)}", text)


def format_property_key(key: str) -> str:
    """``due-date`` -> ``Due Date``."""
    return " ".join(word[:1].upper() + word[1:] for word in key.split("-"))


def _is_system_property(key: str) -> bool:
    return key in SYSTEM_PROPERTIES or key.startswith(("logseq.", "query-"))


def structure(text: str, ctx: TransformContext) -> str:
    """Hiccup, macros, drawers and block properties."""
    lines = []
    for line in text.split("\n"):
        if LOGBOOK_LINE_RE.match(line):
            continue
        prop = parse_property_line(line)
        if prop is not None:
            key, value = prop
            if _is_system_property(key) or not value:
                continue
            lines.append(f"**{format_property_key(key)}:** {value}")
            continue
        if is_hiccup(line):
            html = hiccup_to_html(line)
            if html is not None:
                line = ctx.protect(line, "html", html)
        lines.append(line)
    text = "\n".join(lines)

    text = CLOZE_RE.sub(lambda m: f"=={m.group(1).strip()}==", text)
    text = VIDEO_RE.sub(lambda m: f"![{m.group(1)}]({m.group(1)})", text)
    text = PDF_RE.sub(lambda m: ctx.protect(m.group(0), "html", IFRAME.format(src=m.group(1))), text)
    text = IMAGE_PDF_RE.sub(lambda m: ctx.protect(m.group(0), "html", IFRAME.format(src=m.group(1))), text)
    text = RENDERER_RE.sub(lambda m: ctx.protect(m.group(0), "code", "`[renderer]`"), text)
    return IMAGE_SIZE_RE.sub("", text)


def tables(text: str, ctx: TransformContext) -> str:
    """Repair table separator rows."""
    return fix_tables(text)


def escape_and_restore(text: str, ctx: TransformContext) -> str:
    """Escape currency/token dollars, then restore protected spans.

    Math spans are placeholders at this point, so every visible ``$`` is a
    literal one.
    """
    text = DOLLAR_RE.sub(r"\\$", text)
    return ctx.restore(text)


STAGES: list[Stage] = [
    Stage("protect", protect),
    Stage("links", links),
    Stage("embeds", embeds),
    Stage("queries", queries),
    Stage("tasks", tasks),
    Stage("structure", structure),
    Stage("tables", tables),
    Stage("escape_and_restore", escape_and_restore),
]
