"""Block traversal helpers.

Blocks carry no back-reference to their parent; the parent chain is supplied
by traversal instead. These helpers walk a block tree depth-first in source
order and build plain-text views of blocks for searching.
"""

from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from logseq_outline.parser import LogseqBlock, LogseqOutline


def iter_blocks(
    blocks: list["LogseqBlock"],
    parents: list["LogseqBlock"] | None = None,
) -> Iterator[tuple["LogseqBlock", list["LogseqBlock"]]]:
    """Walk blocks depth-first in source order.

    Args:
        blocks: Blocks to walk (typically outline.blocks)
        parents: Parent chain of the given blocks (root first)

    Yields:
        Tuples of (block, parents) where parents runs from root to the
        immediate parent

    Examples:
        >>> outline = LogseqOutline.parse("- Parent\\n  - Child")
        >>> [(b.first_line, len(p)) for b, p in iter_blocks(outline.blocks)]
        [('Parent', 0), ('Child', 1)]
    """
    parents = parents or []
    for block in blocks:
        yield block, parents
        yield from iter_blocks(block.children, parents + [block])


def outline_text(outline: "LogseqOutline") -> str:
    """Plain text of every block in the outline, one line per content line.

    Frontmatter lines are included first. Used for substring searches over a
    whole page.
    """
    lines = [line for line in outline.frontmatter if line.strip()]
    for block, _parents in iter_blocks(outline.blocks):
        lines.extend(block.content)
    return "\n".join(lines)
