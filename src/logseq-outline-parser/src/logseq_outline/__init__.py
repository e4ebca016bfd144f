"""Logseq outline parser - Parse Logseq markdown files.

This package provides tools for parsing Logseq's outline-based markdown format
into a tree of blocks.

Key features:
- Parse Logseq markdown into LogseqBlock tree structure
- Preserve exact property order (insertion order is sacred)
- Task markers, priorities and SCHEDULED/DEADLINE dates per block
- Depth-first traversal with parent chains and whole-outline text
- Graph path operations for navigating Logseq directories

Example:
    >>> from logseq_outline import LogseqOutline
    >>> outline = LogseqOutline.parse("- TODO My bullet\\n  - Child bullet")
    >>> outline.blocks[0].task_marker
    'TODO'
"""

from logseq_outline.parser import (
    LogseqBlock,
    LogseqOutline,
    PRIORITY_LEVELS,
    TASK_MARKERS,
    parse_property_line,
    parse_property_lines,
)
from logseq_outline.graph import GraphPaths
from logseq_outline.context import (
    iter_blocks,
    outline_text,
)

__version__ = "0.2.0"

__all__ = [
    "LogseqBlock",
    "LogseqOutline",
    "GraphPaths",
    "PRIORITY_LEVELS",
    "TASK_MARKERS",
    "parse_property_line",
    "parse_property_lines",
    "iter_blocks",
    "outline_text",
]
