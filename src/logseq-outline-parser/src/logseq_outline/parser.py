"""Logseq markdown parser for outline-based documents.

This module handles parsing of Logseq's outline format, which uses indented
bullets (2 spaces or a tab per level) with inline properties, task markers,
priorities and SCHEDULED/DEADLINE planning lines.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

TASK_MARKERS = ("TODO", "DOING", "NOW", "LATER", "WAITING", "DONE", "CANCELLED")
PRIORITY_LEVELS = ("A", "B", "C")

PROPERTY_RE = re.compile(r"^([A-Za-z0-9_][A-Za-z0-9_.\-/]*)::(?:\s+(.*))?$")
TASK_RE = re.compile(r"^(TODO|DOING|NOW|LATER|WAITING|DONE|CANCELLED)(?=\s|$)")
PRIORITY_RE = re.compile(r"\[#([ABC])\]")
PLANNING_RE = re.compile(r"^(SCHEDULED|DEADLINE):\s*<(\d{4})-(\d{2})-(\d{2})[^>]*>")


def parse_property_line(line: str) -> Optional[tuple[str, str]]:
    """Parse a single ``key:: value`` line.

    Args:
        line: Line to inspect (leading whitespace and a bullet are ignored)

    Returns:
        Tuple of (lower-cased key, stripped value), or None if not a property

    Examples:
        >>> parse_property_line("tags:: project, active")
        ('tags', 'project, active')
        >>> parse_property_line("Just text")
    """
    stripped = line.strip()
    if stripped.startswith("- "):
        stripped = stripped[2:].lstrip()
    match = PROPERTY_RE.match(stripped)
    if not match:
        return None
    return match.group(1).lower(), (match.group(2) or "").strip()


def parse_property_lines(lines: list[str]) -> dict[str, str]:
    """Collect properties from lines, preserving insertion order."""
    properties: dict[str, str] = {}
    for line in lines:
        parsed = parse_property_line(line)
        if parsed:
            key, value = parsed
            properties[key] = value
    return properties


@dataclass
class LogseqBlock:
    """Single bullet in outline with children.

    All block lines are stored in one content list (first line, continuation
    lines, property lines) in source order. Metadata derived from the content
    (properties, task marker, priority, planning dates) is computed
    once when the block is created; blocks are treated as read-only after parsing.

    Attributes:
        content: All block lines (first line, continuation, properties)
                 Example: ["TODO Ship it [#A]", "owner:: me"]
        indent_level: Indentation level (0 = root)
        block_id: Persistent block ID from id:: property (None if not present)
        children: Child blocks
    """

    content: list[str]
    indent_level: int
    block_id: Optional[str] = None
    children: list["LogseqBlock"] = field(default_factory=list)
    properties: dict[str, str] = field(default_factory=dict, init=False)
    task_marker: Optional[str] = field(default=None, init=False)
    priority: Optional[str] = field(default=None, init=False)
    scheduled: Optional[date] = field(default=None, init=False)
    deadline: Optional[date] = field(default=None, init=False)

    def __post_init__(self):
        """Derive properties and task metadata from content."""
        if isinstance(self.content, str):
            self.content = self.content.split("\n")
        if not self.content:
            self.content = [""]

        self.properties = parse_property_lines(_outside_code_fences(self.content))
        if self.block_id is None:
            self.block_id = self.properties.get("id")

        first = self.content[0].strip()
        task_match = TASK_RE.match(first)
        if task_match:
            self.task_marker = task_match.group(1)

        priority_match = PRIORITY_RE.search(first)
        if priority_match:
            self.priority = priority_match.group(1)

        for line in self.content[1:]:
            planning = PLANNING_RE.match(line.strip())
            if not planning:
                continue
            try:
                day = date(int(planning.group(2)), int(planning.group(3)), int(planning.group(4)))
            except ValueError:
                continue
            if planning.group(1) == "SCHEDULED":
                self.scheduled = day
            else:
                self.deadline = day

    @property
    def first_line(self) -> str:
        """First content line (the text after the bullet)."""
        return self.content[0]

    @property
    def is_properties_only(self) -> bool:
        """True when every non-empty line of the block is a property line."""
        lines = [line for line in self.content if line.strip()]
        return bool(lines) and all(parse_property_line(line) for line in lines)

    def get_full_content(self, normalize_whitespace: bool = False) -> str:
        """Get full block content as a single string.

        Args:
            normalize_whitespace: If True, strips each line before joining

        Returns:
            Full block content joined with newlines
        """
        if normalize_whitespace:
            return "\n".join(line.strip() for line in self.content)
        return "\n".join(self.content)


@dataclass
class LogseqOutline:
    """Parsed representation of Logseq's outline-based markdown structure.

    Attributes:
        blocks: Top-level blocks in document
        source_text: Original markdown
        indent_str: Indentation string (detected from source, default "  ")
        frontmatter: Lines before first bullet (page-level properties, etc.)
    """

    blocks: list[LogseqBlock]
    source_text: str
    indent_str: str = "  "
    frontmatter: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, markdown: str) -> "LogseqOutline":
        """Parse Logseq markdown into outline structure.

        Blocks appear in the same order as the source, and property order is
        preserved within each block.

        Args:
            markdown: Logseq markdown content

        Returns:
            Parsed LogseqOutline
        """
        if not markdown.strip():
            return cls(blocks=[], source_text=markdown)

        lines = markdown.replace("\r\n", "\n").split("\n")
        indent_str = _detect_indentation(lines)
        frontmatter, blocks = _parse_blocks(lines, indent_str)

        return cls(blocks=blocks, source_text=markdown, indent_str=indent_str, frontmatter=frontmatter)

    @property
    def pre_block(self) -> Optional[LogseqBlock]:
        """First block when it holds nothing but page properties."""
        if not self.blocks or any(line.strip() for line in self.frontmatter):
            return None
        first = self.blocks[0]
        if first.is_properties_only and not first.children:
            return first
        return None

    @property
    def page_properties(self) -> dict[str, str]:
        """Page-level properties.

        Taken from the lines before the first bullet, or from the first block
        when it contains only property lines.
        """
        properties = parse_property_lines(self.frontmatter)
        if properties:
            return properties
        pre_block = self.pre_block
        return dict(pre_block.properties) if pre_block else {}

    @property
    def content_blocks(self) -> list[LogseqBlock]:
        """Top-level blocks excluding the page-properties block."""
        if self.pre_block is not None:
            return self.blocks[1:]
        return self.blocks


def _outside_code_fences(lines: list[str]) -> list[str]:
    """Return the lines that are not inside a fenced code block."""
    visible = []
    in_fence = False
    for line in lines:
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
            continue
        if not in_fence:
            visible.append(line)
    return visible


def _is_bullet_line(line: str) -> bool:
    """Check if a line is a bullet (including empty bullets)."""
    stripped = line.lstrip()
    return stripped.startswith("-") and (
        stripped == "-" or  # Empty bullet
        stripped.startswith("- ")  # Bullet with content
    )


def _parse_blocks(lines: list[str], indent_str: str = "  ") -> tuple[list[str], list[LogseqBlock]]:
    """Parse lines into hierarchical blocks.

    A block consists of a bullet line (starts with "- " after leading
    whitespace) and all continuation lines until the next bullet. Lines before
    the first bullet are returned as frontmatter (page-level properties).

    Args:
        lines: Markdown lines
        indent_str: Indentation string (e.g., "  ", "\t", "    ")

    Returns:
        Tuple of (frontmatter_lines, root_blocks)
    """
    frontmatter = []
    root_blocks = []
    stack: list[LogseqBlock] = []
    found_first_bullet = False
    in_code_fence = False

    i = 0
    while i < len(lines):
        line = lines[i]

        if line.lstrip().startswith("```"):
            in_code_fence = not in_code_fence

        is_bullet = not in_code_fence and _is_bullet_line(line)

        if is_bullet:
            found_first_bullet = True
            leading_whitespace = line[: len(line) - len(line.lstrip())]
            indent_level = leading_whitespace.count(indent_str)

            stripped = line.lstrip()
            first_line = "" if stripped == "-" else stripped[2:]
            content = [first_line]

            # Continuation lines are indented past the bullet marker
            continuation_base_indent = leading_whitespace + "  "

            j = i + 1
            continuation_in_code_fence = first_line.startswith("```")
            while j < len(lines):
                next_line = lines[j]

                if next_line.lstrip().startswith("```"):
                    continuation_in_code_fence = not continuation_in_code_fence

                if not continuation_in_code_fence and _is_bullet_line(next_line):
                    next_leading = next_line[: len(next_line) - len(next_line.lstrip())]
                    next_indent_level = next_leading.count(indent_str)

                    if next_indent_level > indent_level:
                        break
                    # Exact level boundary means sibling or ancestor bullet;
                    # mixed tab/space indentation stays continuation content
                    if next_leading == indent_str * next_indent_level:
                        break

                if next_line.startswith(continuation_base_indent):
                    content.append(next_line[len(continuation_base_indent):])
                elif next_line.startswith(leading_whitespace + "\t"):
                    content.append(next_line[len(leading_whitespace) + 1:])
                else:
                    content.append(next_line.lstrip())
                j += 1

            # Drop trailing blank continuation lines
            while len(content) > 1 and not content[-1].strip():
                content.pop()

            block = LogseqBlock(content=content, indent_level=indent_level)

            if indent_level == 0:
                root_blocks.append(block)
                stack = [block]
            else:
                while len(stack) > indent_level:
                    stack.pop()

                if stack and stack[-1].indent_level == indent_level - 1:
                    stack[-1].children.append(block)
                    stack.append(block)
                else:
                    # Malformed indentation - treat as root
                    block.indent_level = 0
                    root_blocks.append(block)
                    stack = [block]

            i = j
        else:
            if not found_first_bullet:
                frontmatter.append(line)
            i += 1

    return frontmatter, root_blocks


def _detect_indentation(lines: list[str]) -> str:
    """Detect indentation style from markdown lines.

    Uses the shortest leading whitespace among indented bullets. Falls back
    to 2 spaces if no indented bullets are found.

    Args:
        lines: Lines of markdown

    Returns:
        Indentation string (e.g., "  ", "    ", "\t")
    """
    indents = []

    for line in lines:
        if not line or not line.strip():
            continue
        if not _is_bullet_line(line):
            continue

        stripped = line.lstrip()
        if line != stripped:
            indents.append(line[: len(line) - len(stripped)])

    if not indents:
        return "  "

    return min(indents, key=len)
