"""Markdown table repair.

Logseq writes tables whose separator row can disagree with the header (or is
missing entirely). Renderers then drop the table, so the separator is padded,
truncated or inserted to match the header. Data rows are never touched.

A run of ``|`` lines is only a table when it has at least two rows and its
header has at least two pipes; anything else is left as text.
"""

import re

SEPARATOR_CELL_RE = re.compile(r"^\s*:?-{1,}:?\s*$")
CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")


def split_cells(row: str) -> list[str]:
    """Cells of a table row (outer pipes dropped, ``\\|`` not a separator)."""
    row = row.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not row.endswith("\\|"):
        row = row[:-1]
    return CELL_SPLIT_RE.split(row)


def is_table_row(line: str) -> bool:
    return line.lstrip().startswith("|")


def is_table(text: str) -> bool:
    """Whether text is a whole table: two or more rows, header with two pipes."""
    lines = text.strip().split("\n")
    return len(lines) >= 2 and lines[0].count("|") >= 2 and all(is_table_row(line) for line in lines)


def is_separator_row(line: str) -> bool:
    if not is_table_row(line):
        return False
    cells = split_cells(line)
    return bool(cells) and all(SEPARATOR_CELL_RE.match(cell) for cell in cells)


def separator_row(cells: list[str], columns: int) -> str:
    """Separator with exactly columns cells, keeping existing alignment cells."""
    kept = [cell.strip() for cell in cells[:columns]]
    kept.extend("---" for _ in range(columns - len(kept)))
    return "| " + " | ".join(kept) + " |"


def repair_table(lines: list[str]) -> list[str]:
    """
    Repair one table given as consecutive row lines.

    Examples:
        >>> repair_table(["| a | b | c |", "|---|", "| 1 | 2 | 3 |"])
        ['| a | b | c |', '| --- | --- | --- |', '| 1 | 2 | 3 |']
        >>> repair_table(["| just a note"])
        ['| just a note']
    """
    if len(lines) < 2 or lines[0].count("|") < 2:
        return lines
    header = lines[0]
    indent = header[: len(header) - len(header.lstrip())]
    columns = len(split_cells(header))

    if is_separator_row(lines[1]):
        existing = split_cells(lines[1])
        if len(existing) == columns:
            return lines
        return [header, indent + separator_row(existing, columns)] + lines[2:]

    return [header, indent + separator_row([], columns)] + lines[1:]


def fix_tables(text: str) -> str:
    """Repair every table in text; non-table lines pass through."""
    lines = text.split("\n")
    output: list[str] = []
    i = 0
    while i < len(lines):
        if not is_table_row(lines[i]):
            output.append(lines[i])
            i += 1
            continue
        j = i
        while j < len(lines) and is_table_row(lines[j]):
            j += 1
        output.extend(repair_table(lines[i:j]))
        i = j
    return "\n".join(output)
