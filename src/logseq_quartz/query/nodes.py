"""Query expression tree.

Every node is a frozen dataclass with a ``matches(page, env)`` predicate.
Nodes are pure: evaluation reads the page and the environment only.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Optional

from logseq_quartz.graph.names import clean_reference, normalize_name
from logseq_quartz.utils.dates import parse_date, parse_relative_date

if TYPE_CHECKING:
    from logseq_quartz.graph.resolver import LinkResolver
    from logseq_quartz.models.page import Page

REFERENCE_RE = re.compile(r"\[\[([^\[\]]+?)\]\]|(?<![\w#\[])#([^\s#,.;:!?()\[\]]+)")


@dataclass
class QueryEnvironment:
    """Evaluation context shared by every node of one query."""

    resolver: "LinkResolver"
    today: date = field(default_factory=date.today)
    _references: dict[int, frozenset[str]] = field(default_factory=dict, repr=False)

    def target_key(self, reference: str) -> str:
        """Normalized canonical name a reference points at (no stubs)."""
        resolution = self.resolver.lookup(reference)
        if resolution is not None:
            return resolution.page.key
        return normalize_name(clean_reference(reference))

    def references_of(self, page: "Page") -> frozenset[str]:
        """Normalized names of every page the given page links or tags."""
        cached = self._references.get(id(page))
        if cached is not None:
            return cached
        keys = set(page.tag_keys)
        for match in REFERENCE_RE.finditer(page.search_text):
            keys.add(self.target_key(match.group(1) or match.group(2)))
        references = frozenset(keys)
        self._references[id(page)] = references
        return references


class QueryNode:
    """Base class of all query nodes."""

    def matches(self, page: "Page", env: QueryEnvironment) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class And(QueryNode):
    operands: tuple[QueryNode, ...]

    def matches(self, page, env):
        return all(operand.matches(page, env) for operand in self.operands)


@dataclass(frozen=True)
class Or(QueryNode):
    operands: tuple[QueryNode, ...]

    def matches(self, page, env):
        return any(operand.matches(page, env) for operand in self.operands)


@dataclass(frozen=True)
class Not(QueryNode):
    operand: QueryNode

    def matches(self, page, env):
        return not self.operand.matches(page, env)


@dataclass(frozen=True)
class PageTags(QueryNode):
    """Page is tagged with any of the named pages."""

    tags: tuple[str, ...]

    def matches(self, page, env):
        return any(normalize_name(tag) in page.tag_keys for tag in self.tags)


@dataclass(frozen=True)
class Property(QueryNode):
    """Page property exists, or equals a value (case-insensitive)."""

    key: str
    value: Optional[str] = None

    def matches(self, page, env):
        actual = page.properties.get(self.key)
        if actual is None:
            return False
        if self.value is None:
            return True

        wanted = normalize_name(clean_reference(self.value))
        wanted_date = parse_date(self.value)
        values = actual if isinstance(actual, list) else [actual]
        for value in values:
            if isinstance(value, date):
                if value == wanted_date:
                    return True
                continue
            if normalize_name(clean_reference(value)) == wanted:
                return True
        return False


@dataclass(frozen=True)
class Task(QueryNode):
    """Any block carries one of the task markers."""

    markers: tuple[str, ...]

    def matches(self, page, env):
        return any(block.task_marker in self.markers for block in page.iter_blocks())


@dataclass(frozen=True)
class Priority(QueryNode):
    """Any block carries one of the priority levels."""

    levels: tuple[str, ...]

    def matches(self, page, env):
        return any(block.priority in self.levels for block in page.iter_blocks())


@dataclass(frozen=True)
class Between(QueryNode):
    """Page date lies in an inclusive range.

    Bounds are kept as written and parsed at evaluation time, so relative
    bounds (``-7d``, ``today``) use the environment's ``today``.
    """

    start: str
    end: str

    def matches(self, page, env):
        page_date = page.date
        if page_date is None:
            return False
        start = parse_relative_date(self.start, env.today)
        end = parse_relative_date(self.end, env.today)
        if start is None or end is None:
            return False
        if start > end:
            start, end = end, start
        return start <= page_date <= end


@dataclass(frozen=True)
class PageRef(QueryNode):
    """The page itself is the referenced page."""

    name: str

    def matches(self, page, env):
        return page.key == env.target_key(self.name)


@dataclass(frozen=True)
class Namespace(QueryNode):
    """Page lives under the given namespace (at any depth)."""

    name: str

    def matches(self, page, env):
        prefix = env.target_key(self.name) + "/"
        return page.key.startswith(prefix)


@dataclass(frozen=True)
class Reference(QueryNode):
    """Page links to or is tagged with the referenced page."""

    name: str

    def matches(self, page, env):
        target = env.target_key(self.name)
        return page.key != target and target in env.references_of(page)


@dataclass(frozen=True)
class TextSearch(QueryNode):
    """Case-insensitive substring of the page body (query macros excluded)."""

    text: str

    def matches(self, page, env):
        return self.text.casefold() in page.search_text.casefold()
