"""Parser for Logseq simple queries.

A query such as ``(and (page-tags [[project]]) (property status active))``
is tokenized and parsed by recursive descent into an immutable expression
tree (see ``logseq_quartz.query.nodes``).
"""

import re
from dataclasses import dataclass
from typing import Optional

from logseq_outline import PRIORITY_LEVELS, TASK_MARKERS

from logseq_quartz.query.nodes import (
    And,
    Between,
    Namespace,
    Not,
    Or,
    PageRef,
    PageTags,
    Priority,
    Property,
    QueryNode,
    Reference,
    Task,
    TextSearch,
)
from logseq_quartz.services.exceptions import QuerySyntaxError
from logseq_quartz.utils.dates import parse_relative_date

TOKEN_RE = re.compile(
    r"""
    (?P<space>\s+)
  | (?P<lparen>\()
  | (?P<rparen>\))
  | (?P<pageref>\[\[(?P<ref>.*?)\]\])
  | (?P<string>"(?P<text>[^"]*)")
  | (?P<word>[^\s()"]+)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Token:
    kind: str  # lparen, rparen, pageref, string, word
    value: str
    position: int


def tokenize(query: str) -> list[Token]:
    """Split query text into tokens.

    Raises:
        QuerySyntaxError: On an unterminated ``[[`` or string literal
    """
    tokens = []
    position = 0
    while position < len(query):
        match = TOKEN_RE.match(query, position)
        if match is None or match.end() == position:
            raise QuerySyntaxError(query, "Unexpected character", position)
        kind = match.lastgroup

        if kind == "pageref":
            tokens.append(Token("pageref", match.group("ref").strip(), position))
        elif kind == "string":
            tokens.append(Token("string", match.group("text"), position))
        elif kind == "word":
            if match.group("word").startswith("[["):
                raise QuerySyntaxError(query, "Unterminated page reference", position)
            tokens.append(Token("word", match.group("word"), position))
        elif kind != "space":
            tokens.append(Token(kind, match.group(kind), position))
        position = match.end()
    return tokens


def parse_query(query: str) -> QueryNode:
    """
    Parse a simple query into an expression tree.

    Args:
        query: Query text without the surrounding ``{{query ...}}``

    Returns:
        Root QueryNode

    Raises:
        QuerySyntaxError: On unbalanced parentheses, unknown keywords or
                          missing arguments
    """
    return _Parser(query).parse()


class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, query: str):
        self.query = query
        self.tokens = tokenize(query)
        self.index = 0

    def parse(self) -> QueryNode:
        if not self.tokens:
            raise QuerySyntaxError(self.query, "Empty query")
        node = self.expression()
        if self.peek() is not None:
            token = self.peek()
            if token.kind == "rparen":
                raise QuerySyntaxError(self.query, "Unbalanced ')'", token.position)
            raise QuerySyntaxError(self.query, "Unexpected trailing input", token.position)
        return node

    def peek(self) -> Optional[Token]:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def advance(self) -> Token:
        token = self.peek()
        if token is None:
            raise QuerySyntaxError(self.query, "Unbalanced '(' (unexpected end of query)")
        self.index += 1
        return token

    def expect_rparen(self) -> None:
        token = self.advance()
        if token.kind != "rparen":
            raise QuerySyntaxError(self.query, "Expected ')'", token.position)

    def expression(self) -> QueryNode:
        token = self.advance()
        if token.kind == "pageref":
            return Reference(token.value)
        if token.kind in ("string", "word"):
            return TextSearch(token.value)
        if token.kind == "rparen":
            raise QuerySyntaxError(self.query, "Unbalanced ')'", token.position)
        return self.form()

    def form(self) -> QueryNode:
        head = self.advance()
        if head.kind != "word":
            raise QuerySyntaxError(self.query, "Expected a keyword after '('", head.position)

        keyword = head.value.lower()
        handler = getattr(self, "form_" + keyword.replace("-", "_"), None)
        if keyword == "page-property":
            handler = self.form_property
        if handler is None:
            raise QuerySyntaxError(self.query, f"Unknown keyword '{head.value}'", head.position)

        node = handler(head)
        self.expect_rparen()
        return node

    def arguments(self) -> list[Token]:
        """Consume plain (non-parenthesized) arguments up to the ')'."""
        args = []
        while self.peek() is not None and self.peek().kind not in ("lparen", "rparen"):
            args.append(self.advance())
        return args

    def subexpressions(self, head: Token) -> list[QueryNode]:
        nodes = []
        while self.peek() is not None and self.peek().kind != "rparen":
            nodes.append(self.expression())
        if not nodes:
            raise QuerySyntaxError(self.query, f"'{head.value}' needs an argument", head.position)
        return nodes

    def form_and(self, head: Token) -> QueryNode:
        return And(tuple(self.subexpressions(head)))

    def form_or(self, head: Token) -> QueryNode:
        return Or(tuple(self.subexpressions(head)))

    def form_not(self, head: Token) -> QueryNode:
        operands = self.subexpressions(head)
        if len(operands) == 1:
            return Not(operands[0])
        # (not a b) excludes pages matching either
        return Not(Or(tuple(operands)))

    def form_page_tags(self, head: Token) -> QueryNode:
        names = [_strip_tag(token.value) for token in self.required_arguments(head)]
        return PageTags(tuple(names))

    def form_property(self, head: Token) -> QueryNode:
        args = self.required_arguments(head)
        if len(args) > 2:
            raise QuerySyntaxError(self.query, "'property' takes a key and an optional value", args[2].position)
        key = args[0].value.lstrip(":").lower()
        value = args[1].value if len(args) == 2 else None
        return Property(key, value)

    def form_task(self, head: Token) -> QueryNode:
        markers = []
        for token in self.required_arguments(head):
            marker = token.value.upper()
            if marker not in TASK_MARKERS:
                raise QuerySyntaxError(self.query, f"Unknown task marker '{token.value}'", token.position)
            markers.append(marker)
        return Task(tuple(markers))

    def form_priority(self, head: Token) -> QueryNode:
        levels = []
        for token in self.required_arguments(head):
            level = token.value.upper().lstrip("#")
            if level not in PRIORITY_LEVELS:
                raise QuerySyntaxError(self.query, f"Unknown priority '{token.value}'", token.position)
            levels.append(level)
        return Priority(tuple(levels))

    def form_between(self, head: Token) -> QueryNode:
        args = self.required_arguments(head)
        if len(args) != 2:
            raise QuerySyntaxError(self.query, "'between' takes two dates", head.position)
        for token in args:
            if parse_relative_date(token.value) is None:
                raise QuerySyntaxError(self.query, f"Invalid date '{token.value}'", token.position)
        return Between(args[0].value, args[1].value)

    def form_page(self, head: Token) -> QueryNode:
        return PageRef(self.single_argument(head))

    def form_namespace(self, head: Token) -> QueryNode:
        return Namespace(self.single_argument(head))

    def required_arguments(self, head: Token) -> list[Token]:
        args = self.arguments()
        if not args:
            raise QuerySyntaxError(self.query, f"'{head.value}' needs an argument", head.position)
        return args

    def single_argument(self, head: Token) -> str:
        args = self.required_arguments(head)
        if len(args) != 1:
            raise QuerySyntaxError(self.query, f"'{head.value}' takes one page", args[1].position)
        return _strip_tag(args[0].value)


def _strip_tag(value: str) -> str:
    return value[1:] if value.startswith("#") else value
