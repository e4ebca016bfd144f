"""Unit tests for the simple query parser."""

import pytest

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
    Reference,
    Task,
    TextSearch,
)
from logseq_quartz.query.parser import parse_query, tokenize
from logseq_quartz.services.exceptions import QuerySyntaxError


class TestTokenize:
    """Tests for the tokenizer."""

    def test_token_kinds(self):
        tokens = tokenize('(and [[My Page]] "some text" word)')

        assert [(token.kind, token.value) for token in tokens] == [
            ("lparen", "("),
            ("word", "and"),
            ("pageref", "My Page"),
            ("string", "some text"),
            ("word", "word"),
            ("rparen", ")"),
        ]

    def test_positions(self):
        tokens = tokenize("(page x)")
        assert [token.position for token in tokens] == [0, 1, 6, 7]

    def test_unterminated_page_reference(self):
        with pytest.raises(QuerySyntaxError, match="Unterminated page reference"):
            tokenize("[[broken")


class TestParseQuery:
    """Tests for parse_query."""

    def test_and_of_tags_and_property(self):
        node = parse_query("(and (page-tags [[project]]) (property status active))")

        assert node == And((PageTags(("project",)), Property("status", "active")))

    @pytest.mark.parametrize(
        "query,expected",
        [
            ("[[Project Alpha]]", Reference("Project Alpha")),
            ('"hello world"', TextSearch("hello world")),
            ("hello", TextSearch("hello")),
            ("(page-tags #a b)", PageTags(("a", "b"))),
            ("(property :Status)", Property("status")),
            ("(page-property type book)", Property("type", "book")),
            ("(task todo DOING)", Task(("TODO", "DOING"))),
            ("(priority a #b)", Priority(("A", "B"))),
            ("(between -7d today)", Between("-7d", "today")),
            ("(page [[Home]])", PageRef("Home")),
            ("(namespace ml)", Namespace("ml")),
            ("(or [[a]] [[b]])", Or((Reference("a"), Reference("b")))),
            ("(not [[a]])", Not(Reference("a"))),
            ("(not [[a]] [[b]])", Not(Or((Reference("a"), Reference("b"))))),
            ("(AND [[a]])", And((Reference("a"),))),
        ],
    )
    def test_forms(self, query, expected):
        assert parse_query(query) == expected

    def test_nested_forms(self):
        node = parse_query("(and (or (task TODO) (task DOING)) (not (page-tags archived)))")

        assert node == And(
            (
                Or((Task(("TODO",)), Task(("DOING",)))),
                Not(PageTags(("archived",))),
            )
        )


class TestParseErrors:
    """Malformed queries raise QuerySyntaxError."""

    @pytest.mark.parametrize(
        "query,message",
        [
            ("", "Empty query"),
            ("   ", "Empty query"),
            ("(and (page-tags x)", "Unbalanced '\\('"),
            (")", "Unbalanced '\\)'"),
            ("(and [[a]]))", "Unbalanced '\\)'"),
            ("(frobnicate x)", "Unknown keyword"),
            ("(task FOO)", "Unknown task marker"),
            ("(priority D)", "Unknown priority"),
            ("(between soon later)", "Invalid date"),
            ("(between today)", "takes two dates"),
            ("(page a b)", "takes one page"),
            ("(page-tags)", "needs an argument"),
            ("(and)", "needs an argument"),
            ("(property a b c)", "optional value"),
            ("(([[a]]))", "Expected a keyword"),
            ("[[a]] [[b]]", "Unexpected trailing input"),
        ],
    )
    def test_malformed(self, query, message):
        with pytest.raises(QuerySyntaxError, match=message):
            parse_query(query)

    def test_error_carries_query_and_position(self):
        with pytest.raises(QuerySyntaxError) as exc_info:
            parse_query("(frobnicate x)")

        assert exc_info.value.query == "(frobnicate x)"
        assert exc_info.value.position == 1
