"""Unit tests for the index builder."""

from datetime import date

import pytest
from logseq_outline import GraphPaths

from logseq_quartz.graph.builder import (
    IndexBuilder,
    build_graph,
    convert_properties,
    split_list_value,
)
from logseq_quartz.models.page import PageKind


class TestSplitListValue:
    """Tests for tags::/alias:: value splitting."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("project, active", ["project", "active"]),
            ("[[Project]], #active", ["Project", "active"]),
            ("[[a, b]], c", ["a, b", "c"]),
            ("dup, dup, other", ["dup", "other"]),
            (" , ", []),
        ],
    )
    def test_split(self, value, expected):
        assert split_list_value(value) == expected


class TestConvertProperties:
    """Tests for typing of raw page properties."""

    def test_list_and_date_properties(self):
        properties = convert_properties(
            {"tags": "a, b", "alias": "PA", "date": "2024-01-15", "status": "active"}
        )

        assert properties == {
            "tags": ["a", "b"],
            "alias": ["PA"],
            "date": date(2024, 1, 15),
            "status": "active",
        }

    def test_order_preserved(self):
        properties = convert_properties({"zeta": "1", "alpha": "2"})
        assert list(properties) == ["zeta", "alpha"]


class TestPageFromMarkdown:
    """Tests for building pages from markdown."""

    def test_page_properties(self, make_page):
        page = make_page(
            "Project Alpha",
            """\
            alias:: PA, Alpha Project
            tags:: project
            status:: active

            - First block
            """,
        )

        assert page.name == "Project Alpha"
        assert page.kind is PageKind.PAGE
        assert page.aliases == ["PA", "Alpha Project"]
        assert page.tags == ["project"]
        assert page.property_text("status") == "active"
        assert [block.first_line for block in page.blocks] == ["First block"]

    def test_journal_page(self, make_page):
        page = make_page("2024_01_15", "- Journal entry", kind=PageKind.JOURNAL)

        assert page.name == "journals/2024-01-15"
        assert page.journal_date == date(2024, 1, 15)
        assert page.date == date(2024, 1, 15)
        assert page.title == "January 15, 2024"
        assert set(page.aliases) >= {"2024-01-15", "2024_01_15", "Jan 15th, 2024"}

    def test_journal_with_bad_name(self, make_page):
        page = make_page("notes", "- entry", kind=PageKind.JOURNAL)

        assert page.name == "journals/notes"
        assert page.journal_date is None

    def test_private_flag(self, make_page):
        assert make_page("Secret", "private:: true\n\n- hidden").is_private
        assert not make_page("Open", "- visible").is_private


class TestBuildGraph:
    """Tests for merging pages into a graph."""

    def test_last_write_wins(self, make_page):
        first = make_page("Alpha", "- first")
        second = make_page("alpha", "- second")
        beta = make_page("Beta", "- beta")

        graph = build_graph([first, beta, second])

        assert graph.get("ALPHA") is second
        assert graph.pages == [second, beta]
        assert graph.frozen

    def test_graph_frozen_after_build(self, make_page):
        graph = build_graph([make_page("Alpha")])
        assert graph.frozen


class TestIndexBuilder:
    """Tests for IndexBuilder over a graph directory."""

    def test_reads_pages_and_journals(self, write_graph):
        root = write_graph(
            {
                "pages/Project Alpha.md": "tags:: project\n\n- Alpha",
                "pages/ml___transformers.md": "- Attention",
                "journals/2024_01_15.md": "- Worked on [[Project Alpha]]",
            }
        )

        graph = IndexBuilder(GraphPaths(root), workers=1).build()

        assert [page.name for page in graph.pages] == [
            "Project Alpha",
            "ml/transformers",
            "journals/2024-01-15",
        ]
        assert graph.get("journals/2024-01-15").is_journal

    def test_private_pages_skipped(self, write_graph):
        root = write_graph(
            {
                "pages/Public.md": "- hello",
                "pages/Secret.md": "private:: true\n\n- hidden",
            }
        )

        builder = IndexBuilder(GraphPaths(root), workers=1)
        graph = builder.build()

        assert "Secret" not in graph
        assert "Public" in graph
        assert [path.name for path in builder.skipped] == ["Secret.md"]

    def test_private_pages_included_on_request(self, write_graph):
        root = write_graph({"pages/Secret.md": "private:: true\n\n- hidden"})

        graph = IndexBuilder(GraphPaths(root), include_private=True, workers=1).build()

        assert "Secret" in graph

    def test_unreadable_file_recorded(self, write_graph):
        root = write_graph({"pages/Good.md": "- fine"})
        (root / "pages" / "Bad.md").write_bytes(b"- \xff\xfe broken")

        builder = IndexBuilder(GraphPaths(root), workers=1)
        graph = builder.build()

        assert "Good" in graph
        assert "Bad" not in graph
        assert [path.name for path in builder.failed] == ["Bad.md"]

    def test_duplicate_file_names_last_wins(self, write_graph):
        """Files are merged in path order, so the later path wins."""
        root = write_graph(
            {
                "pages/Alpha.md": "- top level",
                "pages/ml/alpha.md": "- nested",
            }
        )

        graph = IndexBuilder(GraphPaths(root), workers=1).build()

        assert len(graph) == 1
        assert graph.get("alpha").source_path == root / "pages" / "ml" / "alpha.md"

    def test_parallel_build_matches_serial(self, write_graph):
        files = {f"pages/Page {i:02d}.md": f"- Body {i} links [[Page {i + 1:02d}]]" for i in range(20)}
        root = write_graph(files)

        serial = IndexBuilder(GraphPaths(root), workers=1).build()
        parallel = IndexBuilder(GraphPaths(root), workers=4).build()

        assert [page.name for page in parallel.pages] == [page.name for page in serial.pages]
