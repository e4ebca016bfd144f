"""Unit tests for output file layout and writing."""

import pytest

from logseq_quartz.export.writer import OutputWriter, atomic_write
from logseq_quartz.graph.stubs import StubSynthesizer
from logseq_quartz.models.page import PageKind
from logseq_quartz.services.exceptions import ConversionError


class TestAtomicWrite:
    def test_creates_parents_and_leaves_no_temp(self, tmp_path):
        path = tmp_path / "deep" / "dir" / "page.md"

        atomic_write(path, "content\n")

        assert path.read_text(encoding="utf-8") == "content\n"
        assert [p.name for p in path.parent.iterdir()] == ["page.md"]

    def test_overwrites(self, tmp_path):
        path = tmp_path / "page.md"
        path.write_text("old", encoding="utf-8")

        atomic_write(path, "new")

        assert path.read_text(encoding="utf-8") == "new"


class TestOutputWriter:
    """Tests for OutputWriter."""

    def test_path_for_page(self, tmp_path, make_page):
        writer = OutputWriter(tmp_path)
        assert writer.path_for(make_page("ml/transformers")) == tmp_path / "pages" / "ml" / "transformers.md"

    def test_path_for_journal(self, tmp_path, make_page):
        writer = OutputWriter(tmp_path)
        page = make_page("2024_01_15", kind=PageKind.JOURNAL)

        assert writer.path_for(page) == tmp_path / "journals" / "2024-01-15.md"

    def test_path_for_stub(self, tmp_path, make_graph):
        stub = StubSynthesizer(make_graph({"Home": "- x"})).stub_for("Ghost Page")

        assert OutputWriter(tmp_path).path_for(stub) == tmp_path / "pages" / "ghost-page.md"

    def test_write(self, tmp_path, make_page):
        path = OutputWriter(tmp_path).write(make_page("Alpha"), "---\ntitle: Alpha\n---\n")

        assert path == tmp_path / "pages" / "Alpha.md"
        assert path.read_text(encoding="utf-8") == "---\ntitle: Alpha\n---\n"

    def test_write_failure_raises_conversion_error(self, tmp_path, make_page):
        # A file where the pages directory should be
        (tmp_path / "pages").write_text("not a directory", encoding="utf-8")

        with pytest.raises(ConversionError, match="Failed to write page"):
            OutputWriter(tmp_path).write(make_page("Alpha"), "x")
