"""Shared test fixtures for all test modules."""

from pathlib import Path
from textwrap import dedent

import pytest

from logseq_quartz.graph.builder import build_graph, page_from_markdown
from logseq_quartz.graph.resolver import LinkResolver
from logseq_quartz.models.page import PageKind


@pytest.fixture
def make_page():
    """Factory building a Page from (dedented) Logseq markdown."""

    def factory(name: str, markdown: str = "", kind: PageKind = PageKind.PAGE, source_path: Path = None):
        return page_from_markdown(name, dedent(markdown), kind=kind, source_path=source_path)

    return factory


@pytest.fixture
def make_graph(make_page):
    """
    Factory building a frozen PageGraph from ``{name: markdown}``.

    Names starting with ``journals/`` become journal pages
    (e.g. ``journals/2024_01_15``).
    """

    def factory(pages: dict[str, str]):
        built = []
        for name, markdown in pages.items():
            if name.startswith("journals/"):
                built.append(make_page(name[len("journals/"):], markdown, kind=PageKind.JOURNAL))
            else:
                built.append(make_page(name, markdown))
        return build_graph(built)

    return factory


@pytest.fixture
def make_resolver(make_graph):
    """Factory returning a LinkResolver over a graph built from ``{name: markdown}``."""

    def factory(pages: dict[str, str]):
        return LinkResolver(make_graph(pages))

    return factory


@pytest.fixture
def write_graph(tmp_path):
    """
    Factory writing a Logseq graph directory.

    Keys are graph-relative paths (``pages/Foo.md``, ``journals/2024_01_15.md``),
    values are file contents (dedented).
    """

    def factory(files: dict[str, str], root: Path = None) -> Path:
        root = root or tmp_path / "graph"
        (root / "pages").mkdir(parents=True, exist_ok=True)
        (root / "journals").mkdir(parents=True, exist_ok=True)
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(dedent(content), encoding="utf-8")
        return root

    return factory
