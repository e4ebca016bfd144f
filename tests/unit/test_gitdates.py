"""Unit tests for git date collection."""

from datetime import date
from textwrap import dedent

from logseq_quartz.export.gitdates import GitDates, collect_git_dates, parse_git_log


class TestParseGitLog:
    """Tests for parse_git_log."""

    def test_newest_first(self):
        output = dedent("""\
            2024-03-01T10:00:00+01:00

            pages/Alpha.md

            2024-02-01T10:00:00+01:00

            pages/Alpha.md
            journals/2024_02_01.md

            2023-12-24T09:30:00-05:00

            pages/Alpha.md
            """)

        dates = parse_git_log(output)

        assert dates == {
            "pages/Alpha.md": GitDates(created=date(2023, 12, 24), modified=date(2024, 3, 1)),
            "journals/2024_02_01.md": GitDates(created=date(2024, 2, 1), modified=date(2024, 2, 1)),
        }

    def test_non_markdown_ignored(self):
        output = "2024-03-01T10:00:00Z\nlogseq/config.edn\nassets/image.png\npages/A.md\n"
        assert list(parse_git_log(output)) == ["pages/A.md"]

    def test_empty(self):
        assert parse_git_log("") == {}

    def test_files_before_any_date_ignored(self):
        assert parse_git_log("pages/A.md\n") == {}


class TestCollectGitDates:
    def test_not_a_repository(self, tmp_path):
        """Outside a git repository dates are simply unavailable."""
        assert collect_git_dates(tmp_path) == {}
