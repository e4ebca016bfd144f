"""Unit tests for date parsing."""

from datetime import date

import pytest

from logseq_quartz.utils.dates import journal_title, long_title, parse_date, parse_relative_date

TODAY = date(2024, 3, 31)


class TestParseDate:
    """Tests for parse_date."""

    @pytest.mark.parametrize(
        "text",
        [
            "2024-01-15",
            "2024_01_15",
            "2024/1/15",
            "Jan 15th, 2024",
            "January 15, 2024",
            "[[Jan 15th, 2024]]",
            "journals/2024_01_15",
        ],
    )
    def test_accepted_forms(self, text):
        assert parse_date(text) == date(2024, 1, 15)

    @pytest.mark.parametrize("text", ["", "active", "2024-02-30", "15/01/2024", "Foo 15, 2024"])
    def test_not_dates(self, text):
        assert parse_date(text) is None


class TestParseRelativeDate:
    """Tests for parse_relative_date."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("today", date(2024, 3, 31)),
            ("yesterday", date(2024, 3, 30)),
            ("tomorrow", date(2024, 4, 1)),
            ("-7d", date(2024, 3, 24)),
            ("7d", date(2024, 4, 7)),
            ("+2w", date(2024, 4, 14)),
            ("-1m", date(2024, 2, 29)),
            ("-1y", date(2023, 3, 31)),
            ("[[Jan 1st, 2024]]", date(2024, 1, 1)),
            ("2024-01-01", date(2024, 1, 1)),
        ],
    )
    def test_relative_forms(self, text, expected):
        assert parse_relative_date(text, today=TODAY) == expected

    def test_month_end_clamped_across_years(self):
        assert parse_relative_date("+1y", today=date(2024, 2, 29)) == date(2025, 2, 28)

    def test_unknown_text(self):
        assert parse_relative_date("sometime", today=TODAY) is None


class TestTitles:
    """Tests for journal_title and long_title."""

    @pytest.mark.parametrize(
        "day,expected",
        [
            (date(2024, 1, 1), "Jan 1st, 2024"),
            (date(2024, 1, 2), "Jan 2nd, 2024"),
            (date(2024, 1, 3), "Jan 3rd, 2024"),
            (date(2024, 1, 11), "Jan 11th, 2024"),
            (date(2024, 1, 12), "Jan 12th, 2024"),
            (date(2024, 1, 22), "Jan 22nd, 2024"),
            (date(2024, 12, 31), "Dec 31st, 2024"),
        ],
    )
    def test_journal_title(self, day, expected):
        assert journal_title(day) == expected

    def test_journal_title_round_trips(self):
        day = date(2024, 5, 23)
        assert parse_date(journal_title(day)) == day

    def test_long_title(self):
        assert long_title(date(2024, 1, 15)) == "January 15, 2024"
