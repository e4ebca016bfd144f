"""Date parsing for journal names, date properties and query ranges."""

import re
from datetime import date, timedelta
from typing import Optional

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

ISO_DATE_RE = re.compile(r"^(\d{4})[-_/](\d{1,2})[-_/](\d{1,2})$")
LONG_DATE_RE = re.compile(
    r"^(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4})$",
    re.IGNORECASE,
)
RELATIVE_RE = re.compile(r"^([+-]?)(\d+)([dwmy])$", re.IGNORECASE)


def parse_date(text: str) -> Optional[date]:
    """Parse a date written the way Logseq writes them.

    Accepts ISO-ish dates (``2024-01-15``, ``2024_01_15``), Logseq's default
    journal title (``Jan 15th, 2024``, ``January 15, 2024``) and those forms
    wrapped in ``[[...]]``.

    Args:
        text: Text to parse

    Returns:
        Parsed date, or None if the text is not a date

    Examples:
        >>> parse_date("2024_01_15")
        datetime.date(2024, 1, 15)
        >>> parse_date("[[Jan 15th, 2024]]")
        datetime.date(2024, 1, 15)
    """
    text = text.strip()
    if text.startswith("[[") and text.endswith("]]"):
        text = text[2:-2].strip()
    if text.lower().startswith("journals/"):
        text = text[len("journals/"):]

    match = ISO_DATE_RE.match(text)
    if match:
        return _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    match = LONG_DATE_RE.match(text)
    if match:
        month = [m[:3].lower() for m in MONTHS].index(match.group(1).lower()) + 1
        return _safe_date(int(match.group(3)), month, int(match.group(2)))

    return None


def parse_relative_date(text: str, today: Optional[date] = None) -> Optional[date]:
    """Parse a query date bound.

    In addition to everything parse_date accepts, understands ``today``,
    ``yesterday``, ``tomorrow`` and offsets such as ``-7d``, ``+2w``, ``-1m``
    and ``-1y``.

    Args:
        text: Date bound text
        today: Reference date for relative forms (defaults to date.today())

    Returns:
        Parsed date, or None if not understood
    """
    today = today or date.today()
    word = text.strip().strip("[]").strip().lower()

    if word == "today":
        return today
    if word == "yesterday":
        return today - timedelta(days=1)
    if word == "tomorrow":
        return today + timedelta(days=1)

    match = RELATIVE_RE.match(word)
    if match:
        sign = -1 if match.group(1) == "-" else 1
        amount = int(match.group(2)) * sign
        unit = match.group(3).lower()
        if unit == "d":
            return today + timedelta(days=amount)
        if unit == "w":
            return today + timedelta(weeks=amount)
        if unit == "m":
            return _add_months(today, amount)
        return _add_months(today, amount * 12)

    return parse_date(text)


def journal_title(day: date) -> str:
    """Logseq's default journal title, e.g. ``Jan 15th, 2024``."""
    if 11 <= day.day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day.day % 10, "th")
    return f"{MONTHS[day.month - 1][:3]} {day.day}{suffix}, {day.year}"


def long_title(day: date) -> str:
    """Human title used for journal front matter, e.g. ``January 15, 2024``."""
    return f"{MONTHS[day.month - 1]} {day.day}, {day.year}"


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    # Clamp to the last day of the target month
    for candidate in (day.day, 30, 29, 28):
        result = _safe_date(year, month, min(day.day, candidate))
        if result:
            return result
    return date(year, month, 28)
