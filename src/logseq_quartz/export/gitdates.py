"""Created/modified dates for graph files from git history."""

import subprocess
from datetime import date
from pathlib import Path
from typing import NamedTuple

import structlog

logger = structlog.get_logger()

GIT_LOG_TIMEOUT = 60


class GitDates(NamedTuple):
    created: date
    modified: date


def parse_git_log(output: str) -> dict[str, GitDates]:
    """
    Parse ``git log --format=%aI --name-only`` output.

    Commits are listed newest first, so the first date seen for a file is its
    modified date and the last one its created date.

    Args:
        output: Raw git log output

    Returns:
        Mapping of repository-relative path -> GitDates
    """
    dates: dict[str, GitDates] = {}
    current = None
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        if line[:4].isdigit() and "T" in line:
            try:
                current = date.fromisoformat(line.split("T", 1)[0])
            except ValueError:
                current = None
            continue
        if current is None or not line.endswith(".md"):
            continue
        existing = dates.get(line)
        if existing is None:
            dates[line] = GitDates(created=current, modified=current)
        else:
            dates[line] = GitDates(created=current, modified=existing.modified)
    return dates


def collect_git_dates(root: Path) -> dict[str, GitDates]:
    """
    Read dates for every markdown file under root in one git call.

    Returns an empty mapping when git is missing or root is not inside a
    repository; dates are optional metadata.
    """
    try:
        result = subprocess.run(
            ["git", "log", "--format=%aI", "--name-only", "--diff-filter=AM", "--relative"],
            cwd=root,
            capture_output=True,
            text=True,
            timeout=GIT_LOG_TIMEOUT,
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.warning("git_dates_unavailable", root=str(root), error=str(e))
        return {}

    if result.returncode != 0:
        logger.info("git_dates_unavailable", root=str(root), error=result.stderr.strip())
        return {}

    dates = parse_git_log(result.stdout)
    logger.info("git_dates_collected", root=str(root), files=len(dates))
    return dates
