"""Structured logging setup for logseq-quartz."""

import os
from pathlib import Path
from typing import Any, Optional

import structlog

VALID_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def default_log_file() -> Path:
    """Default log location: ~/.cache/logseq-quartz/logs/logseq-quartz.log."""
    return Path.home() / ".cache" / "logseq-quartz" / "logs" / "logseq-quartz.log"


def configure_logging(log_file: Optional[Path] = None, level: Optional[str] = None) -> None:
    """
    Configure structlog for JSON logging to a file.

    Log level can be controlled via LOGSEQ_QUARTZ_LOG_LEVEL environment variable:
    - Set to "DEBUG" to see every link resolution and stub creation
    - Defaults to "INFO" if not set

    Log levels:
    - DEBUG: Per-link resolution outcomes, per-query results, stage details
    - INFO: Phase transitions, page counts, files written
    - WARNING: Duplicate page names, malformed queries, unreadable pages
    - ERROR: Page conversion failures

    Args:
        log_file: Override for the log file path
        level: Override for the log level (takes precedence over the env var)

    Example:
        # Enable debug logging
        export LOGSEQ_QUARTZ_LOG_LEVEL=DEBUG
        logseq-quartz convert -i ~/graph -o content

        # View logs with jq for readability:
        tail -f ~/.cache/logseq-quartz/logs/logseq-quartz.log | jq .
    """
    log_file = log_file or default_log_file()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    log_level = (level or os.environ.get("LOGSEQ_QUARTZ_LOG_LEVEL", "INFO")).upper()
    if log_level not in VALID_LEVELS:
        log_level = "INFO"

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=open(log_file, "a")),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of calling module)

    Returns:
        Structured logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("page_indexed", page="Project X", blocks=12)
    """
    return structlog.get_logger(name)
