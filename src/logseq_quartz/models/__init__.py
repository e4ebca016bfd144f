"""Data models for logseq-quartz."""

from logseq_quartz.models.config import ConverterConfig
from logseq_quartz.models.page import Page, PageKind

__all__ = ["ConverterConfig", "Page", "PageKind"]
