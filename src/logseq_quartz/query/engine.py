"""Query evaluation against the frozen page graph."""

from datetime import date
from typing import Optional, Union

import structlog

from logseq_quartz.graph.page_graph import PageGraph
from logseq_quartz.graph.resolver import LinkResolver
from logseq_quartz.models.page import Page
from logseq_quartz.query.nodes import QueryEnvironment, QueryNode
from logseq_quartz.query.parser import parse_query

logger = structlog.get_logger()


class QueryEngine:
    """Evaluates simple queries over every real page of a graph."""

    def __init__(self, graph: PageGraph, resolver: Optional[LinkResolver] = None):
        self.graph = graph
        self.resolver = resolver or LinkResolver(graph)

    def evaluate(self, query: Union[str, QueryNode], today: Optional[date] = None) -> list[Page]:
        """
        Run a query.

        Args:
            query: Query text or an already parsed QueryNode
            today: Reference date for relative ``between`` bounds

        Returns:
            Matching pages in graph insertion order (stubs never match)

        Raises:
            QuerySyntaxError: If query text cannot be parsed
        """
        node = parse_query(query) if isinstance(query, str) else query
        env = QueryEnvironment(self.resolver, today=today or date.today())
        results = [page for page in self.graph.pages if node.matches(page, env)]
        logger.debug("query_evaluated", query=str(query), results=len(results))
        return results
