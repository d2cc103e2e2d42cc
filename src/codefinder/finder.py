"""
Search orchestration for codefinder.

Composes predicate construction, lazy traversal and windowed search into one
run and packages the outcome as a fully materialized SearchResults.
"""

import time
import logging
import threading
from typing import Optional

from .models.config import FinderConfig
from .models.search_query import SearchQuery
from .models.search_results import SearchResults
from .tools.fs_walker import DirectoryReadError, FSWalker
from .tools.predicate import build_predicate
from .tools.searcher import ResultAccumulator, WindowedSearcher


logger = logging.getLogger(__name__)


class CodeFinder:
    """
    Runs searches against the filesystem using one configuration.

    Unreadable subdirectories are recorded in ``SearchResults.errors`` and the
    traversal continues with their siblings; an unreadable root raises
    :class:`DirectoryReadError`.
    """

    def __init__(self, config: Optional[FinderConfig] = None):
        self.config = config or FinderConfig()

    def run(self, query: SearchQuery, cancel_event: Optional[threading.Event] = None,
            accumulator: Optional[ResultAccumulator] = None) -> SearchResults:
        """
        Execute a search.

        Args:
            query: What to look for and where
            cancel_event: Optional external cancellation token
            accumulator: Optional caller-owned accumulator; lets the caller keep
                partial results if the run is interrupted

        Returns:
            SearchResults with matches in traversal order

        Raises:
            EmptyQueryError: If the query has no tokens (raised before any traversal)
            DirectoryReadError: If the root directory cannot be listed
        """
        predicate = build_predicate(query.text)

        if accumulator is None:
            accumulator = ResultAccumulator(query.max_results)

        errors = []

        def record_error(error: DirectoryReadError) -> None:
            errors.append(str(error))

        walker = FSWalker.from_config(self.config, on_error=record_error)
        searcher = WindowedSearcher(predicate, query.window_lines, query.max_results)

        logger.info(f"Searching {query.root} for {list(predicate.tokens)}")
        start = time.perf_counter()
        files = walker.walk(query.root)
        try:
            searcher.search(files, accumulator, cancel_event)
        finally:
            files.close()
        elapsed = time.perf_counter() - start

        results = SearchResults(
            query=query,
            matches=list(accumulator.matches),
            files_scanned=accumulator.files_scanned,
            execution_time=elapsed,
            errors=errors,
            cancelled=bool(cancel_event is not None and cancel_event.is_set())
        )
        logger.info(str(results))
        logger.debug(f"Traversal stats: {walker.get_stats()}")
        return results


def run_search(query: SearchQuery, config: Optional[FinderConfig] = None) -> SearchResults:
    """Convenience function to run a single search."""
    return CodeFinder(config).run(query)
