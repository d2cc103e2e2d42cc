"""
codefinder - Core Package

Searches a source tree for lines matching free-text query tokens, returns the
matches with surrounding context, and optionally asks a language model to
summarize them.
"""

__version__ = "0.1.0"
__author__ = "codefinder Team"

from .finder import CodeFinder, run_search
from .models.search_query import SearchQuery
from .models.search_results import MatchRecord, SearchResults
from .summarizer import SummarizationError, Summarizer
from .tools.fs_walker import DirectoryReadError, FileAcceptancePolicy, traverse
from .tools.predicate import EmptyQueryError, build_predicate
from .tools.searcher import ResultAccumulator, search

__all__ = [
    'CodeFinder',
    'run_search',
    'SearchQuery',
    'MatchRecord',
    'SearchResults',
    'SummarizationError',
    'Summarizer',
    'DirectoryReadError',
    'FileAcceptancePolicy',
    'traverse',
    'EmptyQueryError',
    'build_predicate',
    'ResultAccumulator',
    'search',
]
