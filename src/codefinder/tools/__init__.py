"""
Search tools for codefinder.

This module contains the filesystem traversal, match predicate construction,
and windowed line search used by the finder.
"""

from .fs_walker import DirectoryReadError, FileAcceptancePolicy, FSWalker, traverse
from .predicate import EmptyQueryError, MatchPredicate, build_predicate
from .searcher import ResultAccumulator, WindowedSearcher, search

__all__ = [
    'DirectoryReadError',
    'FileAcceptancePolicy',
    'FSWalker',
    'traverse',
    'EmptyQueryError',
    'MatchPredicate',
    'build_predicate',
    'ResultAccumulator',
    'WindowedSearcher',
    'search',
]
