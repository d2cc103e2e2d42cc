"""
Data models for codefinder.

This module contains all the core data structures used throughout the system.
"""

from .search_query import SearchQuery
from .search_results import MatchRecord, SearchResults
from .config import FinderConfig

__all__ = ['SearchQuery', 'MatchRecord', 'SearchResults', 'FinderConfig']
