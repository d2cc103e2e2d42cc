"""
Match predicate construction for codefinder.

A query is free text, not a pattern language: it is split on whitespace and each
token is matched as a literal, case-insensitive substring. A line matches when
it contains any of the tokens.
"""

import re
from typing import List, Tuple


class EmptyQueryError(ValueError):
    """Raised when a query contains no tokens."""

    def __init__(self, message: str = "Search query cannot be empty"):
        super().__init__(message)


class MatchPredicate:
    """
    Stateless line matcher.

    Instances hold only an immutable token tuple and a compiled pattern, so one
    predicate can be applied to every line of every file, from any thread.
    """

    __slots__ = ('tokens', '_pattern')

    def __init__(self, tokens: List[str]):
        if not tokens:
            raise EmptyQueryError()
        self.tokens: Tuple[str, ...] = tuple(tokens)
        self._pattern = re.compile('|'.join(re.escape(token) for token in self.tokens), re.IGNORECASE)

    def matches(self, line: str) -> bool:
        """True if ``line`` contains any token, ignoring case."""
        return self._pattern.search(line) is not None

    __call__ = matches

    def __repr__(self) -> str:
        return f"MatchPredicate(tokens={list(self.tokens)!r})"


def build_predicate(query: str) -> MatchPredicate:
    """
    Build a predicate from a free-text query.

    Args:
        query: Whitespace-separated tokens

    Returns:
        Predicate matching lines that contain any token as a literal substring

    Raises:
        EmptyQueryError: If the query is empty or only whitespace
    """
    tokens = query.split() if query else []
    if not tokens:
        raise EmptyQueryError()
    return MatchPredicate(tokens)
