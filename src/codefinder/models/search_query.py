"""
Search query data model for codefinder.

This module defines the structure describing one search request: the free-text
query, the directory to start from, and the result/window limits.
"""

import os
from typing import Dict, List, Any
from pathlib import Path
from pydantic import BaseModel, Field, field_validator


class SearchQuery(BaseModel):
    """
    Represents a search request with all parameters and constraints.

    An empty ``text`` is accepted here on purpose: rejecting it is the job of the
    predicate builder, which raises ``EmptyQueryError`` before any traversal.

    Attributes:
        text: Free-text query; whitespace-separated tokens are OR-ed together
        root: Directory to search (defaults to the current working directory)
        max_results: Maximum number of matches to return
        window_lines: Lines of context before and after each match
    """

    text: str = Field("", description="Free-text search query")
    root: str = Field(default_factory=os.getcwd, description="Directory to search")
    max_results: int = Field(5, gt=0, description="Maximum number of results")
    window_lines: int = Field(3, ge=0, description="Context lines around each match")

    @field_validator('text')
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Normalize the query text."""
        return v.strip()

    @field_validator('root')
    @classmethod
    def validate_root(cls, v: str) -> str:
        """Expand ``~``; keep relative roots relative so reported paths stay short."""
        if not v or not v.strip():
            raise ValueError("Root directory cannot be empty")
        return str(Path(v.strip()).expanduser())

    def get_tokens(self) -> List[str]:
        """Whitespace-separated query tokens."""
        return self.text.split()

    def to_dict(self) -> Dict[str, Any]:
        """Convert the search query to a dictionary representation."""
        return self.model_dump()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SearchQuery':
        """Create a SearchQuery instance from a dictionary."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        parts = [f"Query: '{self.text}'"]
        parts.append(f"Root: {self.root}")
        parts.append(f"Max results: {self.max_results}")
        parts.append(f"Window: {self.window_lines}")
        return " | ".join(parts)
