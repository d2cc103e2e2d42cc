"""
Search results data models for codefinder.

This module defines the core data structures for representing search results:
individual line matches with their context window, and the complete, fully
materialized result set of one search run.
"""

import json
from typing import Dict, List, Any
from datetime import datetime
from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .search_query import SearchQuery


class MatchRecord(BaseModel):
    """
    A single matching line and its surrounding context.

    Records are immutable once created.

    Attributes:
        file: Path of the file containing the match, as produced by traversal
        line: 1-based line number of the matching line
        snippet: Lines around the match (clamped to the file), joined with newlines
    """

    model_config = ConfigDict(frozen=True)

    file: str = Field(..., min_length=1, description="Path of the matched file")
    line: int = Field(..., ge=1, description="1-based line number of the match")
    snippet: str = Field(..., description="Context window around the matching line")

    @field_validator('file')
    @classmethod
    def validate_file(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("File path cannot be empty")
        return v

    def get_filename(self) -> str:
        """Get just the filename without directory path."""
        return Path(self.file).name

    def get_snippet_lines(self) -> List[str]:
        """Split the snippet back into its lines."""
        return self.snippet.split('\n')

    def get_location(self) -> str:
        """``file:line`` reference for display."""
        return f"{self.file}:{self.line}"

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()

    def __str__(self) -> str:
        return self.get_location()


class SearchResults(BaseModel):
    """
    Complete results from a search run.

    The result set is always fully materialized, so it can be displayed,
    serialized or handed to the summarizer without re-running the search.

    Attributes:
        query: The query that produced these results
        matches: Match records in traversal order, then line order
        files_scanned: Number of candidate files opened by the searcher
        execution_time: Wall-clock search time in seconds
        timestamp: When the search was executed
        errors: Non-fatal errors (e.g. unreadable subdirectories)
        cancelled: Whether the run was stopped externally before finishing
    """

    query: SearchQuery = Field(..., description="The original search query")
    matches: List[MatchRecord] = Field(default_factory=list, description="Match records")
    files_scanned: int = Field(0, ge=0, description="Number of files read")
    execution_time: float = Field(0.0, ge=0.0, description="Search time in seconds")
    timestamp: datetime = Field(default_factory=datetime.now, description="When the search was executed")
    errors: List[str] = Field(default_factory=list, description="Non-fatal errors encountered")
    cancelled: bool = Field(False, description="Whether the run was cancelled")

    def get_match_count(self) -> int:
        """Get the total number of matches."""
        return len(self.matches)

    def is_empty(self) -> bool:
        """True when the search found nothing; this is not an error."""
        return not self.matches

    def get_files(self) -> List[str]:
        """Distinct matched files in first-seen order."""
        seen = []
        for match in self.matches:
            if match.file not in seen:
                seen.append(match.file)
        return seen

    def has_errors(self) -> bool:
        """Check if any non-fatal errors occurred during search."""
        return len(self.errors) > 0

    def format_text(self) -> str:
        """
        Render matches as numbered plain-text blocks.

        Returns:
            ``[k] file:line`` headers each followed by the snippet
        """
        blocks = []
        for idx, match in enumerate(self.matches, 1):
            blocks.append(f"[{idx}] {match.get_location()}\n{match.snippet}")
        return "\n\n".join(blocks)

    def to_dict(self) -> Dict[str, Any]:
        """Convert search results to dictionary representation."""
        data = self.model_dump()
        data['query'] = self.query.to_dict()
        data['matches'] = [match.to_dict() for match in self.matches]
        data['match_count'] = self.get_match_count()
        data['timestamp'] = self.timestamp.isoformat()
        data['has_errors'] = self.has_errors()
        return data

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __str__(self) -> str:
        parts = [f"Found {self.get_match_count()} matches"]
        parts.append(f"Scanned {self.files_scanned} files")
        parts.append(f"Took {self.execution_time:.2f}s")

        if self.has_errors():
            parts.append(f"Errors: {len(self.errors)}")

        if self.cancelled:
            parts.append("Cancelled")

        return " | ".join(parts)
