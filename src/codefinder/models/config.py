"""
Configuration data models for codefinder.

This module defines the core data structures for managing application configuration,
including the directory ignore set, the file acceptance policy, search limits,
summarizer settings, and redaction options.
"""

import os
import re
from typing import Dict, List, Optional, Any, FrozenSet, Sequence
from enum import Enum
from pydantic import BaseModel, Field, field_validator


ONE_MIB = 1024 * 1024

DEFAULT_IGNORE_DIRS = [
    "node_modules",
    "vendor",
    "third_party",
    ".git",
    "dist",
    "build",
    "tests",
    "test",
    "__tests__",
]

DEFAULT_ALLOWED_EXTENSIONS = [
    ".js", ".ts", ".jsx", ".tsx", ".py", ".go", ".java", ".c", ".cpp", ".h",
    ".cs", ".rb", ".php", ".swift", ".rs", ".sh", ".yaml", ".yml", ".json",
    ".env", ".toml", ".ini", ".md", ".txt",
]

DEFAULT_REDACT_PATTERNS = ["api_key", "password", "secret", "token", "credential"]


class SummarizerProvider(Enum):
    """Supported summarization providers."""
    ANTHROPIC = "anthropic"


class OutputFormat(Enum):
    """Supported output formats."""
    TEXT = "text"
    JSON = "json"


class LimitsConfig(BaseModel):
    """
    Configuration for search limits.

    Attributes:
        max_results: Maximum number of match records a search produces
        window_lines: Lines of context included before and after each match
        max_unknown_file_bytes: Size bound for files with an unrecognized extension
    """

    max_results: int = Field(5, gt=0, description="Maximum number of match records")
    window_lines: int = Field(3, ge=0, description="Context lines before and after a match")
    max_unknown_file_bytes: int = Field(
        ONE_MIB, gt=0, description="Files with unknown extensions must be smaller than this"
    )

    def get_max_size_human_readable(self) -> str:
        """Get the unknown-extension size bound in human-readable format."""
        size = float(self.max_unknown_file_bytes)
        for unit in ['B', 'KB', 'MB', 'GB']:
            if size < 1024.0:
                return f"{size:.1f} {unit}"
            size /= 1024.0
        return f"{size:.1f} TB"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = self.model_dump()
        data['max_size_human'] = self.get_max_size_human_readable()
        return data


class SummarizerConfig(BaseModel):
    """
    Configuration for the downstream summarization step.

    Attributes:
        enabled: Whether results are sent to the language model at all
        provider: Summarization service provider
        model: Model name/identifier
        api_key: API key for the service (falls back to the provider's environment variable)
        max_tokens: Maximum tokens in the generated summary
        temperature: Sampling temperature
        timeout_seconds: Request timeout
    """

    enabled: bool = Field(True, description="Whether to summarize search results")
    provider: SummarizerProvider = Field(SummarizerProvider.ANTHROPIC, description="Summarization provider")
    model: str = Field("claude-3-5-haiku-latest", min_length=1, description="Model name/identifier")
    api_key: Optional[str] = Field(None, description="API key for the service")
    max_tokens: int = Field(400, gt=0, description="Maximum tokens in the summary")
    temperature: float = Field(0.2, ge=0.0, le=1.0, description="Sampling temperature")
    timeout_seconds: float = Field(30.0, gt=0, description="Request timeout in seconds")

    @field_validator('provider', mode='before')
    @classmethod
    def validate_provider(cls, v) -> SummarizerProvider:
        """Validate and convert provider to enum."""
        if isinstance(v, str):
            try:
                return SummarizerProvider(v)
            except ValueError:
                raise ValueError(f"Invalid summarizer provider: {v}")
        return v

    def get_env_var(self) -> str:
        """Name of the environment variable holding the provider's API key."""
        return f"{self.provider.value.upper()}_API_KEY"

    def resolve_api_key(self) -> Optional[str]:
        """Return the configured API key, or the one from the environment."""
        if self.api_key:
            return self.api_key
        return os.getenv(self.get_env_var()) or None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = self.model_dump()
        data['provider'] = self.provider.value
        data['api_key'] = '***' if self.api_key else None  # Redact API key
        return data


class OutputConfig(BaseModel):
    """Configuration for how results are printed."""

    format: OutputFormat = Field(OutputFormat.TEXT, description="Output format for raw results")

    @field_validator('format', mode='before')
    @classmethod
    def validate_format(cls, v) -> OutputFormat:
        if isinstance(v, str):
            try:
                return OutputFormat(v)
            except ValueError:
                raise ValueError(f"Invalid output format: {v}")
        return v

    def to_dict(self) -> Dict[str, Any]:
        return {'format': self.format.value}


class SecurityConfig(BaseModel):
    """
    Configuration for privacy settings.

    Redaction applies only to text leaving the process (the summarizer prompt);
    search results themselves are never modified.

    Attributes:
        redact_patterns: Case-insensitive patterns whose matching lines are redacted
    """

    redact_patterns: List[str] = Field(
        default_factory=lambda: list(DEFAULT_REDACT_PATTERNS),
        description="Patterns to redact from outgoing text"
    )

    def model_post_init(self, __context) -> None:
        """Compile redaction patterns."""
        self._compiled_patterns = []
        for pattern in self.redact_patterns:
            try:
                self._compiled_patterns.append(re.compile(pattern, re.IGNORECASE))
            except re.error as e:
                raise ValueError(f"Invalid redaction pattern '{pattern}': {e}")

    def should_redact(self, text: str) -> bool:
        """Check if text contains patterns that should be redacted."""
        return any(pattern.search(text) for pattern in self._compiled_patterns)

    def redact_text(self, text: str, replacement: str = "[REDACTED]",
                    keep_tokens: Sequence[str] = ()) -> str:
        """
        Replace every line containing a sensitive pattern.

        Args:
            text: Multi-line text to redact
            replacement: Text substituted for a redacted line
            keep_tokens: Search tokens; a pattern that matches one of them is
                ignored, and a line containing one of them is never replaced

        Returns:
            The text with sensitive lines replaced
        """
        patterns = [
            pattern for pattern in self._compiled_patterns
            if not any(pattern.search(token) for token in keep_tokens)
        ]
        if not patterns:
            return text

        keep = None
        if keep_tokens:
            keep = re.compile('|'.join(re.escape(token) for token in keep_tokens), re.IGNORECASE)

        redacted = []
        for line in text.split('\n'):
            if keep is not None and keep.search(line):
                redacted.append(line)
            elif any(pattern.search(line) for pattern in patterns):
                redacted.append(replacement)
            else:
                redacted.append(line)
        return '\n'.join(redacted)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return self.model_dump()


class FinderConfig(BaseModel):
    """
    Main configuration class for codefinder.

    Attributes:
        ignore_dirs: Directory names never descended into (exact name match)
        allowed_extensions: Extensions accepted regardless of file size
        limits: Search limits
        summarizer: Summarization settings
        security: Redaction settings
        output: Output formatting
    """

    ignore_dirs: List[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORE_DIRS),
        description="Directory names excluded from traversal"
    )
    allowed_extensions: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_EXTENSIONS),
        description="File extensions always accepted"
    )
    limits: LimitsConfig = Field(default_factory=LimitsConfig, description="Search limits")
    summarizer: SummarizerConfig = Field(default_factory=SummarizerConfig, description="Summarizer settings")
    security: SecurityConfig = Field(default_factory=SecurityConfig, description="Redaction settings")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output formatting")

    @field_validator('ignore_dirs')
    @classmethod
    def validate_ignore_dirs(cls, v: List[str]) -> List[str]:
        """Directory names are matched exactly, so they must be bare names."""
        normalized = []
        for name in v:
            if not name or not name.strip():
                continue
            name = name.strip()
            if '/' in name or '\\' in name:
                raise ValueError(f"Ignore entry must be a directory name, not a path: {name}")
            if name not in normalized:
                normalized.append(name)
        return normalized

    @field_validator('allowed_extensions')
    @classmethod
    def validate_allowed_extensions(cls, v: List[str]) -> List[str]:
        """Normalize extensions to lower case with a leading dot."""
        normalized = []
        for ext in v:
            if not ext or not ext.strip():
                continue
            ext = ext.strip().lower()
            if not ext.startswith('.'):
                ext = '.' + ext
            if ext not in normalized:
                normalized.append(ext)
        return normalized

    def get_ignore_set(self) -> FrozenSet[str]:
        """The immutable ignore set used for a traversal run."""
        return frozenset(self.ignore_dirs)

    def validate_configuration(self) -> List[str]:
        """
        Return non-fatal warnings about this configuration.

        Returns:
            List of warning messages (empty if nothing looks off)
        """
        warnings = []

        if not self.allowed_extensions:
            warnings.append("No allowed extensions configured - only small files will be searched")

        if self.limits.max_results > 1000:
            warnings.append(f"Very high max_results ({self.limits.max_results}) may produce a huge prompt")

        if self.limits.window_lines > 50:
            warnings.append(f"Large window_lines ({self.limits.window_lines}) makes snippets hard to read")

        if self.summarizer.enabled and not self.summarizer.resolve_api_key():
            warnings.append(
                f"API key not found in configuration or {self.summarizer.get_env_var()} environment variable"
            )

        if self.summarizer.enabled and not self.security.redact_patterns:
            warnings.append("No redaction patterns configured - sensitive lines may be sent to the summarizer")

        return warnings

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary representation."""
        return {
            'ignore_dirs': list(self.ignore_dirs),
            'allowed_extensions': list(self.allowed_extensions),
            'limits': self.limits.model_dump(),
            'summarizer': self.summarizer.to_dict(),
            'security': self.security.to_dict(),
            'output': self.output.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FinderConfig':
        """Create a FinderConfig from a dictionary."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        parts = [f"Ignore dirs: {len(self.ignore_dirs)}"]
        parts.append(f"Extensions: {len(self.allowed_extensions)}")
        parts.append(f"Max results: {self.limits.max_results}")
        parts.append(f"Window: {self.limits.window_lines}")
        parts.append(f"Summarizer: {'on' if self.summarizer.enabled else 'off'}")
        return " | ".join(parts)


def validate_config_dict(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check the top-level shape of raw configuration data.

    Args:
        config_data: Raw configuration dictionary (e.g. from YAML)

    Returns:
        The same dictionary, if valid

    Raises:
        ValueError: If unknown sections are present or sections have the wrong type
    """
    if not isinstance(config_data, dict):
        raise ValueError("Configuration must be a mapping")

    known_sections = set(FinderConfig.model_fields)
    unknown = [key for key in config_data if key not in known_sections]
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    for key in ('ignore_dirs', 'allowed_extensions'):
        if key in config_data and not isinstance(config_data[key], list):
            raise ValueError(f"'{key}' must be a list")

    for key in ('limits', 'summarizer', 'security', 'output'):
        if key in config_data and not isinstance(config_data[key], dict):
            raise ValueError(f"'{key}' must be a mapping")

    return config_data
