"""
YAML configuration loading for codefinder.

A configuration file is optional. When one is given (or discovered in the
usual places) its sections are laid over the built-in defaults, checked, and
turned into a FinderConfig. Anything wrong with the file surfaces as a
ConfigurationError carrying a message fit for the terminal.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List, Tuple, Union
import logging
from dataclasses import dataclass

from ..models.config import (
    DEFAULT_ALLOWED_EXTENSIONS,
    DEFAULT_IGNORE_DIRS,
    DEFAULT_REDACT_PATTERNS,
    ONE_MIB,
    FinderConfig,
    LimitsConfig,
    SummarizerConfig,
    validate_config_dict,
)


logger = logging.getLogger(__name__)

# Unknown-extension files above this bound are read whole into memory
LARGE_FILE_WARNING_BYTES = 50 * ONE_MIB

TEMPLATE_HEADER = [
    "# codefinder configuration",
    "# Controls which files are searched, result limits, and summarization",
    "",
]

SECTION_COMMENTS = [
    ("ignore_dirs", "Directory names never descended into (exact name match)"),
    ("allowed_extensions", "Extensions searched regardless of file size"),
    ("limits", "Result cap, context window, and size bound for unknown extensions"),
    ("summarizer", "Language-model summary of the results (API key from ANTHROPIC_API_KEY)"),
    ("security", "Lines matching these patterns are redacted before leaving the machine"),
    ("output", "Output format for raw results"),
]


@dataclass
class ConfigParseResult:
    """
    Outcome of loading a configuration.

    Attributes:
        config: The validated configuration
        warnings: Non-fatal problems worth telling the user about
        config_path: File the configuration came from, None for built-in defaults
        is_default: True when no file was found
    """
    config: FinderConfig
    warnings: List[str]
    config_path: Optional[Path]
    is_default: bool


class ConfigurationError(Exception):
    """Raised when a configuration file cannot be read or is invalid."""
    pass


def default_config_data() -> Dict[str, Any]:
    """Built-in configuration as plain data, in the layout of a config file."""
    limits = LimitsConfig()
    summarizer = SummarizerConfig()
    return {
        'ignore_dirs': list(DEFAULT_IGNORE_DIRS),
        'allowed_extensions': list(DEFAULT_ALLOWED_EXTENSIONS),
        'limits': {
            'max_results': limits.max_results,
            'window_lines': limits.window_lines,
            'max_unknown_file_bytes': limits.max_unknown_file_bytes,
        },
        'summarizer': {
            'enabled': summarizer.enabled,
            'provider': summarizer.provider.value,
            'model': summarizer.model,
            'max_tokens': summarizer.max_tokens,
            'temperature': summarizer.temperature,
            'timeout_seconds': summarizer.timeout_seconds,
        },
        'security': {
            'redact_patterns': list(DEFAULT_REDACT_PATTERNS),
        },
        'output': {
            'format': 'text',
        },
    }


class ConfigParser:
    """
    Finds, reads and validates codefinder configuration files.

    Args:
        strict_mode: Treat configuration warnings as errors
    """

    DEFAULT_CONFIG_NAMES = [
        '.codefinder.yaml',
        '.codefinder.yml',
        'codefinder.yaml',
        'codefinder.yml'
    ]

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def get_search_paths(self) -> List[Path]:
        """Directories searched for a configuration file, in priority order."""
        return [
            Path.cwd(),
            Path.home(),
            Path.home() / '.config' / 'codefinder',
        ]

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> ConfigParseResult:
        """
        Load a configuration file, or discover one, and merge it over the defaults.

        Args:
            config_path: Explicit file to load. When omitted the search paths are
                tried in order and the built-in defaults are used if none exists.

        Returns:
            ConfigParseResult with the configuration and any warnings

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid, or
                if strict mode is on and there are warnings
        """
        try:
            if config_path:
                config_path = Path(config_path)
                if not config_path.exists():
                    raise ConfigurationError(f"Configuration file not found: {config_path}")
                file_data = self._read_yaml(config_path)
            else:
                config_path, file_data = self._discover()

            is_default = config_path is None
            data = default_config_data()
            # Top-level sections replace their defaults wholesale
            data.update(file_data or {})

            try:
                validate_config_dict(data)
            except ValueError as e:
                raise ConfigurationError(f"Configuration validation failed: {e}") from e

            config = FinderConfig.from_dict(data)
            warnings = config.validate_configuration() + self._file_warnings(config, is_default)

            if self.strict_mode and warnings:
                raise ConfigurationError(f"Configuration warnings in strict mode: {'; '.join(warnings)}")

            self.logger.info(f"Configuration loaded from {config_path or 'defaults'}")
            return ConfigParseResult(
                config=config,
                warnings=warnings,
                config_path=config_path,
                is_default=is_default
            )

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

    def _discover(self) -> Tuple[Optional[Path], Optional[Dict[str, Any]]]:
        """First readable configuration file on the search paths, or (None, None)."""
        for directory in self.get_search_paths():
            for name in self.DEFAULT_CONFIG_NAMES:
                candidate = directory / name
                if not candidate.is_file():
                    continue
                try:
                    data = self._read_yaml(candidate)
                except ConfigurationError as e:
                    self.logger.warning(f"Skipping {candidate}: {e}")
                    continue
                self.logger.info(f"Found configuration file: {candidate}")
                return candidate, data

        self.logger.info("No configuration file found, using defaults")
        return None, None

    def _read_yaml(self, file_path: Path) -> Dict[str, Any]:
        """
        Parse a YAML file into a mapping.

        Empty and comment-only files yield an empty mapping.

        Raises:
            ConfigurationError: If the file cannot be read, is not valid YAML,
                or does not hold a mapping
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {file_path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file {file_path}: {e}") from e

        if data is None:
            self.logger.debug(f"Configuration file has no settings: {file_path}")
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file must contain a YAML object, got {type(data).__name__}")
        return data

    def _file_warnings(self, config: FinderConfig, is_default: bool) -> List[str]:
        warnings = []
        if is_default:
            warnings.append("No configuration file found, using default settings")
        if config.summarizer.api_key:
            warnings.append("API key stored in configuration file; prefer the environment variable")
        if config.limits.max_unknown_file_bytes > LARGE_FILE_WARNING_BYTES:
            warnings.append("Very high max_unknown_file_bytes limit may cause memory issues")
        return warnings

    def get_config_template(self) -> str:
        """Commented YAML holding every option at its default value."""
        data = default_config_data()
        lines = list(TEMPLATE_HEADER)
        for section, comment in SECTION_COMMENTS:
            lines.append(f"# {comment}")
            lines.append(yaml.dump({section: data[section]}, default_flow_style=False, sort_keys=False).rstrip())
            lines.append("")
        return "\n".join(lines)


def load_config(config_path: Optional[Union[str, Path]] = None, strict_mode: bool = False) -> ConfigParseResult:
    """Load configuration with a one-off ConfigParser."""
    return ConfigParser(strict_mode=strict_mode).load_config(config_path)


def create_config_template(output_path: Union[str, Path]) -> None:
    """
    Write the commented default configuration to ``output_path``.

    Missing parent directories are created.

    Raises:
        ConfigurationError: If the file cannot be written
    """
    template = ConfigParser().get_config_template()
    output_path = Path(output_path)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(template)
    except OSError as e:
        raise ConfigurationError(f"Cannot create template file {output_path}: {e}") from e
