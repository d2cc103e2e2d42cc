"""
Configuration management package for codefinder.

This package provides configuration parsing, validation, and management
functionality for the codefinder command-line tool.
"""

from .parser import (
    ConfigParser,
    ConfigParseResult,
    ConfigurationError,
    load_config,
    create_config_template
)

__all__ = [
    'ConfigParser',
    'ConfigParseResult',
    'ConfigurationError',
    'load_config',
    'create_config_template'
]
