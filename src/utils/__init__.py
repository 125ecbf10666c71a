"""Utility modules."""

from .config_loader import ConfigLoader, load_config, get_nested, DEFAULT_CONFIG
from .errors import InvalidImageError, ParseError
from .logger import setup_logger, get_logger, LoggerMixin

__all__ = [
    "ConfigLoader",
    "load_config",
    "get_nested",
    "DEFAULT_CONFIG",
    "InvalidImageError",
    "ParseError",
    "setup_logger",
    "get_logger",
    "LoggerMixin",
]
