"""
unicache — Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import configure_logging, get_config, load_config, reload_config
from .schemas import CacheConfig, Environment, LogLevel, UnicacheConfig

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    "configure_logging",
    # Main config
    "UnicacheConfig",
    # Enums
    "Environment",
    "LogLevel",
    # Config sections
    "CacheConfig",
]
