"""
Configuration module for hnswdb.

This module provides configuration management including
loading settings from YAML files.

Example:
    >>> from hnswdb.config import Settings, load_config
    >>> 
    >>> # Load default config
    >>> settings = load_config()
    >>> 
    >>> # Access settings
    >>> print(settings.dimension)
    >>> print(settings.hnsw_config.M)
"""

from .settings import (
    Settings,
    HNSWSettings,
    load_config,
    get_default_config_path,
)

__all__ = [
    "Settings",
    "HNSWSettings",
    "load_config",
    "get_default_config_path",
]
