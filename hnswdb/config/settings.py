"""
Configuration management for hnswdb.

Provides dataclasses for configuration and utilities
for loading settings from YAML files.
"""

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Literal, Optional

import yaml

from ..core.exceptions import ConfigurationError


@dataclass
class HNSWSettings:
    """HNSW index configuration."""
    M: int = 16
    ef: int = 200
    seed: Optional[int] = None


@dataclass
class Settings:
    """
    Main settings container for hnswdb.
    
    Attributes:
        dimension: Default vector dimension
        metric: Distance metric (euclidean, cosine)
        log_level: Logging level
        hnsw_config: HNSW index settings
    """
    dimension: int = 128
    metric: Literal["euclidean", "cosine"] = "euclidean"
    log_level: str = "INFO"
    
    hnsw_config: HNSWSettings = field(default_factory=HNSWSettings)
    
    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """
        Create Settings from dictionary.
        
        Raises:
            ConfigurationError: If the dictionary has unknown keys
        """
        data = dict(data)
        hnsw_data = data.pop("hnsw_config", None) or {}
        
        try:
            return cls(hnsw_config=HNSWSettings(**hnsw_data), **data)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
    
    def to_dict(self) -> dict:
        """Convert Settings to dictionary."""
        return asdict(self)


def get_default_config_path() -> Path:
    """Get path to default configuration file."""
    # Check for config in current directory
    local_config = Path("./config/default_config.yaml")
    if local_config.exists():
        return local_config
    
    # Check for config relative to this file
    module_config = Path(__file__).parent / "default_config.yaml"
    if module_config.exists():
        return module_config
    
    # Check environment variable
    env_config = os.environ.get("HNSWDB_CONFIG")
    if env_config:
        return Path(env_config)
    
    return module_config


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file.
    
    Args:
        config_path: Path to config file. If None, uses default.
        
    Returns:
        Settings object with loaded configuration
        
    Raises:
        ConfigurationError: If the file is not a YAML mapping
        
    Example:
        >>> settings = load_config()
        >>> settings = load_config("./my_config.yaml")
    """
    if config_path is None:
        path = get_default_config_path()
    else:
        path = Path(config_path)
    
    if not path.exists():
        # Return default settings if no config file
        return Settings()
    
    with open(path, "r") as f:
        data = yaml.safe_load(f)
    
    if data is None:
        return Settings()
    
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    
    return Settings.from_dict(data)
