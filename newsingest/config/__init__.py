"""Configuration management for newsingest."""

from .loader import Config, default_config_path, load_config, save_config
from .models import (
    ConfigModel,
    FetchProfile,
    LoggingConfig,
    MediastackConfig,
    PipelineConfig,
    PostgresConfig,
    RetryConfig,
)

__all__ = [
    "Config",
    "ConfigModel",
    "FetchProfile",
    "LoggingConfig",
    "MediastackConfig",
    "PipelineConfig",
    "PostgresConfig",
    "RetryConfig",
    "default_config_path",
    "load_config",
    "save_config",
]
