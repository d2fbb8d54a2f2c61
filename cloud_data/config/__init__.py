"""
Configuration management for cloud_data.

This module provides configuration models and a loader that merges a JSON
configuration file with environment variables.
"""

from .loader import ConfigLoader, load_config
from .models import (
    DEFAULT_REMOTE_URLS,
    CloudDataConfig,
    CloudEnvironment,
    LoggingConfig,
    LogLevel,
)

__all__ = [
    "CloudDataConfig",
    "CloudEnvironment",
    "DEFAULT_REMOTE_URLS",
    "LoggingConfig",
    "LogLevel",
    "ConfigLoader",
    "load_config",
]
