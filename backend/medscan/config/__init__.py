"""
Configuration Module

Application settings and configuration management.
"""

from .settings import (
    AppConfig,
    VisionConfig,
    SourcesConfig,
    AggregationConfig,
    QualityConfig,
    SafetyConfig,
    LoggingConfig,
    get_default_config,
)

__all__ = [
    "AppConfig",
    "VisionConfig",
    "SourcesConfig",
    "AggregationConfig",
    "QualityConfig",
    "SafetyConfig",
    "LoggingConfig",
    "get_default_config",
]
