"""Configuration management for bundlr."""

from bundlr.core.config.loader import detect_format, load_config, load_project_config
from bundlr.core.config.models import (
    BundleMode,
    CompileOptions,
    DependencyConfig,
    GroupConfig,
    LoggingConfig,
    ManifestConfig,
    PostProcessConfig,
    ProjectConfig,
)

__all__ = [
    # Loaders
    "detect_format",
    "load_config",
    "load_project_config",
    # Models
    "BundleMode",
    "CompileOptions",
    "DependencyConfig",
    "GroupConfig",
    "LoggingConfig",
    "ManifestConfig",
    "PostProcessConfig",
    "ProjectConfig",
]
