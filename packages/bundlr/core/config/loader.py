"""Configuration loading utilities with JSON and YAML support."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from bundlr.core.config.models import ProjectConfig
from bundlr.core.utils.json import read_json

logger = logging.getLogger(__name__)


def detect_format(file_path: Path | str) -> str:
    """Detect config file format from extension.

    Args:
        file_path: Path to config file

    Returns:
        Format string: "json" or "yaml"

    Raises:
        ValueError: If format cannot be determined

    Example:
        >>> detect_format("bundlr.json")
        'json'
        >>> detect_format("bundlr.yml")
        'yaml'
    """
    suffix = Path(file_path).suffix.lower()

    if suffix == ".json":
        return "json"
    elif suffix in [".yaml", ".yml"]:
        return "yaml"
    else:
        raise ValueError(f"Unsupported config format: {suffix}")


def load_config(path: str | Path) -> Any:
    """Load and return raw configuration data.

    Supports both JSON and YAML formats. Format is auto-detected
    from file extension.

    Args:
        path: Path to config file (.json, .yaml, or .yml)

    Returns:
        Raw configuration data (an empty dict for an empty YAML file)

    Raises:
        FileNotFoundError: If config file does not exist
        ValueError: If format is not supported or file content is invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    fmt = detect_format(path)

    if fmt == "json":
        try:
            return read_json(path)
        except ValueError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
    else:
        try:
            with path.open("r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
                # safe_load returns None for empty files
                return content if content is not None else {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e


def load_project_config(path: str | Path) -> ProjectConfig:
    """Load and validate the project configuration.

    Relative ``project_root``, ``output_root`` and ``upload_root`` values are
    resolved against the directory containing the config file.

    Args:
        path: Path to project config file (.json, .yaml, or .yml)

    Returns:
        Validated ProjectConfig instance

    Raises:
        ValidationError: If config is invalid

    Example:
        >>> config = load_project_config("bundlr.yaml")
        >>> config.platform_build_path
    """
    path = Path(path)
    raw_config = load_config(path)
    config = ProjectConfig.model_validate(raw_config)
    config = config.resolve_paths(path.resolve().parent)
    logger.debug(
        f"Loaded project config {path} ({len(config.manifests)} manifests, "
        f"platform={config.platform})"
    )
    return config
