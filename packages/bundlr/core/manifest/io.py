"""Read and write persisted models."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def load_model(path: str | Path, model_cls: type[T]) -> T:
    """Load and validate a persisted model.

    Raises:
        FileNotFoundError: If the file does not exist
        ValidationError: If the content does not match model_cls
    """
    return model_cls.model_validate_json(Path(path).read_text(encoding="utf-8"))


def try_load_model(path: str | Path, model_cls: type[T]) -> T | None:
    """Load a persisted model, returning None if it is missing or corrupt."""
    path = Path(path)
    if not path.is_file():
        return None
    try:
        return load_model(path, model_cls)
    except (ValidationError, ValueError) as e:
        logger.warning(f"Ignoring unreadable {model_cls.__name__} file {path}: {e}")
        return None


def save_model(path: str | Path, model: BaseModel) -> Path:
    """Write a model as camelCase JSON, atomically replacing the target.

    Returns:
        The written path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    tmp_path.write_text(model.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
    os.replace(tmp_path, path)
    return path
