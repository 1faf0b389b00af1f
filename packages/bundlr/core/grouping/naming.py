"""Pure bundle naming and group validation."""

from __future__ import annotations

from collections.abc import Iterable
import posixpath

from bundlr.core.config.models import BundleMode, GroupConfig, ProjectConfig
from bundlr.core.fingerprint import sanitize_bundle_name

ROOT_FOLDER_NAME = "root"


def is_scene(path: str, scene_extensions: Iterable[str]) -> bool:
    lower = path.lower()
    return any(lower.endswith(ext.lower()) for ext in scene_extensions)


def bundle_name_for(
    path: str,
    mode: BundleMode,
    bundle_file_name: str = "",
    *,
    hash_only: bool = True,
    content_hash: str | None = None,
    scene_extensions: Iterable[str] = (".unity", ".scene"),
) -> str:
    """Compute the target bundle name for a source path.

    Scenes are always bundled individually. Raw passthrough names embed the
    file's content hash and keep the original extension.

    Args:
        path: Project-relative POSIX source path
        mode: Bundling mode of the owning group
        bundle_file_name: Explicit name (whole_group) or folder path (matched_folder)
        hash_only: Raw names are the bare hash instead of ``{path}_{hash}``
        content_hash: Content hash of the file (required for raw_passthrough)
        scene_extensions: Extensions treated as scenes

    Returns:
        Sanitized bundle name

    Raises:
        ValueError: If mode is raw_passthrough and content_hash is missing

    Example:
        >>> bundle_name_for("Assets/UI/A.prefab", BundleMode.BY_FOLDER)
        'assets_ui'
    """
    if is_scene(path, scene_extensions):
        mode = BundleMode.INDIVIDUAL

    stem, ext = posixpath.splitext(path)

    if mode in (BundleMode.WHOLE_GROUP, BundleMode.MATCHED_FOLDER):
        name = bundle_file_name
    elif mode == BundleMode.INDIVIDUAL:
        name = path
    elif mode == BundleMode.BY_FOLDER:
        name = posixpath.dirname(path) or ROOT_FOLDER_NAME
    elif mode == BundleMode.RAW_PASSTHROUGH:
        if not content_hash:
            raise ValueError(f"content_hash is required for raw passthrough: {path}")
        name = content_hash if hash_only else f"{stem}_{content_hash}"
    else:
        raise ValueError(f"Unknown bundle mode: {mode}")

    name = sanitize_bundle_name(name)
    if mode == BundleMode.RAW_PASSTHROUGH:
        name += ext
    return name


def validate_group(group: GroupConfig, config: ProjectConfig) -> str | None:
    """Return a validation message for a misconfigured group, or None."""
    if group.mode == BundleMode.WHOLE_GROUP and not group.bundle_file_name:
        return "whole_group mode requires bundle_file_name"

    if group.mode == BundleMode.MATCHED_FOLDER and not group.search_pattern:
        return "matched_folder mode requires search_pattern"

    if group.is_raw and group.is_external_path:
        if not group.external_path:
            return "external path is not set"
        if not (config.project_root / group.external_path).exists():
            return f"external path does not exist: {group.external_path}"
        first_part = group.placement_folder.replace("\\", "/").strip("/").split("/")[0]
        if first_part and first_part.lower() == config.history_folder_name.lower():
            return (
                f"placement folder '{group.placement_folder}' collides with the reserved "
                f"history folder '{config.history_folder_name}'"
            )
        return None

    if not group.target:
        return "target is not set"
    if not (config.project_root / group.target).exists():
        return f"target does not exist: {group.target}"
    return None
