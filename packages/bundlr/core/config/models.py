"""Configuration models for bundlr."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class BundleMode(str, Enum):
    """How the files selected by a group are assigned to bundles."""

    INDIVIDUAL = "individual"
    BY_FOLDER = "by_folder"
    WHOLE_GROUP = "whole_group"
    RAW_PASSTHROUGH = "raw_passthrough"
    MATCHED_FOLDER = "matched_folder"


class GroupConfig(BaseModel):
    """A declarative source selector inside a manifest.

    Example:
        >>> GroupConfig(name="ui", mode=BundleMode.BY_FOLDER, target="Assets/UI", filter="*.prefab")
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, description="Group label recorded in build records")
    enabled: bool = Field(default=True, description="Disabled groups are skipped")
    mode: BundleMode = Field(default=BundleMode.INDIVIDUAL, description="Bundling mode")
    target: str = Field(
        default="", description="Project-relative file or folder selected by this group"
    )
    filter: str = Field(
        default="", description="fnmatch pattern applied to file names (empty = all files)"
    )
    bundle_file_name: str = Field(
        default="", description="Bundle name used by whole_group mode"
    )
    handle_dependencies: bool = Field(
        default=True,
        description="Include assets in dependency analysis (ignored for raw_passthrough)",
    )
    is_external_path: bool = Field(
        default=False, description="Raw group reads from a folder outside the project tree"
    )
    external_path: str = Field(
        default="", description="External file or folder (relative to the project root)"
    )
    search_pattern: str = Field(
        default="",
        description=(
            "File pattern for external raw folders, "
            "folder pattern for matched_folder mode"
        ),
    )
    placement_folder: str = Field(
        default="", description="Sub-folder of the build output for external raw files"
    )
    platforms: list[str] = Field(
        default_factory=list,
        description="raw_passthrough platform allow-list (empty = every platform)",
    )
    parent_folder_depth: int = Field(
        default=0, ge=0, description="Levels to ascend from each matched folder"
    )

    @property
    def is_raw(self) -> bool:
        return self.mode == BundleMode.RAW_PASSTHROUGH

    @property
    def needs_dependency_analysis(self) -> bool:
        return self.handle_dependencies and not self.is_raw


class CompileOptions(BaseModel):
    """Options forwarded to the bundle compiler."""

    compression: str = Field(
        default="deflate", pattern="^(deflate|store)$", description="Archive compression"
    )
    extra: dict[str, Any] = Field(
        default_factory=dict, description="Compiler-specific options passed through as-is"
    )


class ManifestConfig(BaseModel):
    """One release group: an ordered list of groups packaged into one manifest."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, description="Manifest name")
    groups: list[GroupConfig] = Field(default_factory=list)
    compile_options: CompileOptions = Field(default_factory=CompileOptions)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        if any(ch in v for ch in "/\\") or v.startswith("."):
            raise ValueError(f"manifest name must be a plain file name component: {v!r}")
        return v


class PostProcessConfig(BaseModel):
    """Artifact post-processing applied to freshly built bundles."""

    mode: str = Field(default="none", pattern="^(none|offset|xor)$")
    offset: int = Field(default=0, ge=0, description="Zero-byte prefix length (offset mode)")
    key: str = Field(default="", description="Passphrase for xor mode")

    @model_validator(mode="after")
    def _validate_mode(self) -> Self:
        if self.mode == "xor" and not self.key:
            raise ValueError("post_process.key is required when mode is 'xor'")
        return self


class DependencyConfig(BaseModel):
    """Dependency analysis settings."""

    excluded_suffixes: list[str] = Field(
        default_factory=lambda: [
            ".cs",
            ".dll",
            ".spriteatlas",
            ".giparams",
            "LightingData.asset",
            ".playable",
        ],
        description="Dependencies ending with any of these are never auto-grouped",
    )
    editor_folder_marker: str = Field(
        default="/editor/",
        description="Case-insensitive path fragment marking editor-only assets",
    )
    dependency_map: str | None = Field(
        default=None, description="JSON/YAML file mapping a path to its direct dependencies"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = False
    filename: str | None = None


class ProjectConfig(BaseModel):
    """Top-level project configuration.

    Passed explicitly to the grouping engine, packager and lineage manager.
    Relative paths are resolved by ``load_project_config`` against the
    directory holding the config file.
    """

    model_config = ConfigDict(extra="ignore")

    project_root: Path = Field(default=Path("."), description="Root of the asset tree")
    output_root: Path = Field(default=Path("build"), description="Packaging output root")
    upload_root: Path = Field(default=Path("upload"), description="Ready-to-upload root")
    platform: str = Field(default="default", min_length=1, description="Active build platform")
    hash_only_names: bool = Field(
        default=True,
        description="Publish artifacts as '{hash}{ext}' instead of '{name}_{hash}{ext}'",
    )
    artifact_extension: str = Field(default=".bundle", description="Compiled artifact extension")
    history_folder_name: str = Field(
        default="~history", description="Reserved history folder inside the platform build path"
    )
    version_file_name: str = Field(default="version.json", description="Current container file")
    scene_extensions: list[str] = Field(default_factory=lambda: [".unity", ".scene"])
    ignored_suffixes: list[str] = Field(default_factory=lambda: [".meta"])
    record_asset_hashes: bool = Field(
        default=True, description="Store per-asset hashes for new or changed bundles"
    )
    post_process: PostProcessConfig = Field(default_factory=PostProcessConfig)
    dependencies: DependencyConfig = Field(default_factory=DependencyConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    manifests: list[ManifestConfig] = Field(default_factory=list)

    @field_validator("artifact_extension")
    @classmethod
    def _normalize_extension(cls, v: str) -> str:
        if not v:
            raise ValueError("artifact_extension must not be empty")
        if not v.startswith("."):
            return f".{v}"
        return v

    @model_validator(mode="after")
    def _validate_manifests(self) -> Self:
        seen: set[str] = set()
        for manifest in self.manifests:
            if manifest.name in seen:
                raise ValueError(f"duplicate manifest name: {manifest.name}")
            seen.add(manifest.name)
        return self

    @property
    def platform_build_path(self) -> Path:
        return self.output_root / self.platform

    @property
    def platform_upload_path(self) -> Path:
        return self.upload_root / self.platform

    @property
    def history_path(self) -> Path:
        return self.platform_build_path / self.history_folder_name

    @property
    def version_file_path(self) -> Path:
        return self.platform_build_path / self.version_file_name

    @property
    def manifest_names(self) -> list[str]:
        return [m.name for m in self.manifests]

    def numbered_version_file_name(self, version: int) -> str:
        """File name of the numbered container copy, e.g. ``version_v3.json``."""
        base = Path(self.version_file_name)
        return f"{base.stem}_v{version}{base.suffix}"

    def get_manifest(self, name: str) -> ManifestConfig:
        """Look up a manifest config by name.

        Raises:
            KeyError: If no manifest has that name
        """
        for manifest in self.manifests:
            if manifest.name == name:
                return manifest
        raise KeyError(f"Unknown manifest: {name}")

    def resolve_paths(self, base_dir: Path) -> ProjectConfig:
        """Return a copy with relative root paths anchored at base_dir."""
        updates: dict[str, Path] = {}
        for field_name in ("project_root", "output_root", "upload_root"):
            value: Path = getattr(self, field_name)
            if not value.is_absolute():
                updates[field_name] = (base_dir / value).resolve()
        return self.model_copy(update=updates)
