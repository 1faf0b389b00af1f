"""Persisted file formats: manifests, version containers and build records.

All models serialize with camelCase keys and read either camelCase or
snake_case input.
"""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Group label of bundles no configured group owns (synthesized dependency bundles)
AUTO_GROUP_LABEL = "auto-grouped"


class PersistedModel(BaseModel):
    """Base class for on-disk models."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_json(self) -> str:
        """Serialize with camelCase keys (stable key order, 2-space indent)."""
        return self.model_dump_json(by_alias=True, indent=2)


class Bundle(PersistedModel):
    """One packaged artifact (compiled bundle or raw file) inside a manifest."""

    id: int = Field(ge=0, description="Sequential id, stable only within one manifest")
    name: str = Field(description="Logical bundle name")
    is_raw_file: bool = Field(default=False)
    source_paths: list[str] = Field(default_factory=list)
    size_bytes: int = Field(default=0, ge=0)
    hash: str = Field(default="", description="MD5 of the shipped bytes")
    final_name_with_hash: str = Field(
        default="", description="Artifact path relative to the platform build root"
    )
    dependency_ids: list[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def _reject_self_dependency(self) -> Self:
        if self.id in self.dependency_ids:
            raise ValueError(f"bundle {self.name!r} lists itself as a dependency")
        return self


class Manifest(PersistedModel):
    """Every bundle produced for one manifest config."""

    manifest_name: str
    bundles: list[Bundle] = Field(default_factory=list)

    def bundle_map(self) -> dict[str, Bundle]:
        """Bundles keyed by logical name."""
        return {b.name: b for b in self.bundles}


class VersionEntry(PersistedModel):
    """Points a manifest name at its currently published manifest file."""

    manifest_name: str
    file_name: str
    hash: str
    size_bytes: int = Field(ge=0)


class VersionContainer(PersistedModel):
    """The current version and published manifest file for every manifest."""

    version_number: int = Field(default=0, ge=0)
    timestamp_epoch: int = Field(default=0, ge=0, description="Milliseconds since the epoch")
    entries: list[VersionEntry] = Field(default_factory=list)

    def get_entry(self, manifest_name: str) -> VersionEntry | None:
        for entry in self.entries:
            if entry.manifest_name == manifest_name:
                return entry
        return None

    def upsert(self, entry: VersionEntry) -> None:
        """Replace the entry for entry.manifest_name, or append it."""
        for index, existing in enumerate(self.entries):
            if existing.manifest_name == entry.manifest_name:
                self.entries[index] = entry
                return
        self.entries.append(entry)


class RecordAsset(PersistedModel):
    model_config = ConfigDict(frozen=True)

    path: str
    size: int = 0
    hash: str = ""


class RecordBundle(PersistedModel):
    """Build-record view of a bundle.

    ``assets`` is None when per-asset hashes were not collected.
    """

    model_config = ConfigDict(frozen=True)

    group: str
    name: str
    size: int = 0
    hash: str = ""
    is_raw_file: bool = False
    assets: list[RecordAsset] | None = None


class RecordManifest(PersistedModel):
    model_config = ConfigDict(frozen=True)

    name: str
    bundles: list[RecordBundle] = Field(default_factory=list)


class VersionFileInfo(PersistedModel):
    """Hash and size of the version file or of one manifest file."""

    model_config = ConfigDict(frozen=True)

    name: str
    hash: str
    size: int = 0


class BuildRecord(PersistedModel):
    """Immutable history snapshot written once per publish."""

    model_config = ConfigDict(frozen=True)

    version_number: int = Field(ge=0)
    timestamp: int = Field(ge=0, description="Milliseconds since the epoch")
    version_file_infos: list[VersionFileInfo] = Field(default_factory=list)
    per_manifest: list[RecordManifest] = Field(default_factory=list)

    def iter_bundles(self):
        """Yield every record bundle across all manifests, in file order."""
        for manifest in self.per_manifest:
            yield from manifest.bundles
