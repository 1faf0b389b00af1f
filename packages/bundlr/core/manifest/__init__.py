"""Persisted manifest, version and build-record models."""

from bundlr.core.manifest.io import load_model, save_model, try_load_model
from bundlr.core.manifest.models import (
    AUTO_GROUP_LABEL,
    BuildRecord,
    Bundle,
    Manifest,
    PersistedModel,
    RecordAsset,
    RecordBundle,
    RecordManifest,
    VersionContainer,
    VersionEntry,
    VersionFileInfo,
)

__all__ = [
    "AUTO_GROUP_LABEL",
    "BuildRecord",
    "Bundle",
    "Manifest",
    "PersistedModel",
    "RecordAsset",
    "RecordBundle",
    "RecordManifest",
    "VersionContainer",
    "VersionEntry",
    "VersionFileInfo",
    # IO
    "load_model",
    "save_model",
    "try_load_model",
]
