"""Tests for persisted manifest, container and record models."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError
import pytest

from bundlr.core.manifest import (
    Bundle,
    BuildRecord,
    Manifest,
    RecordBundle,
    RecordManifest,
    VersionContainer,
    VersionEntry,
    load_model,
    save_model,
    try_load_model,
)


class TestSerialization:
    """Tests for camelCase persistence."""

    def test_dumps_camel_case_keys(self):
        manifest = Manifest(
            manifest_name="base",
            bundles=[Bundle(id=0, name="ui", final_name_with_hash="abc.bundle")],
        )
        data = json.loads(manifest.to_json())

        assert data["manifestName"] == "base"
        assert data["bundles"][0]["finalNameWithHash"] == "abc.bundle"
        assert data["bundles"][0]["isRawFile"] is False

    def test_reads_camel_and_snake_case(self):
        camel = VersionEntry.model_validate(
            {"manifestName": "base", "fileName": "a.json", "hash": "a", "sizeBytes": 3}
        )
        snake = VersionEntry.model_validate(
            {"manifest_name": "base", "file_name": "a.json", "hash": "a", "size_bytes": 3}
        )
        assert camel == snake

    def test_unknown_keys_are_ignored(self):
        entry = VersionEntry.model_validate(
            {"manifestName": "b", "fileName": "f", "hash": "h", "sizeBytes": 0, "extra": 1}
        )
        assert entry.file_name == "f"


class TestBundle:
    def test_self_dependency_rejected(self):
        with pytest.raises(ValidationError, match="itself"):
            Bundle(id=1, name="ui", dependency_ids=[1])

    def test_bundle_map(self):
        manifest = Manifest(manifest_name="m", bundles=[Bundle(id=0, name="a")])
        assert manifest.bundle_map()["a"].id == 0


class TestVersionContainer:
    def test_upsert_replaces_in_place(self):
        container = VersionContainer(
            entries=[
                VersionEntry(manifest_name="a", file_name="a1", hash="1", size_bytes=1),
                VersionEntry(manifest_name="b", file_name="b1", hash="1", size_bytes=1),
            ]
        )
        container.upsert(VersionEntry(manifest_name="a", file_name="a2", hash="2", size_bytes=2))
        container.upsert(VersionEntry(manifest_name="c", file_name="c1", hash="1", size_bytes=1))

        assert [e.file_name for e in container.entries] == ["a2", "b1", "c1"]
        assert container.get_entry("missing") is None


class TestBuildRecord:
    def test_iter_bundles_spans_manifests(self):
        record = BuildRecord(
            version_number=1,
            timestamp=10,
            per_manifest=[
                RecordManifest(name="a", bundles=[RecordBundle(group="g", name="x")]),
                RecordManifest(name="b", bundles=[RecordBundle(group="g", name="y")]),
            ],
        )
        assert [b.name for b in record.iter_bundles()] == ["x", "y"]

    def test_records_are_frozen(self):
        record = BuildRecord(version_number=1, timestamp=10)
        with pytest.raises(ValidationError):
            record.version_number = 2

    def test_missing_assets_stay_none(self):
        bundle = RecordBundle.model_validate({"group": "g", "name": "x", "hash": "h"})
        assert bundle.assets is None


class TestModelIO:
    """Tests for atomic save and tolerant load."""

    def test_save_and_load(self, tmp_path: Path):
        path = tmp_path / "nested" / "version.json"
        container = VersionContainer(version_number=3, timestamp_epoch=42)

        save_model(path, container)

        assert load_model(path, VersionContainer) == container
        assert "versionNumber" in path.read_text(encoding="utf-8")
        assert not (tmp_path / "nested" / ".version.json.tmp").exists()

    def test_try_load_missing_returns_none(self, tmp_path: Path):
        assert try_load_model(tmp_path / "none.json", VersionContainer) is None

    def test_try_load_corrupt_returns_none(self, tmp_path: Path):
        path = tmp_path / "version.json"
        path.write_text("{broken", encoding="utf-8")
        assert try_load_model(path, VersionContainer) is None
