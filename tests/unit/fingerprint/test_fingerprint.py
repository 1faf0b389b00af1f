"""Tests for content hashing and naming helpers."""

from __future__ import annotations

import hashlib
from pathlib import Path

from bundlr.core.fingerprint import (
    compute_bytes_hash,
    compute_file_hash,
    compute_string_hash,
    format_bytes,
    raw_hash_from_build_name,
    sanitize_bundle_name,
)


class TestHashing:
    """Tests for MD5 helpers."""

    def test_file_hash_matches_md5(self, tmp_path: Path):
        path = tmp_path / "a.bin"
        path.write_bytes(b"hello world")

        assert compute_file_hash(path) == hashlib.md5(b"hello world").hexdigest()

    def test_missing_file_hashes_to_empty_string(self, tmp_path: Path):
        assert compute_file_hash(tmp_path / "missing.bin") == ""

    def test_directory_hashes_to_empty_string(self, tmp_path: Path):
        assert compute_file_hash(tmp_path) == ""

    def test_bytes_and_string_hash_agree(self):
        assert compute_string_hash("abc") == compute_bytes_hash(b"abc")
        assert len(compute_string_hash("abc")) == 32

    def test_same_content_same_hash(self, tmp_path: Path):
        (tmp_path / "x").write_text("same")
        (tmp_path / "y").write_text("same")

        assert compute_file_hash(tmp_path / "x") == compute_file_hash(tmp_path / "y")


class TestSanitizeBundleName:
    """Tests for bundle name normalization."""

    def test_replaces_separators_and_lowercases(self):
        assert sanitize_bundle_name("Assets/UI/Main Menu.prefab") == "assets_ui_main_menu_prefab"

    def test_backslashes_become_underscores(self):
        assert sanitize_bundle_name("Assets\\Shared\\Tex-01.png") == "assets_shared_tex_01_png"

    def test_is_idempotent(self):
        once = sanitize_bundle_name("Assets/UI")
        assert sanitize_bundle_name(once) == once


class TestRawHashFromBuildName:
    """Tests for extracting the hash from raw build names."""

    def test_hash_only_name(self):
        assert raw_hash_from_build_name("0cc175b9c0f1b6a831c399e269772661.json") == (
            "0cc175b9c0f1b6a831c399e269772661"
        )

    def test_named_file(self):
        name = "assets_config_items_0cc175b9c0f1b6a831c399e269772661.json"
        assert raw_hash_from_build_name(name) == "0cc175b9c0f1b6a831c399e269772661"


class TestFormatBytes:
    def test_small_values_in_bytes(self):
        assert format_bytes(512) == "512 B"

    def test_kilobytes(self):
        assert format_bytes(1536) == "1.50 KB"

    def test_negative_deltas(self):
        assert format_bytes(-2048) == "-2.00 KB"
