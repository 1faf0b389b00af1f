"""Tests for bundle naming and group validation."""

from __future__ import annotations

import pytest

from bundlr.core.config.models import BundleMode, GroupConfig, ProjectConfig
from bundlr.core.grouping.naming import bundle_name_for, is_scene, validate_group


class TestBundleNameFor:
    """Tests for per-mode bundle names."""

    def test_individual_uses_full_path(self):
        assert bundle_name_for("Assets/UI/A.prefab", BundleMode.INDIVIDUAL) == "assets_ui_a_prefab"

    def test_by_folder_uses_parent_folder(self):
        assert bundle_name_for("Assets/UI/A.prefab", BundleMode.BY_FOLDER) == "assets_ui"

    def test_by_folder_top_level_file(self):
        assert bundle_name_for("readme.txt", BundleMode.BY_FOLDER) == "root"

    def test_whole_group_uses_configured_name(self):
        name = bundle_name_for("Assets/UI/A.prefab", BundleMode.WHOLE_GROUP, "All UI")
        assert name == "all_ui"

    def test_scenes_are_always_individual(self):
        name = bundle_name_for("Assets/Levels/Main.unity", BundleMode.WHOLE_GROUP, "everything")
        assert name == "assets_levels_main_unity"

    def test_raw_hash_only_keeps_extension(self):
        name = bundle_name_for(
            "Assets/Config/Items.JSON", BundleMode.RAW_PASSTHROUGH, content_hash="ABC123"
        )
        assert name == "abc123.JSON"

    def test_raw_named(self):
        name = bundle_name_for(
            "Assets/Config/items.json",
            BundleMode.RAW_PASSTHROUGH,
            hash_only=False,
            content_hash="abc123",
        )
        assert name == "assets_config_items_abc123.json"

    def test_raw_requires_hash(self):
        with pytest.raises(ValueError, match="content_hash"):
            bundle_name_for("a.json", BundleMode.RAW_PASSTHROUGH)


def test_is_scene_is_case_insensitive():
    assert is_scene("Assets/Main.UNITY", [".unity"])
    assert not is_scene("Assets/Main.prefab", [".unity"])


class TestValidateGroup:
    """Tests for group configuration checks."""

    @pytest.fixture
    def project(self, project_dir) -> ProjectConfig:
        return ProjectConfig(project_root=project_dir)

    def test_valid_group(self, project: ProjectConfig):
        group = GroupConfig(name="ui", target="Assets/UI")
        assert validate_group(group, project) is None

    def test_missing_target(self, project: ProjectConfig):
        assert validate_group(GroupConfig(name="ui"), project) == "target is not set"

    def test_nonexistent_target(self, project: ProjectConfig):
        message = validate_group(GroupConfig(name="ui", target="Assets/Nope"), project)
        assert message == "target does not exist: Assets/Nope"

    def test_whole_group_needs_bundle_name(self, project: ProjectConfig):
        group = GroupConfig(name="all", mode=BundleMode.WHOLE_GROUP, target="Assets")
        assert "bundle_file_name" in validate_group(group, project)

    def test_matched_folder_needs_pattern(self, project: ProjectConfig):
        group = GroupConfig(name="m", mode=BundleMode.MATCHED_FOLDER, target="Assets")
        assert "search_pattern" in validate_group(group, project)

    def test_external_placement_cannot_use_history_folder(self, project: ProjectConfig):
        group = GroupConfig(
            name="ext",
            mode=BundleMode.RAW_PASSTHROUGH,
            is_external_path=True,
            external_path="Assets/Config",
            placement_folder="~History/data",
        )
        assert "history folder" in validate_group(group, project)

    def test_external_path_must_exist(self, project: ProjectConfig):
        group = GroupConfig(
            name="ext",
            mode=BundleMode.RAW_PASSTHROUGH,
            is_external_path=True,
            external_path="Nowhere",
        )
        assert validate_group(group, project) == "external path does not exist: Nowhere"
