"""Tests for the filesystem history repository."""

from __future__ import annotations

from pathlib import Path

import pytest

from bundlr.core.errors import RecordNotFoundError
from bundlr.core.history import FSHistoryRepository, parse_file_name, record_file_name
from bundlr.core.manifest import BuildRecord, VersionContainer


@pytest.fixture
def history(tmp_path: Path) -> FSHistoryRepository:
    return FSHistoryRepository(tmp_path / "~history")


def save(history: FSHistoryRepository, version: int, timestamp: int):
    history.save_container(VersionContainer(version_number=version, timestamp_epoch=timestamp))
    return history.save_record(BuildRecord(version_number=version, timestamp=timestamp))


class TestFileNames:
    def test_round_trip(self):
        assert record_file_name(3, 1000) == "build_record_v3_1000.json"
        assert parse_file_name("build_record_v3_1000.json") == ("build_record_v", 3, 1000)
        assert parse_file_name("version_v3_1000.json") == ("version_v", 3, 1000)

    def test_unrelated_names(self):
        assert parse_file_name("comments.json") is None
        assert parse_file_name("build_record_v3.json") is None


class TestRecords:
    """Tests for saving, listing and loading build records."""

    def test_empty_repository(self, history: FSHistoryRepository):
        assert history.list_records() == []
        assert history.latest_record() is None

    def test_lists_newest_first(self, history: FSHistoryRepository):
        save(history, 1, 1000)
        save(history, 2, 2000)
        save(history, 3, 3000)

        assert [r.version for r in history.list_records()] == [3, 2, 1]
        assert history.latest_record().version_number == 3
        assert history.latest_record(1).timestamp == 1000

    def test_load_record_resolves_newest_duplicate(self, history: FSHistoryRepository):
        save(history, 2, 1000)
        save(history, 2, 5000)

        assert history.load_record(2).timestamp == 5000

    def test_load_missing_version(self, history: FSHistoryRepository):
        save(history, 1, 1000)

        with pytest.raises(RecordNotFoundError) as exc_info:
            history.load_record(7)
        assert exc_info.value.version == 7
        assert str(exc_info.value) == "No build record for version 7"

    def test_corrupt_record_is_skipped_by_latest(self, history: FSHistoryRepository):
        save(history, 1, 1000)
        (history.root / record_file_name(2, 2000)).write_text("{oops")

        assert history.latest_record().version_number == 1


class TestPurge:
    """Tests for deleting stale history."""

    def test_keep_latest(self, history: FSHistoryRepository):
        for version in (1, 2, 3, 4):
            save(history, version, version * 1000)

        deleted = history.purge(keep_latest=2)

        assert sorted(r.version for r in deleted) == [1, 2]
        assert [r.version for r in history.list_records()] == [4, 3]
        assert not (history.root / "version_v1_1000.json").exists()
        assert (history.root / "version_v4_4000.json").exists()

    def test_by_version(self, history: FSHistoryRepository):
        save(history, 1, 1000)
        save(history, 2, 2000)
        save(history, 2, 2500)

        history.purge(versions=[2])

        assert [r.version for r in history.list_records()] == [1]

    def test_negative_keep_rejected(self, history: FSHistoryRepository):
        with pytest.raises(ValueError):
            history.purge(keep_latest=-1)

    def test_purge_drops_comments(self, history: FSHistoryRepository):
        ref = save(history, 1, 1000)
        save(history, 2, 2000)
        history.set_comment(ref, "release candidate")

        history.purge(keep_latest=1)

        assert history.comments() == {}


class TestRenameAndComments:
    def test_rename_version_moves_files_and_comment(self, history: FSHistoryRepository):
        ref = save(history, 3, 1000)
        history.set_comment(ref, "hotfix")

        assert history.rename_version(3, 10, 1000)

        assert history.load_record(10).version_number == 10
        assert not (history.root / "build_record_v3_1000.json").exists()
        assert (history.root / "version_v10_1000.json").exists()
        assert history.comments() == {"build_record_v10_1000.json": "hotfix"}

    def test_rename_same_version_keeps_record(self, history: FSHistoryRepository):
        save(history, 3, 1000)
        assert history.rename_version(3, 3, 1000)
        assert history.load_record(3).version_number == 3

    def test_rename_missing_record(self, history: FSHistoryRepository):
        assert history.rename_version(1, 2, 999) is False

    def test_empty_comment_clears(self, history: FSHistoryRepository):
        ref = save(history, 1, 1000)
        history.set_comment(ref, "note")
        history.set_comment(ref, "")

        assert history.comments() == {}
