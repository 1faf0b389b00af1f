"""Build history storage (flat numbered files)."""

from bundlr.core.history.fs import (
    FSHistoryRepository,
    container_file_name,
    parse_file_name,
    record_file_name,
)
from bundlr.core.history.protocols import HistoryRepository, RecordRef

__all__ = [
    "FSHistoryRepository",
    "HistoryRepository",
    "RecordRef",
    "container_file_name",
    "parse_file_name",
    "record_file_name",
]
