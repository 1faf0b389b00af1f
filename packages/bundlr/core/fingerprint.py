"""Content hashing and deterministic naming helpers.

Every persisted hash in bundlr is an MD5 hex digest. Hashes are used as
cache keys and as part of published file names, never for security.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

_CHUNK_SIZE = 1024 * 1024
_NAME_REPLACEMENTS = ("/", ".", "-", " ")


def compute_file_hash(path: str | Path) -> str:
    """Compute the MD5 hex digest of a file's bytes.

    Args:
        path: File to hash

    Returns:
        32-char lowercase hex digest, or "" if the file does not exist

    Example:
        >>> compute_file_hash("missing.bin")
        ''
    """
    path = Path(path)
    if not path.is_file():
        return ""

    digest = hashlib.md5()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def compute_bytes_hash(data: bytes) -> str:
    """Compute the MD5 hex digest of raw bytes."""
    return hashlib.md5(data).hexdigest()


def compute_string_hash(text: str) -> str:
    """Compute the MD5 hex digest of UTF-8 encoded text."""
    return compute_bytes_hash(text.encode("utf-8"))


def sanitize_bundle_name(name: str) -> str:
    """Normalize a path-like name into a bundle name.

    Lower-cases the name, converts backslashes to forward slashes, then
    replaces slashes, dots, dashes and spaces with underscores.

    Example:
        >>> sanitize_bundle_name("Assets/UI/Main Menu.prefab")
        'assets_ui_main_menu_prefab'
    """
    result = name.lower().replace("\\", "/")
    for token in _NAME_REPLACEMENTS:
        result = result.replace(token, "_")
    return result


def raw_hash_from_build_name(build_name: str) -> str:
    """Extract the content hash embedded in a raw build file name.

    Raw file names are either ``{hash}{ext}`` or ``{name}_{hash}{ext}``.

    Example:
        >>> raw_hash_from_build_name("assets_cfg_items_0cc175b9c0f1b6a831c399e269772661.json")
        '0cc175b9c0f1b6a831c399e269772661'
    """
    stem = Path(build_name).stem
    _, sep, tail = stem.rpartition("_")
    return tail if sep else stem


def format_bytes(size: int | float) -> str:
    """Render a byte count for log lines (e.g. ``1.50 MB``)."""
    value = float(size)
    sign = "-" if value < 0 else ""
    value = abs(value)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            if unit == "B":
                return f"{sign}{int(value)} B"
            return f"{sign}{value:.2f} {unit}"
        value /= 1024
    return f"{sign}{value:.2f} GB"
