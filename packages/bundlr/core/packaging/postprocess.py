"""Artifact post-processors."""

from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path

from bundlr.core.config.models import PostProcessConfig
from bundlr.core.packaging.protocols import PostProcessor

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 10000
_KEY_LENGTH = 32


def _replace_bytes(path: Path, data: bytes) -> None:
    tmp_path = path.with_name(f"{path.name}.tmp")
    tmp_path.write_bytes(data)
    os.replace(tmp_path, path)


class NullPostProcessor:
    """Leaves artifacts untouched."""

    def process(self, path: Path, bundle_name: str) -> None:
        return None


class OffsetPostProcessor:
    """Prefixes artifacts with a fixed number of zero bytes."""

    def __init__(self, offset: int) -> None:
        if offset < 0:
            raise ValueError(f"offset must be >= 0, got {offset}")
        self.offset = offset

    def process(self, path: Path, bundle_name: str) -> None:
        if self.offset == 0:
            return
        _replace_bytes(path, bytes(self.offset) + path.read_bytes())


class XorPostProcessor:
    """XORs artifacts with a keystream derived from a passphrase.

    The key is derived per bundle with PBKDF2-HMAC-SHA256, salted by the
    bundle name. Applying the processor twice restores the original bytes.
    """

    def __init__(self, key: str, iterations: int = PBKDF2_ITERATIONS) -> None:
        if not key:
            raise ValueError("key must not be empty")
        self._key = key.encode("utf-8")
        self.iterations = iterations

    def keystream(self, bundle_name: str, length: int) -> bytes:
        derived = hashlib.pbkdf2_hmac(
            "sha256", self._key, bundle_name.encode("utf-8"), self.iterations, _KEY_LENGTH
        )
        repeats = -(-length // _KEY_LENGTH)
        return (derived * repeats)[:length]

    def apply(self, data: bytes, bundle_name: str) -> bytes:
        if not data:
            return data
        stream = self.keystream(bundle_name, len(data))
        mixed = int.from_bytes(data, "big") ^ int.from_bytes(stream, "big")
        return mixed.to_bytes(len(data), "big")

    def process(self, path: Path, bundle_name: str) -> None:
        _replace_bytes(path, self.apply(path.read_bytes(), bundle_name))


def create_post_processor(config: PostProcessConfig) -> PostProcessor:
    """Build the post-processor selected by configuration."""
    if config.mode == "xor":
        return XorPostProcessor(config.key)
    if config.mode == "offset" and config.offset > 0:
        return OffsetPostProcessor(config.offset)
    return NullPostProcessor()
