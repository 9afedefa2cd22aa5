"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from cadence.core.models import MetadataRecord


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Directory holding files to organize."""
    directory = tmp_path / "source"
    directory.mkdir()
    return directory


@pytest.fixture
def dest_dir(tmp_path: Path) -> Path:
    """Destination root (created lazily by the storage target)."""
    return tmp_path / "dest"


@pytest.fixture
def make_source(source_dir: Path):
    """Factory writing a source file with the given content."""
    def _make(name: str, content: bytes = b"audio") -> Path:
        path = source_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _make


@pytest.fixture
def record():
    """Factory for metadata records with sensible defaults."""
    def _record(**overrides) -> MetadataRecord:
        values = {
            "artist": "Artist",
            "album": "Album",
            "title": "Title",
            "extension": "mp3",
        }
        values.update(overrides)
        return MetadataRecord(**values)

    return _record
