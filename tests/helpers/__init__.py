"""Test helper utilities."""

from .fakes import (
    FlakyStorageTarget,
    MemoryStorageTarget,
    RecordingReporter,
    StaticMetadataProvider,
)
from .fs import AudioStubSpec, build_source_dir, create_audio_stub, tree_snapshot

__all__ = [
    "AudioStubSpec",
    "FlakyStorageTarget",
    "MemoryStorageTarget",
    "RecordingReporter",
    "StaticMetadataProvider",
    "build_source_dir",
    "create_audio_stub",
    "tree_snapshot",
]
