"""Interfaces the organize engine consumes."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol

from cadence.core.models import FileResult, MetadataRecord, OrganizeResult


class MetadataProvider(Protocol):
    """Reads a metadata snapshot for a source file.

    Returns None when the file is missing or cannot be parsed; never raises
    for a missing file.
    """

    def read_metadata(self, path: Path) -> Optional[MetadataRecord]:
        ...


class StorageTarget(Protocol):
    """Destination storage borrowed by the engine for one batch.

    Primitives raise OSError (or IOFailure) when they fail.
    """

    def local_root(self) -> Optional[Path]:
        ...

    def capacity_bytes(self) -> int:
        ...

    def free_bytes(self) -> int:
        ...

    def copy_file(self, src: Path, dst: Path) -> None:
        ...

    def move_file(self, src: Path, dst: Path) -> None:
        ...

    def eject(self) -> None:
        ...


class TaskReporter(Protocol):
    """Receives batch progress; may be invoked from a worker thread."""

    def on_progress(self, processed: int, total: int, outcome: FileResult) -> None:
        ...

    def on_complete(self, result: OrganizeResult) -> None:
        ...
