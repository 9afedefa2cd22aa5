"""In-memory stand-ins for engine collaborators."""

from __future__ import annotations

from pathlib import Path
import threading
from typing import Callable, Optional

from cadence.core.models import FileResult, MetadataRecord, OrganizeResult
from cadence.infrastructure.storage import LocalStorageTarget


class StaticMetadataProvider:
    """Serves records from a mapping; unknown paths are unreadable."""

    def __init__(self, records: dict[Path, MetadataRecord]) -> None:
        self.records = dict(records)
        self.calls: list[Path] = []

    def read_metadata(self, path: Path) -> Optional[MetadataRecord]:
        self.calls.append(path)
        return self.records.get(path)


class RecordingReporter:
    """Captures notifications; optionally runs a hook on each progress event."""

    def __init__(self, on_progress_hook: Optional[Callable[[int], None]] = None) -> None:
        self.progress: list[tuple[int, int, FileResult]] = []
        self.completed: list[OrganizeResult] = []
        self.threads: set[str] = set()
        self.on_progress_hook = on_progress_hook

    def on_progress(self, processed: int, total: int, outcome: FileResult) -> None:
        self.threads.add(threading.current_thread().name)
        self.progress.append((processed, total, outcome))
        if self.on_progress_hook is not None:
            self.on_progress_hook(processed)

    def on_complete(self, result: OrganizeResult) -> None:
        self.threads.add(threading.current_thread().name)
        self.completed.append(result)


class MemoryStorageTarget:
    """Non-local target (no root); writes are recorded, not performed."""

    def __init__(self, capacity: int = 0, free: int = 0) -> None:
        self.capacity = capacity
        self.free = free
        self.copied: list[tuple[Path, Path]] = []
        self.moved: list[tuple[Path, Path]] = []
        self.ejected = False

    def local_root(self) -> Optional[Path]:
        return None

    def capacity_bytes(self) -> int:
        return self.capacity

    def free_bytes(self) -> int:
        return self.free

    def copy_file(self, src: Path, dst: Path) -> None:
        self.copied.append((src, dst))

    def move_file(self, src: Path, dst: Path) -> None:
        self.moved.append((src, dst))

    def eject(self) -> None:
        self.ejected = True


class FlakyStorageTarget(LocalStorageTarget):
    """Local target with injectable failures."""

    def __init__(
        self,
        root: Path,
        *,
        fail_sources: tuple[str, ...] = (),
        keep_sources: bool = False,
        eject_error: Optional[Exception] = None,
        free_error: Optional[Exception] = None,
        **kwargs,
    ) -> None:
        super().__init__(root, **kwargs)
        self.fail_sources = set(fail_sources)
        self.keep_sources = keep_sources
        self.eject_error = eject_error
        self.free_error = free_error
        self.eject_calls = 0

    def free_bytes(self) -> int:
        if self.free_error is not None:
            raise self.free_error
        return super().free_bytes()

    def copy_file(self, src: Path, dst: Path) -> None:
        if src.name in self.fail_sources:
            raise PermissionError(f"Permission denied: {dst}")
        super().copy_file(src, dst)

    def _remove_source(self, src: Path) -> None:
        if self.keep_sources:
            raise PermissionError(f"Operation not permitted: {src}")
        super()._remove_source(src)

    def eject(self) -> None:
        self.eject_calls += 1
        if self.eject_error is not None:
            raise self.eject_error
