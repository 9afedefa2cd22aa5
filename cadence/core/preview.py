"""Destination previews and start checks for organize requests."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Sequence

from cadence.core.format import FormatTemplate
from cadence.core.ports import MetadataProvider, StorageTarget

PREVIEW_LIMIT = 10


def preview_paths(
    template: FormatTemplate,
    files: Iterable[Path],
    metadata_provider: MetadataProvider,
    target: StorageTarget,
    *,
    limit: int = PREVIEW_LIMIT,
) -> list[Path]:
    """Destination paths for the first readable files.

    Empty when the template is invalid or the target has no local root.
    """
    root = target.local_root()
    if root is None or not template.is_valid():
        return []
    previews: list[Path] = []
    for path in files:
        if len(previews) >= limit:
            break
        record = metadata_provider.read_metadata(path)
        if record is None:
            continue
        previews.append(root / template.instantiate(record))
    return previews


def can_start(
    template: FormatTemplate,
    target: Optional[StorageTarget],
    files: Sequence[Path],
    total_bytes: int,
) -> bool:
    """Whether a batch may be started with these inputs."""
    if target is None or not files or not template.is_valid():
        return False
    if target.capacity_bytes() and total_bytes > target.free_bytes():
        return False
    return True
