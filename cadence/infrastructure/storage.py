"""Filesystem-backed storage target."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from cadence.errors import IOFailure, MoveIncomplete

logger = logging.getLogger(__name__)


def _existing_ancestor(path: Path) -> Path:
    current = path
    while not current.exists():
        parent = current.parent
        if parent == current:
            break
        current = parent
    return current


class LocalStorageTarget:
    """Storage target rooted at a local directory.

    Moves are copy, verify, then delete; the source is never removed before
    the destination is complete.

    Args:
        root: Destination root directory (created on first write)
        eject_command: Command run with the root appended on eject,
            e.g. ``["udisksctl", "unmount", "-b"]``; None makes eject a no-op
        capacity: Override capacity in bytes (0 disables the space check)
        free: Override free space in bytes
    """

    def __init__(
        self,
        root: Path,
        *,
        eject_command: Optional[Sequence[str]] = None,
        capacity: Optional[int] = None,
        free: Optional[int] = None,
    ) -> None:
        self.root = root
        self.eject_command = tuple(eject_command) if eject_command else None
        self._capacity = capacity
        self._free = free

    def __repr__(self) -> str:
        return f"LocalStorageTarget({str(self.root)!r})"

    def local_root(self) -> Optional[Path]:
        return self.root

    def capacity_bytes(self) -> int:
        if self._capacity is not None:
            return self._capacity
        return shutil.disk_usage(_existing_ancestor(self.root)).total

    def free_bytes(self) -> int:
        if self._free is not None:
            return self._free
        return shutil.disk_usage(_existing_ancestor(self.root)).free

    def copy_file(self, src: Path, dst: Path) -> None:
        """Copy through a temporary sibling so a partial copy never sits at dst.

        The copy is size-checked before it replaces an existing destination.
        """
        dst.parent.mkdir(parents=True, exist_ok=True)
        temp = dst.with_name(dst.name + ".part")
        try:
            shutil.copy2(str(src), str(temp))
            if temp.stat().st_size != src.stat().st_size:
                raise IOFailure(f"Size mismatch after copying {src} to {dst}")
            os.replace(str(temp), str(dst))
        except (OSError, IOFailure):
            if temp.exists():
                temp.unlink()
            raise

    def move_file(self, src: Path, dst: Path) -> None:
        self.copy_file(src, dst)
        try:
            self._remove_source(src)
        except OSError as exc:
            logger.warning("Copied %s but could not remove source: %s", src, exc)
            raise MoveIncomplete(f"Could not remove source {src}: {exc}") from exc

    def _remove_source(self, src: Path) -> None:
        src.unlink()

    def eject(self) -> None:
        if not self.eject_command:
            logger.debug("No eject command configured for %s", self.root)
            return
        command = [*self.eject_command, str(self.root)]
        logger.info("Ejecting %s", self.root)
        try:
            subprocess.run(command, check=True, capture_output=True, text=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            detail = getattr(exc, "stderr", None) or str(exc)
            raise IOFailure(f"Eject failed for {self.root}: {detail.strip()}") from exc
