"""Expand organize sources into a flat list of files."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Union
from urllib.parse import unquote, urlparse

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = frozenset(
    {".mp3", ".flac", ".m4a", ".mp4", ".ogg", ".opus", ".wav", ".wma", ".aac"}
)


@dataclass(frozen=True)
class SourceSet:
    """Files selected for a batch and their combined size."""

    files: tuple[Path, ...]
    total_bytes: int


def _to_local_path(source: Union[str, Path]) -> Path | None:
    if isinstance(source, Path):
        return source
    parsed = urlparse(source)
    if len(parsed.scheme) > 1:
        if parsed.scheme != "file":
            return None
        return Path(unquote(parsed.path))
    return Path(source)


def _walk(directory: Path, extensions: frozenset[str]) -> Iterable[Path]:
    """Yield audio files below directory in sorted order.

    Symlink policy: do not follow symlinked directories and skip symlinked files.
    """
    for dirpath, dirnames, filenames in os.walk(directory, followlinks=False):
        dirnames.sort()
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if path.is_symlink() or not path.is_file():
                continue
            if path.suffix.lower() in extensions:
                yield path


def expand_sources(
    sources: Iterable[Union[str, Path]],
    extensions: frozenset[str] = DEFAULT_EXTENSIONS,
) -> SourceSet:
    """Resolve paths and file:// URLs into readable files.

    Directories are expanded recursively to the audio files they contain;
    explicit files are kept whatever their extension. Non-file URL schemes
    and missing paths are dropped.
    """
    files: list[Path] = []
    seen: set[Path] = set()
    total = 0
    for source in sources:
        path = _to_local_path(source)
        if path is None:
            logger.debug("Skipping non-local source %s", source)
            continue
        if path.is_dir():
            candidates: Iterable[Path] = _walk(path, extensions)
        elif path.is_file():
            candidates = (path,)
        else:
            logger.warning("Skipping missing source %s", path)
            continue
        for candidate in candidates:
            if candidate in seen or not os.access(candidate, os.R_OK):
                continue
            seen.add(candidate)
            files.append(candidate)
            total += candidate.stat().st_size
    return SourceSet(files=tuple(files), total_bytes=total)
