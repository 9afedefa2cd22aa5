"""Core data models for Cadence."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
import re
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from cadence.core.format import FormatTemplate
    from cadence.core.ports import StorageTarget


_LEADING_THE = re.compile(r"^the\s+", re.IGNORECASE)


@dataclass(frozen=True)
class MetadataRecord:
    """Immutable per-file metadata snapshot.

    Empty strings and zero numbers mean the field is absent.
    """
    # Text tags
    artist: str = ""
    album: str = ""
    album_artist: str = ""
    composer: str = ""
    title: str = ""
    genre: str = ""
    comment: str = ""
    extension: str = ""

    # Numeric tags
    track: int = 0
    disc: int = 0
    bpm: int = 0
    year: int = 0

    # Stream information
    length_seconds: int = 0
    bitrate: int = 0
    sample_rate: int = 0

    # File information
    file_size: int = 0

    @property
    def artist_initial(self) -> str:
        """First alphanumeric character of the artist, uppercased.

        A leading "The " is ignored so "The Beatles" files under "B".
        """
        value = _LEADING_THE.sub("", self.artist.strip())
        for ch in value:
            if ch.isalnum():
                return ch.upper()
        return ""


class FileOutcome(str, Enum):
    """Per-file organize outcome."""

    SUCCESS = "SUCCESS"
    SKIPPED = "SKIPPED"
    OVERWRITTEN = "OVERWRITTEN"
    FAILED = "FAILED"


class BatchState(str, Enum):
    """Organize batch lifecycle states."""

    PLANNING = "PLANNING"
    CAPACITY_CHECK = "CAPACITY_CHECK"
    EXECUTING = "EXECUTING"
    FINALIZING = "FINALIZING"
    EJECTING = "EJECTING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# Outcome reasons
REASON_EXISTS = "exists"
REASON_CANCELLED = "cancelled"
REASON_UNREADABLE = "unreadable"
REASON_MOVE_INCOMPLETE = "move-incomplete"
REASON_INSUFFICIENT_SPACE = "insufficient-space"


@dataclass(frozen=True)
class FileResult:
    source_path: Path
    destination_path: Optional[Path]
    outcome: FileOutcome
    reason: Optional[str] = None

    @property
    def written(self) -> bool:
        return self.outcome in (FileOutcome.SUCCESS, FileOutcome.OVERWRITTEN)

    @property
    def cancelled(self) -> bool:
        return self.outcome == FileOutcome.SKIPPED and self.reason == REASON_CANCELLED


@dataclass(frozen=True)
class OrganizeRequest:
    """Fully resolved input for one organize batch."""

    files: tuple[Path, ...]
    total_bytes: int
    target: "StorageTarget"
    template: "FormatTemplate"
    copy: bool = True
    overwrite: bool = True
    eject_after: bool = False


@dataclass(frozen=True)
class OrganizeResult:
    """Aggregate outcome of an organize batch."""

    state: BatchState
    files: tuple[FileResult, ...]
    error: Optional[str] = None
    warnings: tuple[str, ...] = ()
    ejected: bool = False

    def count(self, outcome: FileOutcome) -> int:
        return sum(1 for item in self.files if item.outcome == outcome)

    @property
    def counts(self) -> dict[str, int]:
        return {outcome.value: self.count(outcome) for outcome in FileOutcome}

    @property
    def cancelled(self) -> bool:
        return any(item.cancelled for item in self.files)

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "error": self.error,
            "warnings": list(self.warnings),
            "ejected": self.ejected,
            "counts": self.counts,
            "files": [
                {
                    "source": str(item.source_path),
                    "destination": (
                        str(item.destination_path) if item.destination_path else None
                    ),
                    "outcome": item.outcome.value,
                    "reason": item.reason,
                }
                for item in self.files
            ],
        }


@dataclass
class PlannedFile:
    """Working state for one file while a batch runs."""

    index: int
    source_path: Path
    relative_path: Optional[Path] = None
    destination_path: Optional[Path] = None
    size: int = 0
    result: Optional[FileResult] = None
