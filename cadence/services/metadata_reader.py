"""Read metadata from audio files using mutagen."""

from __future__ import annotations

import json
import logging
from pathlib import Path
import re
from typing import Any, Optional

from mutagen import File as MutagenFile, MutagenError
from mutagen.flac import FLAC
from mutagen.id3 import ID3, ID3NoHeaderError
from mutagen.mp4 import MP4
from mutagen.oggopus import OggOpus
from mutagen.oggvorbis import OggVorbis

from ..core.models import MetadataRecord

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*(\d+)")
_NUMERIC_FIELDS = frozenset(
    {"track", "disc", "bpm", "year", "length_seconds", "bitrate", "sample_rate"}
)


def parse_int(value: Any) -> int:
    """Parse the leading integer of a tag value ("3/12" -> 3, "2004-05-01" -> 2004)."""
    if value is None:
        return 0
    if isinstance(value, int):
        return max(value, 0)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


class MutagenMetadataReader:
    """Metadata provider backed by mutagen.

    A companion ``<file>.meta.json`` fills in fields the tags leave empty;
    test fixtures use it in place of real audio.
    """

    def read_metadata(self, path: Path) -> Optional[MetadataRecord]:
        """Read metadata from an audio file.

        Args:
            path: Path to audio file

        Returns:
            MetadataRecord, or None if the file is missing or unreadable
        """
        if not path.is_file():
            return None

        fields: dict[str, Any] = {}
        readable = False
        try:
            audio = MutagenFile(path)
        except (MutagenError, OSError) as exc:
            logger.debug("mutagen could not open %s: %s", path, exc)
            audio = None

        if audio is not None:
            readable = True
            info = getattr(audio, "info", None)
            if info is not None:
                fields["length_seconds"] = int(getattr(info, "length", 0) or 0)
                fields["bitrate"] = int(getattr(info, "bitrate", 0) or 0) // 1000
                fields["sample_rate"] = int(getattr(info, "sample_rate", 0) or 0)

            ext = path.suffix.lower()
            if ext == ".mp3":
                self._read_mp3(path, fields)
            elif ext in (".flac", ".ogg", ".opus"):
                self._read_vorbis(audio, fields)
            elif ext in (".m4a", ".mp4"):
                self._read_mp4(audio, fields)

        if self._apply_stub_metadata(path, fields):
            readable = True

        if not readable:
            return None

        try:
            size = path.stat().st_size
        except OSError:
            size = 0
        return MetadataRecord(
            extension=path.suffix.lstrip("."),
            file_size=size,
            **fields,
        )

    @staticmethod
    def _set(fields: dict[str, Any], key: str, value: Any) -> None:
        if value in (None, "", 0):
            return
        if key in _NUMERIC_FIELDS:
            value = parse_int(value)
            if not value:
                return
        else:
            value = str(value).strip()
        fields[key] = value

    def _read_mp3(self, path: Path, fields: dict[str, Any]) -> None:
        """Read ID3 frames from an MP3 file."""
        try:
            tags = ID3(path)
        except (ID3NoHeaderError, MutagenError, OSError):
            return

        frames = {
            "TIT2": "title",
            "TPE1": "artist",
            "TALB": "album",
            "TPE2": "album_artist",
            "TCOM": "composer",
            "TCON": "genre",
            "TRCK": "track",
            "TPOS": "disc",
            "TBPM": "bpm",
            "TDRC": "year",
        }
        for frame_id, key in frames.items():
            frame = tags.get(frame_id)
            if frame is not None and frame.text:
                self._set(fields, key, str(frame.text[0]))

        comments = tags.getall("COMM")
        if comments and comments[0].text:
            self._set(fields, "comment", comments[0].text[0])

    def _read_vorbis(self, audio: FLAC | OggVorbis | OggOpus, fields: dict[str, Any]) -> None:
        """Read Vorbis comments from FLAC / Ogg files."""
        keys = {
            "title": ("TITLE",),
            "artist": ("ARTIST",),
            "album": ("ALBUM",),
            "album_artist": ("ALBUMARTIST", "ALBUM ARTIST"),
            "composer": ("COMPOSER",),
            "genre": ("GENRE",),
            "comment": ("COMMENT", "DESCRIPTION"),
            "track": ("TRACKNUMBER",),
            "disc": ("DISCNUMBER",),
            "bpm": ("BPM",),
            "year": ("DATE", "YEAR"),
        }
        for key, candidates in keys.items():
            self._set(fields, key, self._get_first(audio, *candidates))

    def _read_mp4(self, audio: MP4, fields: dict[str, Any]) -> None:
        """Read tags from M4A/MP4 file."""
        tags = audio.tags or {}
        atoms = {
            "\xa9nam": "title",
            "\xa9ART": "artist",
            "\xa9alb": "album",
            "aART": "album_artist",
            "\xa9wrt": "composer",
            "\xa9gen": "genre",
            "\xa9cmt": "comment",
            "\xa9day": "year",
            "tmpo": "bpm",
        }
        for atom, key in atoms.items():
            if atom in tags and tags[atom]:
                self._set(fields, key, tags[atom][0])

        # trkn / disk hold (number, total) tuples
        for atom, key in (("trkn", "track"), ("disk", "disc")):
            if atom in tags and tags[atom]:
                pair = tags[atom][0]
                if isinstance(pair, tuple) and pair:
                    self._set(fields, key, pair[0])

    @staticmethod
    def _apply_stub_metadata(path: Path, fields: dict[str, Any]) -> bool:
        """Apply stub metadata from a companion JSON file if present."""
        metadata_path = path.with_suffix(path.suffix + ".meta.json")
        if not metadata_path.exists():
            return False

        try:
            data = json.loads(metadata_path.read_text())
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable metadata stub %s: %s", metadata_path, exc)
            return False
        if not isinstance(data, dict):
            return False

        for key in (
            "title",
            "artist",
            "album",
            "album_artist",
            "composer",
            "genre",
            "comment",
            "track",
            "disc",
            "bpm",
            "year",
            "length_seconds",
            "bitrate",
            "sample_rate",
        ):
            if not fields.get(key) and data.get(key) not in (None, ""):
                value = data[key]
                fields[key] = parse_int(value) if key in _NUMERIC_FIELDS else str(value)
        return True

    @staticmethod
    def _get_first(audio: Any, *keys: str) -> Optional[str]:
        """Get first non-empty value from a list of possible keys."""
        for key in keys:
            values = audio.get(key, [])
            if values and values[0]:
                return str(values[0])
        return None
