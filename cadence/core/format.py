"""Naming format templates.

A template is literal text with ``%tag`` substitutions and ``{...}`` blocks.
A block is emitted only when every tag inside it resolves to a non-empty
value, so ``%album{ (Disc %disc)}`` renders " (Disc 2)" for disc two and
nothing at all when the disc number is unknown. ``/`` separates directory
levels; every level is sanitized independently.

Blocks do not nest: a ``{`` inside a block is a parse error.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from cadence.core.models import MetadataRecord
from cadence.core.validation import SanitizationPolicy, sanitize_relative_path
from cadence.errors import ParseError, ValidationError

DEFAULT_FORMAT = "%artist/%album{ (Disc %disc)}/{%track - }%title.%extension"

# Human readable titles for tag pickers, keyed by title.
TAG_TITLES: dict[str, str] = {
    "Title": "title",
    "Album": "album",
    "Artist": "artist",
    "Artist's initial": "artistinitial",
    "Album artist": "albumartist",
    "Composer": "composer",
    "Track": "track",
    "Disc": "disc",
    "BPM": "bpm",
    "Year": "year",
    "Genre": "genre",
    "Comment": "comment",
    "Length": "length",
    "Bitrate": "bitrate",
    "Samplerate": "samplerate",
    "File extension": "extension",
}


def _number(value: int) -> str:
    return str(value) if value > 0 else ""


def format_length(seconds: int) -> str:
    """Render a duration as H:MM:SS, or MM:SS below one hour."""
    if seconds <= 0:
        return ""
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


_RESOLVERS: dict[str, Callable[[MetadataRecord], str]] = {
    "title": lambda r: r.title,
    "album": lambda r: r.album,
    "artist": lambda r: r.artist,
    "artistinitial": lambda r: r.artist_initial,
    "albumartist": lambda r: r.album_artist,
    "composer": lambda r: r.composer,
    "track": lambda r: _number(r.track),
    "disc": lambda r: _number(r.disc),
    "bpm": lambda r: _number(r.bpm),
    "year": lambda r: _number(r.year),
    "genre": lambda r: r.genre,
    "comment": lambda r: r.comment,
    "length": lambda r: format_length(r.length_seconds),
    "bitrate": lambda r: _number(r.bitrate),
    "samplerate": lambda r: _number(r.sample_rate),
    "extension": lambda r: r.extension.lstrip("."),
}

KNOWN_TAGS = frozenset(_RESOLVERS)


def tag_value(tag: str, record: MetadataRecord) -> str:
    """Resolve a tag for a record; absent values resolve to ""."""
    value = _RESOLVERS[tag](record) or ""
    # Metadata must never introduce directory levels.
    return value.strip().replace("/", "-")


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class TagRef:
    name: str


@dataclass(frozen=True)
class Block:
    segments: tuple[Union[Literal, TagRef], ...]


Segment = Union[Literal, TagRef, Block]


def _read_tag(text: str, start: int) -> tuple[Optional[str], int]:
    end = start
    while end < len(text) and text[end].isascii() and text[end].isalpha():
        end += 1
    if end == start:
        return None, start
    return text[start:end], end


def parse_template(text: str) -> tuple[Segment, ...]:
    """Compile a template string into a segment tree.

    Raises:
        ParseError: unknown tag, unbalanced or nested braces
    """
    top: list[Segment] = []
    block: Optional[list[Union[Literal, TagRef]]] = None
    block_start = 0
    literal: list[str] = []

    def flush() -> None:
        if literal:
            (top if block is None else block).append(Literal("".join(literal)))
            literal.clear()

    index = 0
    while index < len(text):
        ch = text[index]
        if ch == "%":
            name, end = _read_tag(text, index + 1)
            if name is None:
                literal.append(ch)
                index += 1
                continue
            if name not in KNOWN_TAGS:
                raise ParseError(f"Unknown tag: %{name}", index)
            flush()
            (top if block is None else block).append(TagRef(name))
            index = end
            continue
        if ch == "{":
            if block is not None:
                raise ParseError("Nested blocks are not supported", index)
            flush()
            block = []
            block_start = index
        elif ch == "}":
            if block is None:
                raise ParseError("Unmatched '}'", index)
            flush()
            top.append(Block(tuple(block)))
            block = None
        else:
            literal.append(ch)
        index += 1

    if block is not None:
        raise ParseError("Unclosed '{'", block_start)
    flush()
    return tuple(top)


def _tag_names(segments: tuple[Segment, ...]) -> tuple[str, ...]:
    names: list[str] = []
    for segment in segments:
        if isinstance(segment, TagRef):
            names.append(segment.name)
        elif isinstance(segment, Block):
            names.extend(_tag_names(segment.segments))
    return tuple(names)


def _render(segments: tuple[Segment, ...], record: MetadataRecord) -> str:
    parts: list[str] = []
    for segment in segments:
        if isinstance(segment, Literal):
            parts.append(segment.text)
        elif isinstance(segment, TagRef):
            parts.append(tag_value(segment.name, record))
        else:
            inner = segment.segments
            if all(
                tag_value(item.name, record)
                for item in inner
                if isinstance(item, TagRef)
            ):
                parts.append(_render(inner, record))
    return "".join(parts)


class FormatTemplate:
    """Compiled naming template plus sanitization policy.

    Construction never raises: a malformed template is kept with its
    ``error`` so callers can rebuild on every keystroke and check
    ``is_valid()``. Use ``compile`` to get the ParseError raised instead.
    """

    def __init__(
        self,
        pattern: str = DEFAULT_FORMAT,
        *,
        replace_non_ascii: bool = False,
        replace_spaces: bool = False,
        replace_the: bool = False,
    ) -> None:
        self.pattern = pattern
        self.policy = SanitizationPolicy(
            replace_non_ascii=replace_non_ascii,
            replace_spaces=replace_spaces,
            replace_the=replace_the,
        )
        self.error: Optional[ParseError] = None
        try:
            self.segments = parse_template(pattern)
        except ParseError as exc:
            self.error = exc
            self.segments = ()
        self.tags = _tag_names(self.segments)

    @classmethod
    def compile(
        cls,
        pattern: str = DEFAULT_FORMAT,
        *,
        replace_non_ascii: bool = False,
        replace_spaces: bool = False,
        replace_the: bool = False,
    ) -> "FormatTemplate":
        """Build a template, raising if it cannot be used."""
        template = cls(
            pattern,
            replace_non_ascii=replace_non_ascii,
            replace_spaces=replace_spaces,
            replace_the=replace_the,
        )
        template.validate()
        return template

    def is_valid(self) -> bool:
        return self.error is None and bool(self.tags)

    def validate(self) -> None:
        if self.error is not None:
            raise self.error
        if not self.tags:
            raise ValidationError(
                f"Format must contain at least one tag: {self.pattern!r}"
            )

    def instantiate(self, record: MetadataRecord) -> str:
        """Render the relative destination path for a record."""
        self.validate()
        return sanitize_relative_path(_render(self.segments, record), self.policy)

    def path_for(self, record: MetadataRecord) -> Path:
        return Path(self.instantiate(record))

    def __repr__(self) -> str:
        return f"FormatTemplate({self.pattern!r}, policy={self.policy!r})"


def insert_tag(pattern: str, tag: str, position: Optional[int] = None) -> str:
    """Insert a ``%tag`` reference into a template string."""
    if tag not in KNOWN_TAGS:
        raise ValidationError(f"Unknown tag: {tag}")
    if position is None:
        position = len(pattern)
    return f"{pattern[:position]}%{tag}{pattern[position:]}"
