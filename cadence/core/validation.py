"""Path segment sanitization for generated destination paths."""

from __future__ import annotations

from dataclasses import dataclass
import re
import unicodedata

ILLEGAL_CHARACTERS = '\\:*?"<>|'
PLACEHOLDER = "_"
SPACE_REPLACEMENT = "_"
MAX_SEGMENT_LENGTH = 200

_LEADING_THE = re.compile(r"^(?:the\s+)+", re.IGNORECASE)

RESERVED_NAMES = frozenset(
    {"CON", "PRN", "AUX", "NUL"}
    | {f"COM{i}" for i in range(1, 10)}
    | {f"LPT{i}" for i in range(1, 10)}
)


@dataclass(frozen=True)
class SanitizationPolicy:
    """Optional per-segment character replacements."""

    replace_non_ascii: bool = False
    replace_spaces: bool = False
    replace_the: bool = False


def _is_illegal(ch: str) -> bool:
    return ch in ILLEGAL_CHARACTERS or ch == "/" or unicodedata.category(ch) == "Cc"


def strip_illegal(value: str) -> str:
    """Drop characters that are illegal on common filesystems."""
    cleaned = "".join(ch for ch in value if ch.isspace() or not _is_illegal(ch))
    return " ".join(cleaned.split())


def transliterate(value: str) -> str:
    """Reduce text to ASCII; characters with no ASCII form become a placeholder."""
    decomposed = unicodedata.normalize("NFKD", value)
    result = []
    for ch in decomposed:
        if ord(ch) < 128:
            result.append(ch)
        elif unicodedata.combining(ch):
            continue
        else:
            result.append(PLACEHOLDER)
    return "".join(result)


def _truncate(segment: str, keep_suffix: bool) -> str:
    if len(segment) <= MAX_SEGMENT_LENGTH:
        return segment
    stem, dot, suffix = segment.rpartition(".")
    if keep_suffix and dot and stem and len(suffix) < 16:
        allowed = MAX_SEGMENT_LENGTH - len(suffix) - 1
        return f"{stem[:allowed].rstrip(' .')}.{suffix}"
    return segment[:MAX_SEGMENT_LENGTH]


def sanitize_segment(
    segment: str,
    policy: SanitizationPolicy = SanitizationPolicy(),
    *,
    is_filename: bool = False,
) -> str:
    """Deterministically sanitize a single path segment.

    Idempotent: sanitizing an already sanitized segment returns it unchanged.
    """
    cleaned = strip_illegal(segment)
    if policy.replace_non_ascii:
        cleaned = strip_illegal(transliterate(cleaned))
    if policy.replace_the:
        cleaned = _LEADING_THE.sub("", cleaned)
    if policy.replace_spaces:
        cleaned = cleaned.replace(" ", SPACE_REPLACEMENT)
    cleaned = cleaned.strip().rstrip(" .")
    if cleaned.split(".", 1)[0].upper() in RESERVED_NAMES:
        cleaned = f"{PLACEHOLDER}{cleaned}"
    cleaned = _truncate(cleaned, keep_suffix=is_filename).rstrip(" .")
    return cleaned or PLACEHOLDER


def sanitize_relative_path(
    raw_path: str, policy: SanitizationPolicy = SanitizationPolicy()
) -> str:
    """Sanitize every "/"-delimited segment of a generated path."""
    segments = raw_path.split("/")
    last = len(segments) - 1
    return "/".join(
        sanitize_segment(segment, policy, is_filename=index == last)
        for index, segment in enumerate(segments)
    )
