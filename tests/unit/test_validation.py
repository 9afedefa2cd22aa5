"""Unit tests for path segment sanitization."""

from __future__ import annotations

import pytest

from cadence.core.validation import (
    ILLEGAL_CHARACTERS,
    MAX_SEGMENT_LENGTH,
    SanitizationPolicy,
    sanitize_relative_path,
    sanitize_segment,
    strip_illegal,
    transliterate,
)

ALL_ON = SanitizationPolicy(replace_non_ascii=True, replace_spaces=True, replace_the=True)

SAMPLES = [
    "",
    "   ",
    ".",
    "..",
    "The The",
    "the   the  Band",
    "Guns N' Roses",
    'A "quoted": name?',
    "tab\tand\nnewline",
    "Motörhead",
    "東京事変",
    "nul",
    "com1.mp3",
    "trailing dots...",
    "x" * 300 + ".flac",
]


class TestSanitizeSegment:
    def test_strip_illegal(self):
        assert strip_illegal('a\\b:c*d?e"f<g>h|i') == "abcdefghi"
        assert strip_illegal("a/b") == "ab"
        assert strip_illegal("  spaced   out  ") == "spaced out"

    def test_empty_becomes_placeholder(self):
        assert sanitize_segment("") == "_"
        assert sanitize_segment("???") == "_"

    @pytest.mark.parametrize("value", [".", "..", " . "])
    def test_dot_segments_never_survive(self, value):
        assert sanitize_segment(value) == "_"

    def test_trailing_dots_and_spaces_removed(self):
        assert sanitize_segment("Album...  ") == "Album"

    @pytest.mark.parametrize("value", ["CON", "con", "Nul.mp3", "LPT1"])
    def test_reserved_device_names(self, value):
        assert sanitize_segment(value) == f"_{value}"

    def test_reserved_prefix_is_not_reserved(self):
        assert sanitize_segment("Console") == "Console"

    def test_transliterate(self):
        assert transliterate("Beyoncé") == "Beyonce"
        assert transliterate("ﬁ") == "fi"
        assert transliterate("日本") == "__"

    def test_replace_the_repeats(self):
        policy = SanitizationPolicy(replace_the=True)
        assert sanitize_segment("The The", policy) == "The"
        assert sanitize_segment("the  the Band", policy) == "Band"
        assert sanitize_segment("Thelonious", policy) == "Thelonious"

    def test_replace_the_with_spaces_replaced(self):
        assert sanitize_segment("The Who", ALL_ON) == "Who"

    def test_long_filename_keeps_extension(self):
        name = "x" * 300 + ".flac"
        result = sanitize_segment(name, is_filename=True)
        assert len(result) == MAX_SEGMENT_LENGTH
        assert result.endswith(".flac")

    def test_long_directory_is_cut(self):
        result = sanitize_segment("y" * 300)
        assert result == "y" * MAX_SEGMENT_LENGTH

    @pytest.mark.parametrize("value", SAMPLES)
    @pytest.mark.parametrize("policy", [SanitizationPolicy(), ALL_ON])
    def test_idempotent(self, value, policy):
        once = sanitize_segment(value, policy, is_filename=True)
        assert sanitize_segment(once, policy, is_filename=True) == once

    @pytest.mark.parametrize("value", SAMPLES)
    @pytest.mark.parametrize("policy", [SanitizationPolicy(), ALL_ON])
    def test_result_is_a_usable_segment(self, value, policy):
        result = sanitize_segment(value, policy)
        assert result
        assert result not in (".", "..")
        assert "/" not in result
        assert not any(ch in ILLEGAL_CHARACTERS for ch in result)
        assert result == result.strip()
        assert len(result) <= MAX_SEGMENT_LENGTH

    def test_ascii_only_with_non_ascii_policy(self):
        for value in SAMPLES:
            assert sanitize_segment(value, ALL_ON).isascii()


def test_sanitize_relative_path_treats_last_segment_as_filename():
    raw = "/".join(["a" * 250, "b" * 250 + ".mp3"])
    first, last = sanitize_relative_path(raw).split("/")
    assert first == "a" * MAX_SEGMENT_LENGTH
    assert last.endswith(".mp3")
    assert len(last) == MAX_SEGMENT_LENGTH


def test_sanitize_relative_path_fills_empty_levels():
    assert sanitize_relative_path("//x") == "_/_/x"
