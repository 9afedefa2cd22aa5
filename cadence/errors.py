"""Error taxonomy and exit code mapping for CLI."""

from __future__ import annotations

from typing import Optional


class CadenceError(Exception):
    """Base error for deterministic CLI exit codes."""

    exit_code: int = 1


class ValidationError(CadenceError):
    """Invalid user input, template or request."""

    exit_code = 2


class ParseError(ValidationError):
    """Malformed format template."""

    def __init__(self, message: str, position: Optional[int] = None) -> None:
        if position is not None:
            message = f"{message} (at position {position})"
        super().__init__(message)
        self.position = position


class RuntimeFailure(CadenceError):
    """Unexpected runtime failure."""

    exit_code = 1


class IOFailure(CadenceError):
    """Filesystem or device failure."""

    exit_code = 3


class MoveIncomplete(IOFailure):
    """A file was copied but its source could not be removed."""


class InsufficientSpace(CadenceError):
    """Destination does not have room for the pending files."""

    exit_code = 4

    def __init__(self, required: int, free: int) -> None:
        super().__init__(
            f"Insufficient space: {required} bytes required, {free} bytes free"
        )
        self.required = required
        self.free = free


def exit_code_for_exception(exc: BaseException) -> int:
    """Resolve a deterministic exit code for an exception."""
    if isinstance(exc, CadenceError):
        return exc.exit_code
    if isinstance(exc, OSError):
        return IOFailure.exit_code
    return RuntimeFailure.exit_code
