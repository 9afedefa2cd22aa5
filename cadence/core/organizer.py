"""Organizer - copy or move a batch of files into a templated tree."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from cadence.core.models import (
    REASON_CANCELLED,
    REASON_EXISTS,
    REASON_INSUFFICIENT_SPACE,
    REASON_MOVE_INCOMPLETE,
    REASON_UNREADABLE,
    BatchState,
    FileOutcome,
    FileResult,
    OrganizeRequest,
    OrganizeResult,
    PlannedFile,
)
from cadence.core.ports import MetadataProvider, TaskReporter
from cadence.errors import CadenceError, InsufficientSpace, MoveIncomplete, ValidationError

logger = logging.getLogger(__name__)

REASON_SAME_FILE = "same-file"


class NullReporter:
    """Reporter that discards every notification."""

    def on_progress(self, processed: int, total: int, outcome: FileResult) -> None:
        return None

    def on_complete(self, result: OrganizeResult) -> None:
        return None


def validate_request(request: OrganizeRequest) -> None:
    """Reject requests that must never start a batch.

    Raises:
        ParseError: the template does not parse
        ValidationError: the template has no tags or there are no files
    """
    request.template.validate()
    if not request.files:
        raise ValidationError("Organize request has no files")


def disambiguate_path(
    relative: str,
    used: set[str],
    is_taken: Optional[Callable[[str], bool]] = None,
) -> str:
    """Append " (2)", " (3)", ... before the extension until the path is free.

    ``used`` holds casefolded paths so names differing only in case collide,
    as they do on case-insensitive filesystems. ``is_taken`` reports extra
    paths that must not be written to.
    """

    def taken(candidate: str) -> bool:
        if candidate.casefold() in used:
            return True
        return is_taken is not None and is_taken(candidate)

    if not taken(relative):
        return relative
    directory, slash, name = relative.rpartition("/")
    stem, dot, extension = name.rpartition(".")
    if not stem:
        stem, dot, extension = name, "", ""
    counter = 2
    while True:
        candidate = f"{directory}{slash}{stem} ({counter}){dot}{extension}"
        if not taken(candidate):
            return candidate
        counter += 1


def _path_key(path: Path) -> str:
    try:
        resolved = path.resolve()
    except OSError:
        resolved = path.absolute()
    return str(resolved).casefold()


def _same_file(src: Path, dst: Path) -> bool:
    try:
        return src.samefile(dst)
    except OSError:
        return False


class OrganizeEngine:
    """Runs one organize batch.

    The batch moves through PLANNING, CAPACITY_CHECK, EXECUTING, FINALIZING
    and EJECTING into COMPLETED or FAILED. Per-file problems are recorded
    in the result and never abort the remaining files; only a failed
    pre-flight capacity check fails the whole batch, before anything is written.

    An engine runs exactly once. Build a new request to retry.
    """

    def __init__(
        self,
        request: OrganizeRequest,
        metadata_provider: MetadataProvider,
        *,
        reporter: Optional[TaskReporter] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        validate_request(request)
        self.request = request
        self.metadata_provider = metadata_provider
        self.reporter = reporter or NullReporter()
        self._cancel = cancel_event or threading.Event()
        self._started = False
        self.state = BatchState.PLANNING

    def cancel(self) -> None:
        """Stop before the next file; files already processed keep their outcome."""
        self._cancel.set()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel.is_set()

    def run(self) -> OrganizeResult:
        if self._started:
            raise RuntimeError("Organize batch already ran; build a new request to retry")
        self._started = True
        request = self.request
        logger.info(
            "Organizing %d files (%s) into %s",
            len(request.files),
            "copy" if request.copy else "move",
            request.target,
        )

        self.state = BatchState.PLANNING
        planned = self._plan()

        self.state = BatchState.CAPACITY_CHECK
        try:
            self._check_capacity(planned)
        except (OSError, CadenceError) as exc:
            logger.warning("Aborting batch before any write: %s", exc)
            if isinstance(exc, InsufficientSpace):
                reason = REASON_INSUFFICIENT_SPACE
            else:
                reason = str(exc) or type(exc).__name__
            for entry in planned:
                if entry.result is None:
                    entry.result = FileResult(
                        source_path=entry.source_path,
                        destination_path=entry.destination_path,
                        outcome=FileOutcome.FAILED,
                        reason=reason,
                    )
            return self._complete(
                BatchState.FAILED, planned, error=str(exc) or type(exc).__name__
            )

        self.state = BatchState.EXECUTING
        total = len(planned)
        processed = 0
        for entry in planned:
            if self._cancel.is_set():
                break
            if entry.result is None and entry.destination_path is not None:
                entry.result = self._execute(entry.source_path, entry.destination_path)
            processed += 1
            self.reporter.on_progress(processed, total, entry.result)

        warnings: list[str] = []
        self.state = BatchState.FINALIZING
        if processed < total:
            logger.info("Batch cancelled after %d of %d files", processed, total)
            warnings.append(f"Cancelled after {processed} of {total} files")
            for entry in planned[processed:]:
                entry.result = FileResult(
                    source_path=entry.source_path,
                    destination_path=entry.destination_path,
                    outcome=FileOutcome.SKIPPED,
                    reason=REASON_CANCELLED,
                )

        ejected = False
        if request.eject_after and any(entry.result.written for entry in planned):
            self.state = BatchState.EJECTING
            try:
                request.target.eject()
                ejected = True
            except (OSError, CadenceError) as exc:
                logger.warning("Eject failed for %s: %s", request.target, exc)
                warnings.append(f"Eject failed: {exc}")

        return self._complete(
            BatchState.COMPLETED, planned, warnings=tuple(warnings), ejected=ejected
        )

    def _complete(
        self,
        state: BatchState,
        planned: list[PlannedFile],
        *,
        error: Optional[str] = None,
        warnings: tuple[str, ...] = (),
        ejected: bool = False,
    ) -> OrganizeResult:
        self.state = state
        result = OrganizeResult(
            state=state,
            files=tuple(entry.result for entry in planned),
            error=error,
            warnings=warnings,
            ejected=ejected,
        )
        logger.info("Organize batch %s: %s", state.value, result.counts)
        self.reporter.on_complete(result)
        return result

    def _plan(self) -> list[PlannedFile]:
        request = self.request
        root = request.target.local_root()
        used: set[str] = set()
        planned: list[PlannedFile] = []
        # Destinations must never land on another file of the batch.
        source_index: dict[str, int] = {}
        if root is not None:
            for index, source in enumerate(request.files):
                source_index.setdefault(_path_key(source), index)

        for index, source in enumerate(request.files):

            def is_other_source(candidate: str, index: int = index) -> bool:
                owner = source_index.get(_path_key(root / candidate))
                return owner is not None and owner != index

            entry = PlannedFile(index=index, source_path=source)
            planned.append(entry)
            try:
                record = self.metadata_provider.read_metadata(source)
            except OSError as exc:
                logger.warning("Could not read metadata for %s: %s", source, exc)
                record = None
            if record is None:
                entry.result = FileResult(
                    source_path=source,
                    destination_path=None,
                    outcome=FileOutcome.FAILED,
                    reason=REASON_UNREADABLE,
                )
                continue

            relative = disambiguate_path(
                request.template.instantiate(record),
                used,
                is_other_source if source_index else None,
            )
            used.add(relative.casefold())
            entry.relative_path = Path(relative)
            entry.destination_path = root / relative if root is not None else Path(relative)
            entry.size = record.file_size or self._source_size(source)
            logger.debug("Planned %s -> %s", source, entry.destination_path)

        planned_bytes = sum(entry.size for entry in planned)
        if planned_bytes != request.total_bytes:
            logger.debug(
                "Request reported %d bytes, planned files total %d bytes",
                request.total_bytes,
                planned_bytes,
            )
        return planned

    @staticmethod
    def _source_size(source: Path) -> int:
        try:
            return source.stat().st_size
        except OSError:
            return 0

    def _existing_size(self, destination: Optional[Path]) -> Optional[int]:
        """Size of an existing destination file, None when absent or unknowable."""
        if destination is None or self.request.target.local_root() is None:
            return None
        try:
            return destination.stat().st_size
        except OSError:
            return None

    def _check_capacity(self, planned: list[PlannedFile]) -> None:
        target = self.request.target
        if target.capacity_bytes() <= 0:
            return
        required = 0
        for entry in planned:
            if entry.result is not None:
                continue
            existing = self._existing_size(entry.destination_path)
            if existing is None:
                required += entry.size
            elif self.request.overwrite:
                required += max(entry.size - existing, 0)
        free = target.free_bytes()
        if required > free:
            raise InsufficientSpace(required=required, free=free)

    def _execute(self, src: Path, dst: Path) -> FileResult:
        request = self.request

        def result(outcome: FileOutcome, reason: Optional[str] = None) -> FileResult:
            return FileResult(
                source_path=src, destination_path=dst, outcome=outcome, reason=reason
            )

        exists = self._existing_size(dst) is not None
        if exists and not request.overwrite:
            logger.debug("Skipping %s: %s exists", src, dst)
            return result(FileOutcome.SKIPPED, REASON_EXISTS)
        if exists and _same_file(src, dst):
            logger.debug("Skipping %s: already in place", src)
            return result(FileOutcome.SKIPPED, REASON_SAME_FILE)

        try:
            if request.copy:
                request.target.copy_file(src, dst)
            else:
                request.target.move_file(src, dst)
        except MoveIncomplete as exc:
            logger.warning("Move incomplete for %s: %s", src, exc)
            return result(FileOutcome.FAILED, REASON_MOVE_INCOMPLETE)
        except (OSError, CadenceError) as exc:
            logger.error("Failed to organize %s -> %s: %s", src, dst, exc)
            return result(FileOutcome.FAILED, str(exc) or type(exc).__name__)

        return self._finalize(result(FileOutcome.OVERWRITTEN if exists else FileOutcome.SUCCESS))

    def _finalize(self, outcome: FileResult) -> FileResult:
        """Confirm a move really removed its source before reporting success."""
        if self.request.copy or not outcome.source_path.exists():
            return outcome
        logger.warning("Source %s still exists after move", outcome.source_path)
        return FileResult(
            source_path=outcome.source_path,
            destination_path=outcome.destination_path,
            outcome=FileOutcome.FAILED,
            reason=REASON_MOVE_INCOMPLETE,
        )
