"""Organize command - copy or move files into a templated tree."""

from __future__ import annotations

from argparse import Namespace
from dataclasses import replace
import logging
from pathlib import Path
import shlex

from cadence.commands.output import emit_output
from cadence.core.models import (
    REASON_INSUFFICIENT_SPACE,
    FileOutcome,
    FileResult,
    OrganizeRequest,
    OrganizeResult,
)
from cadence.core.preview import can_start
from cadence.core.task import start_organize
from cadence.errors import InsufficientSpace, IOFailure, ValidationError
from cadence.infrastructure.scanner import expand_sources
from cadence.infrastructure.storage import LocalStorageTarget
from cadence.services.metadata_reader import MutagenMetadataReader
from cadence.settings import Settings, default_config_path, load_settings

logger = logging.getLogger(__name__)


def resolve_settings(args: Namespace, config_loader=load_settings) -> Settings:
    """Config file and environment first, then explicit command-line flags."""
    config_path = (
        Path(args.config).expanduser()
        if getattr(args, "config", None)
        else default_config_path()
    )
    settings = config_loader(config_path)
    overrides: dict[str, object] = {}
    if getattr(args, "format", None):
        overrides["format"] = args.format
    for flag, key in (
        ("replace_ascii", "replace_non_ascii"),
        ("replace_spaces", "replace_spaces"),
        ("replace_the", "replace_the"),
        ("eject_after", "eject_after"),
    ):
        if getattr(args, flag, None):
            overrides[key] = True
    if getattr(args, "no_overwrite", None):
        overrides["overwrite"] = False
    if getattr(args, "move", None):
        overrides["copy"] = False
    return replace(settings, **overrides)


def build_target(args: Namespace) -> LocalStorageTarget:
    eject_command = shlex.split(args.eject_command) if getattr(args, "eject_command", None) else None
    return LocalStorageTarget(Path(args.dest).expanduser(), eject_command=eject_command)


class ConsoleReporter:
    """Prints one line per processed file."""

    def __init__(self, output_sink=print) -> None:
        self.output_sink = output_sink

    def on_progress(self, processed: int, total: int, outcome: FileResult) -> None:
        reason = f" ({outcome.reason})" if outcome.reason else ""
        self.output_sink(
            f"[{processed}/{total}] {outcome.outcome.value}{reason}: {outcome.source_path}"
        )

    def on_complete(self, result: OrganizeResult) -> None:
        return None


def _exit_code(result: OrganizeResult) -> int:
    if result.error:
        if any(item.reason == REASON_INSUFFICIENT_SPACE for item in result.files):
            return InsufficientSpace.exit_code
        return IOFailure.exit_code
    if result.count(FileOutcome.FAILED):
        return 1
    return 0


def run_organize(
    args: Namespace,
    *,
    config_loader=load_settings,
    metadata_provider=None,
    target_factory=build_target,
    output_sink=print,
) -> int:
    """Expand sources, validate the request and run the batch to completion."""
    json_output = getattr(args, "json", False)
    settings = resolve_settings(args, config_loader)
    template = settings.template()
    template.validate()

    sources = expand_sources(args.sources)
    if not sources.files:
        raise ValidationError("No readable source files found")
    target = target_factory(args)
    if not can_start(template, target, sources.files, sources.total_bytes):
        raise InsufficientSpace(required=sources.total_bytes, free=target.free_bytes())

    request = OrganizeRequest(
        files=sources.files,
        total_bytes=sources.total_bytes,
        target=target,
        template=template,
        copy=settings.copy,
        overwrite=settings.overwrite,
        eject_after=settings.eject_after,
    )
    reporter = None if json_output else ConsoleReporter(output_sink)
    handle = start_organize(request, metadata_provider or MutagenMetadataReader(), reporter)
    try:
        result = handle.result()
    except KeyboardInterrupt:
        logger.warning("Interrupted; finishing the current file")
        handle.cancel()
        result = handle.result()

    counts = result.counts
    human_lines = [
        f"organize: state={result.state.value} "
        + " ".join(f"{key.lower()}={value}" for key, value in counts.items())
    ]
    if result.error:
        human_lines.append(f"error: {result.error}")
    human_lines.extend(f"warning: {warning}" for warning in result.warnings)
    emit_output(
        command="organize",
        payload=result.to_dict(),
        json_output=json_output,
        output_sink=output_sink,
        human_lines=human_lines,
    )
    return _exit_code(result)
