"""Preview command - show where files would be organized."""

from __future__ import annotations

from argparse import Namespace

from cadence.commands.organize import build_target, resolve_settings
from cadence.commands.output import emit_output
from cadence.core.format import TAG_TITLES
from cadence.core.preview import PREVIEW_LIMIT, preview_paths
from cadence.infrastructure.scanner import expand_sources
from cadence.services.metadata_reader import MutagenMetadataReader
from cadence.settings import load_settings


def run_preview(
    args: Namespace,
    *,
    config_loader=load_settings,
    metadata_provider=None,
    target_factory=build_target,
    output_sink=print,
) -> int:
    json_output = getattr(args, "json", False)
    settings = resolve_settings(args, config_loader)
    template = settings.template()
    template.validate()

    sources = expand_sources(args.sources)
    target = target_factory(args)
    limit = getattr(args, "limit", None) or PREVIEW_LIMIT
    previews = preview_paths(
        template,
        sources.files,
        metadata_provider or MutagenMetadataReader(),
        target,
        limit=limit,
    )
    emit_output(
        command="preview",
        payload={
            "format": template.pattern,
            "file_count": len(sources.files),
            "total_bytes": sources.total_bytes,
            "previews": [str(path) for path in previews],
        },
        json_output=json_output,
        output_sink=output_sink,
        human_lines=[str(path) for path in previews],
    )
    return 0


def run_tags(args: Namespace, *, output_sink=print) -> int:
    """List the tags a format may reference."""
    json_output = getattr(args, "json", False)
    titles = sorted(TAG_TITLES)
    emit_output(
        command="tags",
        payload={"tags": {title: TAG_TITLES[title] for title in titles}},
        json_output=json_output,
        output_sink=output_sink,
        human_lines=[f"%{TAG_TITLES[title]:<15} {title}" for title in titles],
    )
    return 0
