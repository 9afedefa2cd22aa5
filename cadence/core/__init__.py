"""Template engine and organize engine."""

from cadence.core.format import DEFAULT_FORMAT, FormatTemplate, parse_template
from cadence.core.models import (
    BatchState,
    FileOutcome,
    FileResult,
    MetadataRecord,
    OrganizeRequest,
    OrganizeResult,
)
from cadence.core.organizer import OrganizeEngine
from cadence.core.task import OrganizeHandle, start_organize

__all__ = [
    "BatchState",
    "DEFAULT_FORMAT",
    "FileOutcome",
    "FileResult",
    "FormatTemplate",
    "MetadataRecord",
    "OrganizeEngine",
    "OrganizeHandle",
    "OrganizeRequest",
    "OrganizeResult",
    "parse_template",
    "start_organize",
]
