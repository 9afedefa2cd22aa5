"""Application settings for organize runs."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
import json
import os
from pathlib import Path
from typing import Optional

from cadence.core.format import DEFAULT_FORMAT, FormatTemplate

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    format: str = DEFAULT_FORMAT
    replace_non_ascii: bool = False
    replace_spaces: bool = False
    replace_the: bool = False
    overwrite: bool = True
    eject_after: bool = False
    copy: bool = True

    @classmethod
    def reset(cls) -> Settings:
        return cls()

    def template(self) -> FormatTemplate:
        return FormatTemplate(
            self.format,
            replace_non_ascii=self.replace_non_ascii,
            replace_spaces=self.replace_spaces,
            replace_the=self.replace_the,
        )

    def to_dict(self) -> dict:
        return {item.name: getattr(self, item.name) for item in fields(self)}


def _parse_bool(name: str, value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise ValueError(f"Setting {name} must be a boolean, got {value!r}")


def load_settings(path: Optional[Path]) -> Settings:
    """Load settings from JSON config file, with environment variable overrides.

    Priority order:
    1. Environment variables (CADENCE_FORMAT, CADENCE_OVERWRITE)
    2. JSON config file
    3. Defaults

    Args:
        path: Path to JSON config file, or None to use defaults only

    Returns:
        Settings object with resolved values
    """
    json_settings = {}
    if path and path.exists():
        json_settings = json.loads(path.read_text())
        if not isinstance(json_settings, dict):
            raise ValueError(f"Settings file must contain a JSON object: {path}")

    known = {item.name for item in fields(Settings)}
    unknown = sorted(set(json_settings) - known)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(unknown)}")

    values: dict[str, object] = {}
    for name in known:
        if name not in json_settings:
            continue
        value = json_settings[name]
        if name == "format":
            if not isinstance(value, str):
                raise ValueError(f"Setting format must be a string, got {value!r}")
            values[name] = value
        else:
            values[name] = _parse_bool(name, value)

    env_format = os.getenv("CADENCE_FORMAT")
    if env_format:
        values["format"] = env_format
    env_overwrite = os.getenv("CADENCE_OVERWRITE")
    if env_overwrite:
        values["overwrite"] = _parse_bool("overwrite", env_overwrite)

    return replace(Settings(), **values)


def default_config_path() -> Path:
    return Path.home() / ".config" / "cadence" / "settings.json"
