from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import tomllib

from .dependencies import (
    DEFAULT_PREDECESSOR_DELIMITER,
    DEPENDENCY_DIRECTIONS,
    DependencyDirection,
)
from .errors import ConfigValidationError
from .events import EVENT_LEVELS, EventLevel
from .outline import MAX_OUTLINE_HOPS, OUTLINE_MODES, OutlineMode


CONFIG_FILENAME = ".planexport.toml"

EXPORT_COLUMNS = (
    "task",
    "outline_level",
    "name",
    "work_item_id",
    "type",
    "state",
    "assigned_to",
    "start",
    "finish",
    "work",
    "predecessors",
)
DEFAULT_COLUMNS = EXPORT_COLUMNS


@dataclass(frozen=True)
class ExportConfig:
    delimiter: str = DEFAULT_PREDECESSOR_DELIMITER
    csv_delimiter: str = ","
    resolve_ancestors: bool = True
    dependency_direction: DependencyDirection = "forward-is-predecessor"
    max_outline_hops: int = MAX_OUTLINE_HOPS
    outline_mode: OutlineMode = "anchored"
    decimal_separator: str = "."
    date_format: str = "%Y-%m-%d"
    columns: tuple[str, ...] = DEFAULT_COLUMNS
    min_event_level: EventLevel = "info"

    def with_overrides(self, **changes: Any) -> "ExportConfig":
        updates = {key: value for key, value in changes.items() if value is not None}
        if not updates:
            return self
        return replace(self, **updates)


@dataclass(frozen=True)
class ExportConfigFile:
    path: Path | None
    config: ExportConfig = field(default_factory=ExportConfig)
    error: str | None = None


def _as_str(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    if not stripped:
        return None
    return stripped


def _as_delimiter(value: object, *, field: str) -> str:
    # Delimiters are taken verbatim, whitespace included.
    if not isinstance(value, str) or not value:
        raise ConfigValidationError(f"{field} must be a non-empty string")
    return value


def _as_choice(value: object, *, field: str, choices: tuple[str, ...]) -> str:
    text = _as_str(value)
    lowered = text.lower() if text else None
    if lowered not in choices:
        expected = ", ".join(choices)
        raise ConfigValidationError(f"{field} must be one of: {expected}")
    return lowered


def _parse_columns(value: object) -> tuple[str, ...]:
    field = "[export].columns"
    if not isinstance(value, list) or not value:
        raise ConfigValidationError(f"{field} must be a non-empty array of strings")

    out: list[str] = []
    for idx, item in enumerate(value):
        text = _as_str(item)
        if text is None:
            raise ConfigValidationError(f"{field}[{idx}] must be a non-empty string")
        name = text.lower()
        if name not in EXPORT_COLUMNS:
            raise ConfigValidationError(f"unknown column in {field}: {text!r}")
        if name not in out:
            out.append(name)
    return tuple(out)


def parse_export_table(raw: object) -> ExportConfig:
    if raw is None:
        return ExportConfig()
    if not isinstance(raw, dict):
        raise ConfigValidationError("[export] must be a table")

    changes: dict[str, Any] = {}
    if "delimiter" in raw:
        changes["delimiter"] = _as_delimiter(raw["delimiter"], field="[export].delimiter")
    if "csv_delimiter" in raw:
        delimiter = _as_delimiter(raw["csv_delimiter"], field="[export].csv_delimiter")
        if len(delimiter) != 1:
            raise ConfigValidationError("[export].csv_delimiter must be a single character")
        changes["csv_delimiter"] = delimiter
    if "resolve_ancestors" in raw:
        value = raw["resolve_ancestors"]
        if not isinstance(value, bool):
            raise ConfigValidationError("[export].resolve_ancestors must be a boolean")
        changes["resolve_ancestors"] = value
    if "dependency_direction" in raw:
        changes["dependency_direction"] = _as_choice(
            raw["dependency_direction"],
            field="[export].dependency_direction",
            choices=DEPENDENCY_DIRECTIONS,
        )
    if "max_outline_hops" in raw:
        value = raw["max_outline_hops"]
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigValidationError("[export].max_outline_hops must be a positive integer")
        changes["max_outline_hops"] = value
    if "outline_mode" in raw:
        changes["outline_mode"] = _as_choice(
            raw["outline_mode"],
            field="[export].outline_mode",
            choices=OUTLINE_MODES,
        )
    if "decimal_separator" in raw:
        changes["decimal_separator"] = _as_delimiter(
            raw["decimal_separator"], field="[export].decimal_separator"
        )
    if "date_format" in raw:
        date_format = _as_str(raw["date_format"])
        if date_format is None:
            raise ConfigValidationError("[export].date_format must be a non-empty string")
        changes["date_format"] = date_format
    if "columns" in raw:
        changes["columns"] = _parse_columns(raw["columns"])
    if "log_level" in raw:
        changes["min_event_level"] = _as_choice(
            raw["log_level"],
            field="[export].log_level",
            choices=EVENT_LEVELS,
        )

    config = ExportConfig(**changes)
    if config.delimiter == config.csv_delimiter:
        raise ConfigValidationError(
            "[export].delimiter must differ from [export].csv_delimiter"
        )
    return config


def discover_config_path(cwd: Path | None = None) -> Path | None:
    start = (cwd or Path.cwd()).resolve()
    for base in (start, *start.parents):
        candidate = base / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Path | None = None, *, cwd: Path | None = None) -> ExportConfigFile:
    resolved = path if path is not None else discover_config_path(cwd)
    if resolved is None:
        return ExportConfigFile(path=None)
    if not resolved.is_file():
        return ExportConfigFile(path=resolved, error=f"config file not found: {resolved}")

    try:
        raw = tomllib.loads(resolved.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        return ExportConfigFile(path=resolved, error=f"invalid TOML in {resolved}: {exc}")

    try:
        config = parse_export_table(raw.get("export"))
    except ConfigValidationError as exc:
        return ExportConfigFile(path=resolved, error=f"{resolved}: {exc}")
    return ExportConfigFile(path=resolved, config=config)
