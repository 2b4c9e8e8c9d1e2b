from __future__ import annotations

from pathlib import Path

import pytest
import tomllib

from planexport.config import (
    CONFIG_FILENAME,
    ExportConfig,
    discover_config_path,
    load_config,
    parse_export_table,
)
from planexport.errors import ConfigValidationError


def _write_config(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body.strip() + "\n", encoding="utf-8")
    return path


def test_load_config_without_file_returns_defaults(tmp_path: Path) -> None:
    loaded = load_config(cwd=tmp_path)
    assert loaded.path is None
    assert loaded.error is None
    assert loaded.config == ExportConfig()


def test_load_config_reads_export_table(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path / CONFIG_FILENAME,
        """
[export]
delimiter = ","
csv_delimiter = ";"
resolve_ancestors = false
dependency_direction = "Forward-Is-Successor"
max_outline_hops = 6
outline_mode = "hops"
decimal_separator = ","
date_format = "%d.%m.%Y"
columns = ["task", "outline_level", "name", "predecessors", "name"]
log_level = "warning"
""",
    )

    loaded = load_config(path)

    assert loaded.error is None
    cfg = loaded.config
    assert cfg.delimiter == ","
    assert cfg.csv_delimiter == ";"
    assert cfg.resolve_ancestors is False
    assert cfg.dependency_direction == "forward-is-successor"
    assert cfg.max_outline_hops == 6
    assert cfg.outline_mode == "hops"
    assert cfg.decimal_separator == ","
    assert cfg.date_format == "%d.%m.%Y"
    assert cfg.columns == ("task", "outline_level", "name", "predecessors")
    assert cfg.min_event_level == "warning"


def test_config_is_discovered_in_parent_directories(tmp_path: Path) -> None:
    path = _write_config(tmp_path / CONFIG_FILENAME, '[export]\ndelimiter = "|"')
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    assert discover_config_path(nested) == path.resolve()
    assert load_config(cwd=nested).config.delimiter == "|"


def test_invalid_toml_is_reported(tmp_path: Path) -> None:
    path = _write_config(tmp_path / CONFIG_FILENAME, "[export\ndelimiter = ")

    loaded = load_config(path)

    assert loaded.error is not None
    assert "invalid TOML" in loaded.error
    assert loaded.config == ExportConfig()


def test_missing_explicit_file_is_reported(tmp_path: Path) -> None:
    loaded = load_config(tmp_path / "nope.toml")
    assert loaded.error is not None
    assert "not found" in loaded.error


@pytest.mark.parametrize(
    ("body", "message"),
    [
        ('dependency_direction = "sideways"', "dependency_direction must be one of"),
        ("max_outline_hops = 0", "max_outline_hops must be a positive integer"),
        ('resolve_ancestors = "yes"', "resolve_ancestors must be a boolean"),
        ('columns = ["name", "cost"]', "unknown column"),
        ('csv_delimiter = ";;"', "single character"),
        ('delimiter = ","', "must differ"),
        ('log_level = "trace"', "log_level must be one of"),
    ],
)
def test_invalid_values_are_rejected(body: str, message: str) -> None:
    with pytest.raises(ConfigValidationError, match=message):
        parse_export_table(tomllib.loads(f"{body}\n"))


def test_validation_errors_are_reported_with_the_path(tmp_path: Path) -> None:
    path = _write_config(tmp_path / CONFIG_FILENAME, "[export]\nmax_outline_hops = -1")
    loaded = load_config(path)
    assert loaded.error is not None
    assert str(path) in loaded.error


def test_with_overrides_ignores_unset_values() -> None:
    cfg = ExportConfig()
    assert cfg.with_overrides(delimiter=None) is cfg
    assert cfg.with_overrides(delimiter="|").delimiter == "|"
