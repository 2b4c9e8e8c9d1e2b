from __future__ import annotations

import csv
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from planexport.config import ExportConfig
from planexport.pipeline import resolve_plan
from planexport.rows import build_rows, format_date, format_number, write_csv


def test_format_number_trims_and_localises() -> None:
    assert format_number(None) == ""
    assert format_number(8.0) == "8"
    assert format_number(2.5) == "2.5"
    assert format_number(2.5, decimal_separator=",") == "2,5"
    assert format_number(0.333) == "0.33"
    assert format_number(-0.0) == "0"


def test_format_date() -> None:
    assert format_date(None) == ""
    assert format_date(datetime(2024, 3, 1, 8, 30)) == "2024-03-01"
    assert format_date(datetime(2024, 3, 1), date_format="%d.%m.%Y") == "01.03.2024"


def test_build_rows_follows_the_plan_order(make_item) -> None:
    epic = make_item(1, "Epic", "Launch", successors=[3])
    story = replace(
        make_item(2, "User Story", "Sign up", parent=1),
        state="Active",
        assigned_to="Sam Lee",
        start_date=datetime(2024, 3, 1),
        finish_date=datetime(2024, 3, 8),
        original_estimate=16.0,
        remaining_work=6.5,
    )
    task = make_item(3, "Task", "Deploy", parent=2)

    result = resolve_plan([task, story, epic])
    rows = build_rows(result, ExportConfig(decimal_separator=","))

    assert [row.work_item_id for row in rows] == [1, 2, 3]
    assert [row.task for row in rows] == [1, 2, 3]
    assert [row.outline_level for row in rows] == [1, 2, 3]
    assert rows[1].assigned_to == "Sam Lee"
    assert rows[1].start == "2024-03-01"
    assert rows[1].work == "6,5h"
    assert rows[0].work == ""
    assert rows[2].predecessors == "1"
    assert rows[0].state == ""


def test_write_csv_uses_headers_and_selected_columns(make_item, tmp_path: Path) -> None:
    result = resolve_plan(
        [
            make_item(1, "Task", "First", successors=[2]),
            make_item(2, "Task", "Second; with separator"),
        ]
    )
    out = tmp_path / "out" / "plan.csv"

    write_csv(
        build_rows(result),
        out,
        columns=("task", "name", "predecessors"),
        delimiter=";",
    )

    raw = out.read_bytes()
    assert raw.startswith(b"\xef\xbb\xbf")
    with open(out, newline="", encoding="utf-8-sig") as handle:
        parsed = list(csv.reader(handle, delimiter=";"))
    assert parsed == [
        ["ID", "Name", "Predecessors"],
        ["1", "First", ""],
        ["2", "Second; with separator", "1"],
    ]
