from __future__ import annotations

import csv
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .config import ExportConfig
from .models import WorkItem
from .pipeline import OrderedResult


COLUMN_HEADERS: dict[str, str] = {
    "task": "ID",
    "outline_level": "Outline Level",
    "name": "Name",
    "work_item_id": "Work Item ID",
    "type": "Type",
    "state": "State",
    "assigned_to": "Resource Names",
    "start": "Start",
    "finish": "Finish",
    "work": "Work",
    "predecessors": "Predecessors",
}


@dataclass(frozen=True)
class ExportRow:
    task: int
    outline_level: int
    name: str
    work_item_id: int
    type: str
    state: str
    assigned_to: str
    start: str
    finish: str
    work: str
    predecessors: str

    def values(self, columns: Sequence[str]) -> list[str]:
        return [str(getattr(self, column)) for column in columns]


def format_number(value: float | None, *, decimal_separator: str = ".") -> str:
    if value is None:
        return ""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    if text in {"", "-0"}:
        text = "0"
    return text.replace(".", decimal_separator)


def format_date(value: datetime | None, *, date_format: str = "%Y-%m-%d") -> str:
    if value is None:
        return ""
    return value.strftime(date_format)


def _work_hours(item: WorkItem) -> float | None:
    if item.remaining_work is not None:
        return item.remaining_work
    return item.original_estimate


def build_rows(result: OrderedResult, config: ExportConfig | None = None) -> list[ExportRow]:
    cfg = config or ExportConfig()
    rows: list[ExportRow] = []
    for task_number, item_id in enumerate(result.sequence, start=1):
        item = result.items[item_id]
        work = format_number(_work_hours(item), decimal_separator=cfg.decimal_separator)
        rows.append(
            ExportRow(
                task=task_number,
                outline_level=result.outline_level(item_id),
                name=item.title,
                work_item_id=item.id,
                type=item.type,
                state=item.state or "",
                assigned_to=item.assigned_to or "",
                start=format_date(item.start_date, date_format=cfg.date_format),
                finish=format_date(item.finish_date, date_format=cfg.date_format),
                work=f"{work}h" if work else "",
                predecessors=result.predecessor_string(item_id),
            )
        )
    return rows


def write_csv(
    rows: Sequence[ExportRow],
    path: Path,
    *,
    columns: Sequence[str],
    delimiter: str = ",",
) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    # The BOM lets spreadsheet tools detect UTF-8.
    with open(path, "w", newline="", encoding="utf-8-sig") as handle:
        writer = csv.writer(handle, delimiter=delimiter)
        writer.writerow([COLUMN_HEADERS[column] for column in columns])
        for row in rows:
            writer.writerow(row.values(columns))
