from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path

from ..errors import PayloadError
from ..models import WorkItem
from .base import parse_work_items, unwrap_value_list


def read_work_items(path: Path) -> list[WorkItem]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8-sig"))
    except FileNotFoundError as exc:
        raise PayloadError(f"input file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise PayloadError(f"invalid JSON in {path}: {exc}") from exc
    return parse_work_items(unwrap_value_list(raw))


class JsonFileSource:
    """Work items read from JSON dumps of the tracker's REST responses.

    ``query`` returns the primary dump. ``fetch_by_ids`` serves items from the
    extra dumps and returns whatever subset of the requested ids it has.
    """

    def __init__(self, path: Path, *, extra_paths: Iterable[Path] = ()) -> None:
        self.path = path
        self.extra_paths = tuple(extra_paths)
        self._pool: dict[int, WorkItem] | None = None

    def query(self) -> list[WorkItem]:
        return read_work_items(self.path)

    def _load_pool(self) -> dict[int, WorkItem]:
        if self._pool is None:
            pool: dict[int, WorkItem] = {}
            for path in self.extra_paths:
                for item in read_work_items(path):
                    pool.setdefault(item.id, item)
            self._pool = pool
        return self._pool

    def fetch_by_ids(self, ids: set[int]) -> list[WorkItem]:
        pool = self._load_pool()
        return [pool[item_id] for item_id in sorted(ids) if item_id in pool]
