from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from .errors import EmptyWorkingSetError


EdgeKind = Literal[
    "parent-forward",
    "parent-reverse",
    "dependency-forward",
    "other",
]
PARENT_FORWARD: EdgeKind = "parent-forward"
PARENT_REVERSE: EdgeKind = "parent-reverse"
DEPENDENCY_FORWARD: EdgeKind = "dependency-forward"
OTHER: EdgeKind = "other"
HIERARCHY_KINDS = frozenset({PARENT_FORWARD, PARENT_REVERSE})


@dataclass(frozen=True)
class RawRelation:
    rel: str
    url: str


@dataclass(frozen=True)
class RelationEdge:
    source_id: int
    kind: EdgeKind
    target_id: int


@dataclass(frozen=True)
class WorkItem:
    id: int
    type: str
    title: str
    relations: tuple[RawRelation, ...] = ()
    state: str | None = None
    assigned_to: str | None = None
    start_date: datetime | None = None
    finish_date: datetime | None = None
    original_estimate: float | None = None
    remaining_work: float | None = None
    completed_work: float | None = None
    iteration_path: str | None = None
    area_path: str | None = None
    priority: int | None = None


class WorkingSet:
    """All work items visible to one resolution run, keyed by id.

    Ids are unique: ``add`` never replaces an item that is already present.
    The set only grows until ``freeze`` is called, after which it is read-only.
    """

    def __init__(self, items: Iterable[WorkItem]) -> None:
        self._items: dict[int, WorkItem] = {}
        self._frozen = False
        for item in items:
            self.add(item)
        if not self._items:
            raise EmptyWorkingSetError()

    def add(self, item: WorkItem) -> bool:
        if self._frozen:
            raise RuntimeError("working set is frozen")
        if item.id in self._items:
            return False
        self._items[item.id] = item
        return True

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, item_id: int) -> WorkItem | None:
        return self._items.get(item_id)

    def ids(self) -> list[int]:
        return list(self._items)

    def items(self) -> list[WorkItem]:
        return list(self._items.values())

    def as_mapping(self) -> dict[int, WorkItem]:
        return dict(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __getitem__(self, item_id: int) -> WorkItem:
        return self._items[item_id]

    def __iter__(self) -> Iterator[WorkItem]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)
