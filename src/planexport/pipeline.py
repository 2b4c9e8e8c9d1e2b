"""End-to-end plan resolution: work items in, ordered plan out."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .ancestors import FetchByIds, resolve_missing_ancestors
from .config import ExportConfig
from .dependencies import build_dependency_map, resolve_predecessors
from .events import Diagnostics
from .hierarchy import HierarchyMaps, build_hierarchy
from .models import WorkingSet, WorkItem
from .ordering import OrderingStrategy, order_items
from .outline import outline_levels
from .relations import classify_all


@dataclass(frozen=True)
class OrderedResult:
    sequence: tuple[int, ...]
    outline_levels: Mapping[int, int]
    predecessors: Mapping[int, str]
    items: Mapping[int, WorkItem]
    strategy: OrderingStrategy
    hierarchy: HierarchyMaps = field(repr=False, compare=False, default_factory=HierarchyMaps)
    added_ancestor_ids: tuple[int, ...] = ()
    unresolved_ancestor_ids: frozenset[int] = frozenset()

    def position(self, item_id: int) -> int:
        return self.sequence.index(item_id) + 1

    def outline_level(self, item_id: int) -> int:
        return self.outline_levels[item_id]

    def predecessor_string(self, item_id: int) -> str:
        return self.predecessors.get(item_id, "")

    def ordered_items(self) -> list[WorkItem]:
        return [self.items[item_id] for item_id in self.sequence]


def resolve_plan(
    items: Iterable[WorkItem],
    *,
    fetch: FetchByIds | None = None,
    config: ExportConfig | None = None,
    diagnostics: Diagnostics | None = None,
) -> OrderedResult:
    """Order work items for a scheduling export.

    Raises ``EmptyWorkingSetError`` when ``items`` is empty; every other data
    problem degrades to a fallback and is reported through ``diagnostics``.
    """
    cfg = config or ExportConfig()
    diag = diagnostics or Diagnostics()

    working_set = WorkingSet(items)
    edges = classify_all(working_set, diagnostics=diag)

    added: tuple[int, ...] = ()
    unresolved: frozenset[int] = frozenset()
    if cfg.resolve_ancestors:
        resolution = resolve_missing_ancestors(
            working_set,
            edges,
            fetch,
            diagnostics=diag,
        )
        edges = list(resolution.edges)
        added = resolution.added_ids
        unresolved = resolution.unresolved_ids

    working_set.freeze()

    maps = build_hierarchy(working_set, edges, diagnostics=diag)
    sequence, strategy = order_items(working_set, maps, diagnostics=diag)
    levels = outline_levels(
        sequence,
        working_set,
        maps,
        diagnostics=diag,
        max_hops=cfg.max_outline_hops,
        mode=cfg.outline_mode,
    )
    dep_map = build_dependency_map(
        edges,
        sequence,
        direction=cfg.dependency_direction,
        diagnostics=diag,
    )
    predecessors = resolve_predecessors(sequence, dep_map, delimiter=cfg.delimiter)

    return OrderedResult(
        sequence=tuple(sequence),
        outline_levels=MappingProxyType(levels),
        predecessors=MappingProxyType(predecessors),
        items=MappingProxyType(working_set.as_mapping()),
        strategy=strategy,
        hierarchy=maps,
        added_ancestor_ids=added,
        unresolved_ancestor_ids=unresolved,
    )
