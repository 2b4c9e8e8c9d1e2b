from __future__ import annotations

from collections.abc import Iterable
from typing import Literal

from .events import (
    ORDERING_NO_ROOTS,
    ORDERING_STRATEGY,
    ORDERING_UNREACHABLE,
    Diagnostics,
)
from .hierarchy import HierarchyMaps
from .models import WorkingSet, WorkItem


OrderingStrategy = Literal["hierarchy", "type", "type-fallback"]

TYPE_PRIORITY: dict[str, int] = {
    "epic": 0,
    "feature": 1,
    "user story": 2,
    "task": 3,
    "bug": 3,
    "dependency": 4,
    "milestone": 5,
}
OTHER_TYPE_PRIORITY = 6


def type_priority(work_item_type: str) -> int:
    return TYPE_PRIORITY.get(work_item_type.strip().lower(), OTHER_TYPE_PRIORITY)


def _title_key(item: WorkItem) -> tuple[str, str, int]:
    return (item.title.casefold(), item.title, item.id)


def root_sort_key(item: WorkItem) -> tuple[int, str, str, int]:
    return (type_priority(item.type), *_title_key(item))


def child_sort_key(item: WorkItem) -> tuple[str, str, int]:
    return _title_key(item)


def order_by_type(
    working_set: WorkingSet,
    ids: Iterable[int] | None = None,
) -> list[int]:
    selected = working_set.ids() if ids is None else list(ids)
    buckets: dict[int, list[WorkItem]] = {}
    for item_id in selected:
        item = working_set[item_id]
        buckets.setdefault(type_priority(item.type), []).append(item)

    ordered: list[int] = []
    for priority in sorted(buckets):
        ordered.extend(item.id for item in sorted(buckets[priority], key=child_sort_key))
    return ordered


def hierarchy_roots(working_set: WorkingSet, maps: HierarchyMaps) -> list[int]:
    roots = [item for item in working_set if item.id not in maps.child_to_parent]
    return [item.id for item in sorted(roots, key=root_sort_key)]


def order_by_hierarchy(
    working_set: WorkingSet,
    maps: HierarchyMaps,
    *,
    diagnostics: Diagnostics,
) -> list[int]:
    """Emit every root followed by its subtree, depth first.

    Each id is emitted once even when the maps contain duplicate or
    conflicting links. Items that no root reaches (parent cycles) are
    appended in type order.
    """
    roots = hierarchy_roots(working_set, maps)
    if not roots:
        diagnostics.warning(
            ORDERING_NO_ROOTS,
            "the hierarchy has no top-level item; ordering all items by type",
            items=len(working_set),
        )
        return order_by_type(working_set)

    sequence: list[int] = []
    processed: set[int] = set()
    for root_id in roots:
        stack = [root_id]
        while stack:
            current = stack.pop()
            if current in processed:
                continue
            processed.add(current)
            sequence.append(current)

            children = [
                working_set[child_id]
                for child_id in maps.children(current)
                if child_id in working_set and child_id not in processed
            ]
            for child in sorted(children, key=child_sort_key, reverse=True):
                stack.append(child.id)

    leftover = [item_id for item_id in working_set.ids() if item_id not in processed]
    if leftover:
        diagnostics.warning(
            ORDERING_UNREACHABLE,
            f"{len(leftover)} item(s) sit in a parent cycle; appending them by type",
            ids=sorted(leftover),
        )
        sequence.extend(order_by_type(working_set, leftover))
    return sequence


def order_items(
    working_set: WorkingSet,
    maps: HierarchyMaps,
    *,
    diagnostics: Diagnostics,
) -> tuple[list[int], OrderingStrategy]:
    if not maps.has_edges:
        diagnostics.info(
            ORDERING_STRATEGY,
            "no parent/child links found; ordering by work item type",
            strategy="type",
        )
        return order_by_type(working_set), "type"

    if not hierarchy_roots(working_set, maps):
        sequence = order_by_hierarchy(working_set, maps, diagnostics=diagnostics)
        return sequence, "type-fallback"

    diagnostics.info(
        ORDERING_STRATEGY,
        "ordering by parent/child hierarchy",
        strategy="hierarchy",
    )
    return order_by_hierarchy(working_set, maps, diagnostics=diagnostics), "hierarchy"
