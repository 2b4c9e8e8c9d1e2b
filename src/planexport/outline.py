from __future__ import annotations

from collections.abc import Iterable
from typing import Literal

from .events import OUTLINE_DEPTH_EXCEEDED, Diagnostics
from .hierarchy import HierarchyMaps
from .models import WorkingSet


OutlineMode = Literal["anchored", "hops"]
OUTLINE_MODES: tuple[OutlineMode, ...] = ("anchored", "hops")

MAX_OUTLINE_HOPS = 10
DEFAULT_OUTLINE_LEVELS: dict[str, int] = {
    "epic": 1,
    "feature": 2,
    "user story": 3,
    "task": 4,
    "bug": 4,
    "dependency": 4,
    "milestone": 4,
}
OTHER_OUTLINE_LEVEL = 5


def default_outline_level(work_item_type: str) -> int:
    return DEFAULT_OUTLINE_LEVELS.get(work_item_type.strip().lower(), OTHER_OUTLINE_LEVEL)


def _ancestor_hops(
    item_id: int,
    maps: HierarchyMaps,
    *,
    max_hops: int,
) -> tuple[int, int] | None:
    """Return (hops, top ancestor id), or None when the chain is too long or cyclic."""
    hops = 0
    current = item_id
    seen = {item_id}
    while True:
        parent_id = maps.child_to_parent.get(current)
        if parent_id is None:
            return hops, current
        if parent_id in seen or hops >= max_hops:
            return None
        seen.add(parent_id)
        hops += 1
        current = parent_id


def outline_level(
    item_id: int,
    working_set: WorkingSet,
    maps: HierarchyMaps,
    *,
    diagnostics: Diagnostics,
    max_hops: int = MAX_OUTLINE_HOPS,
    mode: OutlineMode = "anchored",
) -> int:
    """Outline depth of one item, 1-based.

    Items without a parent take their type's default level. In ``anchored``
    mode a child sits one level below its parent, counting from the top
    ancestor's default level; in ``hops`` mode the count starts at 1.
    """
    fallback = default_outline_level(working_set[item_id].type)
    if item_id not in maps.child_to_parent:
        return fallback

    chain = _ancestor_hops(item_id, maps, max_hops=max_hops)
    if chain is None:
        diagnostics.warning(
            OUTLINE_DEPTH_EXCEEDED,
            f"#{item_id}: parent chain is cyclic or deeper than {max_hops} levels; "
            f"using the default level {fallback}",
            item_id=item_id,
            max_hops=max_hops,
        )
        return fallback

    hops, top_id = chain
    if mode == "hops":
        return 1 + hops
    top = working_set.get(top_id)
    base = default_outline_level(top.type) if top is not None else 1
    return base + hops


def outline_levels(
    sequence: Iterable[int],
    working_set: WorkingSet,
    maps: HierarchyMaps,
    *,
    diagnostics: Diagnostics,
    max_hops: int = MAX_OUTLINE_HOPS,
    mode: OutlineMode = "anchored",
) -> dict[int, int]:
    return {
        item_id: outline_level(
            item_id,
            working_set,
            maps,
            diagnostics=diagnostics,
            max_hops=max_hops,
            mode=mode,
        )
        for item_id in sequence
    }
