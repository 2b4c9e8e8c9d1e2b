from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .events import EDGE_DANGLING, HIERARCHY_PARENT_CONFLICT, Diagnostics
from .models import HIERARCHY_KINDS, PARENT_FORWARD, RelationEdge, WorkingSet


@dataclass
class HierarchyMaps:
    parent_to_children: dict[int, list[int]] = field(default_factory=dict)
    child_to_parent: dict[int, int] = field(default_factory=dict)

    @property
    def has_edges(self) -> bool:
        return bool(self.child_to_parent)

    def children(self, item_id: int) -> list[int]:
        return list(self.parent_to_children.get(item_id, ()))

    def parent(self, item_id: int) -> int | None:
        return self.child_to_parent.get(item_id)

    def link(
        self,
        parent_id: int,
        child_id: int,
        *,
        diagnostics: Diagnostics,
    ) -> None:
        previous = self.child_to_parent.get(child_id)
        if previous is not None and previous != parent_id:
            diagnostics.warning(
                HIERARCHY_PARENT_CONFLICT,
                f"#{child_id} has more than one parent (#{previous}, #{parent_id}); "
                f"keeping #{parent_id}",
                child_id=child_id,
                previous_parent_id=previous,
                parent_id=parent_id,
            )
            siblings = self.parent_to_children.get(previous, [])
            if child_id in siblings:
                siblings.remove(child_id)
            if not siblings:
                self.parent_to_children.pop(previous, None)

        self.child_to_parent[child_id] = parent_id
        children = self.parent_to_children.setdefault(parent_id, [])
        if child_id not in children:
            children.append(child_id)


def _edge_key(edge: RelationEdge) -> tuple[int, str, int]:
    return (edge.source_id, edge.kind, edge.target_id)


def build_hierarchy(
    working_set: WorkingSet,
    edges: Iterable[RelationEdge],
    *,
    diagnostics: Diagnostics,
) -> HierarchyMaps:
    """Build parent/child maps from the hierarchy edges of the working set.

    Edges are linked in (source_id, kind, target_id) order, so the parent kept
    for a child with conflicting links does not depend on input order.
    """
    maps = HierarchyMaps()
    for edge in sorted(edges, key=_edge_key):
        if edge.kind not in HIERARCHY_KINDS:
            continue
        if edge.kind == PARENT_FORWARD:
            parent_id, child_id = edge.source_id, edge.target_id
        else:
            parent_id, child_id = edge.target_id, edge.source_id

        if parent_id == child_id:
            diagnostics.debug(
                EDGE_DANGLING,
                f"#{parent_id}: ignoring hierarchy link to itself",
                source_id=edge.source_id,
                target_id=edge.target_id,
            )
            continue

        absent = [
            item_id for item_id in (parent_id, child_id) if item_id not in working_set
        ]
        if absent:
            diagnostics.debug(
                EDGE_DANGLING,
                f"#{edge.source_id}: ignoring {edge.kind} link, "
                f"#{absent[0]} is not part of the export",
                source_id=edge.source_id,
                target_id=edge.target_id,
                edge_kind=edge.kind,
            )
            continue

        maps.link(parent_id, child_id, diagnostics=diagnostics)
    return maps
