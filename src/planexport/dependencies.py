from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping, Sequence
from typing import Literal

from .events import DEPENDENCY_DANGLING, Diagnostics
from .models import DEPENDENCY_FORWARD, RelationEdge


DependencyDirection = Literal["forward-is-predecessor", "forward-is-successor"]
DEPENDENCY_DIRECTIONS: tuple[DependencyDirection, ...] = (
    "forward-is-predecessor",
    "forward-is-successor",
)
DEFAULT_PREDECESSOR_DELIMITER = ";"

DependencyMap = dict[int, set[int]]


def build_dependency_map(
    edges: Iterable[RelationEdge],
    present_ids: Collection[int],
    *,
    direction: DependencyDirection = "forward-is-predecessor",
    diagnostics: Diagnostics | None = None,
) -> DependencyMap:
    """Map each successor id to the ids that must finish before it.

    With ``forward-is-predecessor`` a Dependency-Forward link declared on A
    and pointing at B means A precedes B. ``forward-is-successor`` reads the
    same link the other way round.
    """
    present = set(present_ids)
    dep_map: DependencyMap = {}
    for edge in edges:
        if edge.kind != DEPENDENCY_FORWARD:
            continue
        if direction == "forward-is-predecessor":
            predecessor, successor = edge.source_id, edge.target_id
        else:
            predecessor, successor = edge.target_id, edge.source_id

        if predecessor == successor:
            continue
        if predecessor not in present or successor not in present:
            if diagnostics is not None:
                diagnostics.debug(
                    DEPENDENCY_DANGLING,
                    f"#{edge.source_id}: ignoring dependency on #{edge.target_id}, "
                    "not part of the export",
                    source_id=edge.source_id,
                    target_id=edge.target_id,
                )
            continue
        dep_map.setdefault(successor, set()).add(predecessor)
    return dep_map


def positions_for(sequence: Sequence[int]) -> dict[int, int]:
    return {item_id: index for index, item_id in enumerate(sequence, start=1)}


def predecessor_string(
    item_id: int,
    dep_map: Mapping[int, Collection[int]],
    positions: Mapping[int, int],
    *,
    delimiter: str = DEFAULT_PREDECESSOR_DELIMITER,
) -> str:
    numbers = {
        positions[predecessor_id]
        for predecessor_id in dep_map.get(item_id, ())
        if predecessor_id in positions and predecessor_id != item_id
    }
    return delimiter.join(str(number) for number in sorted(numbers))


def resolve_predecessors(
    sequence: Sequence[int],
    dep_map: Mapping[int, Collection[int]],
    *,
    delimiter: str = DEFAULT_PREDECESSOR_DELIMITER,
) -> dict[int, str]:
    positions = positions_for(sequence)
    return {
        item_id: predecessor_string(
            item_id,
            dep_map,
            positions,
            delimiter=delimiter,
        )
        for item_id in sequence
    }
