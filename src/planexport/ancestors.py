from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Callable

from .events import (
    ANCESTORS_FETCH_FAILED,
    ANCESTORS_PARTIAL,
    ANCESTORS_REQUESTED,
    Diagnostics,
)
from .models import PARENT_REVERSE, RelationEdge, WorkingSet, WorkItem
from .relations import classify_relations


FetchByIds = Callable[[set[int]], list[WorkItem]]


@dataclass(frozen=True)
class AncestorResolution:
    edges: tuple[RelationEdge, ...]
    requested_ids: frozenset[int] = frozenset()
    added_ids: tuple[int, ...] = ()
    unresolved_ids: frozenset[int] = frozenset()
    error: str | None = None
    fetched: bool = False


def missing_parent_ids(
    working_set: WorkingSet,
    edges: Iterable[RelationEdge],
) -> set[int]:
    return {
        edge.target_id
        for edge in edges
        if edge.kind == PARENT_REVERSE and edge.target_id not in working_set
    }


def resolve_missing_ancestors(
    working_set: WorkingSet,
    edges: Iterable[RelationEdge],
    fetch: FetchByIds | None,
    *,
    diagnostics: Diagnostics,
) -> AncestorResolution:
    """Fetch parents referenced by the working set but not part of it.

    Runs a single batched fetch. Parents of the fetched ancestors that are
    still missing are reported as unresolved; their descendants end up as
    roots of the ordering.
    """
    known_edges = list(edges)
    missing = missing_parent_ids(working_set, known_edges)
    if not missing:
        return AncestorResolution(edges=tuple(known_edges))

    if fetch is None:
        diagnostics.warning(
            ANCESTORS_PARTIAL,
            f"{len(missing)} parent item(s) are outside the export and no source "
            "is available to fetch them",
            missing=sorted(missing),
        )
        return AncestorResolution(
            edges=tuple(known_edges),
            requested_ids=frozenset(missing),
            unresolved_ids=frozenset(missing),
        )

    diagnostics.info(
        ANCESTORS_REQUESTED,
        f"fetching {len(missing)} missing parent item(s)",
        ids=sorted(missing),
    )

    error: str | None = None
    try:
        fetched = list(fetch(set(missing)))
    except Exception as exc:
        error = str(exc) or exc.__class__.__name__
        fetched = []
        diagnostics.warning(
            ANCESTORS_FETCH_FAILED,
            f"fetching parent items failed: {error}",
            ids=sorted(missing),
        )

    added: list[int] = []
    for item in sorted(fetched, key=lambda candidate: candidate.id):
        if item.id not in missing:
            continue
        if not working_set.add(item):
            continue
        added.append(item.id)
        known_edges.extend(classify_relations(item, diagnostics=diagnostics))

    unresolved = missing - set(added)
    if unresolved and error is None:
        diagnostics.warning(
            ANCESTORS_PARTIAL,
            f"{len(unresolved)} parent item(s) could not be retrieved; "
            "their children are exported as top-level items",
            ids=sorted(unresolved),
        )

    still_missing = missing_parent_ids(working_set, known_edges) - unresolved
    if still_missing:
        diagnostics.warning(
            ANCESTORS_PARTIAL,
            f"{len(still_missing)} grand-parent item(s) remain outside the export",
            ids=sorted(still_missing),
        )

    return AncestorResolution(
        edges=tuple(known_edges),
        requested_ids=frozenset(missing),
        added_ids=tuple(added),
        unresolved_ids=frozenset(unresolved | still_missing),
        error=error,
        fetched=True,
    )
