from __future__ import annotations

import re
from collections.abc import Iterable

from .events import EDGE_MALFORMED, Diagnostics
from .models import (
    DEPENDENCY_FORWARD,
    OTHER,
    PARENT_FORWARD,
    PARENT_REVERSE,
    EdgeKind,
    RawRelation,
    RelationEdge,
    WorkItem,
)


LINK_TYPE_TO_KIND: dict[str, EdgeKind] = {
    "system.linktypes.hierarchy-forward": PARENT_FORWARD,
    "system.linktypes.hierarchy-reverse": PARENT_REVERSE,
    "system.linktypes.dependency-forward": DEPENDENCY_FORWARD,
}

_TRAILING_ID_RE = re.compile(r"(\d+)\s*/?\s*$")


def relation_kind(rel: str) -> EdgeKind:
    return LINK_TYPE_TO_KIND.get(rel.strip().lower(), OTHER)


def parse_target_id(url: str) -> int | None:
    match = _TRAILING_ID_RE.search(url or "")
    if not match:
        return None
    return int(match.group(1))


def classify_relation(
    source_id: int,
    raw: RawRelation,
    *,
    diagnostics: Diagnostics | None = None,
) -> RelationEdge | None:
    kind = relation_kind(raw.rel)
    if kind == OTHER:
        return None

    target_id = parse_target_id(raw.url)
    if target_id is None:
        if diagnostics is not None:
            diagnostics.debug(
                EDGE_MALFORMED,
                f"#{source_id}: cannot read a work item id from {raw.url!r}",
                source_id=source_id,
                rel=raw.rel,
                url=raw.url,
            )
        return None
    return RelationEdge(source_id=source_id, kind=kind, target_id=target_id)


def classify_relations(
    item: WorkItem,
    *,
    diagnostics: Diagnostics | None = None,
) -> list[RelationEdge]:
    edges: list[RelationEdge] = []
    for raw in item.relations:
        edge = classify_relation(item.id, raw, diagnostics=diagnostics)
        if edge is not None:
            edges.append(edge)
    return edges


def classify_all(
    items: Iterable[WorkItem],
    *,
    diagnostics: Diagnostics | None = None,
) -> list[RelationEdge]:
    edges: list[RelationEdge] = []
    for item in items:
        edges.extend(classify_relations(item, diagnostics=diagnostics))
    return edges
