from __future__ import annotations

from collections.abc import Iterable
from typing import Callable

import pytest

from planexport.events import Diagnostics
from planexport.models import RawRelation, WorkItem


HIERARCHY_FORWARD = "System.LinkTypes.Hierarchy-Forward"
HIERARCHY_REVERSE = "System.LinkTypes.Hierarchy-Reverse"
DEPENDENCY_FORWARD = "System.LinkTypes.Dependency-Forward"

MakeItem = Callable[..., WorkItem]


def item_url(item_id: int) -> str:
    return f"https://dev.azure.com/acme/_apis/wit/workItems/{item_id}"


@pytest.fixture
def diagnostics() -> Diagnostics:
    return Diagnostics()


@pytest.fixture
def make_item() -> MakeItem:
    def factory(
        item_id: int,
        item_type: str,
        title: str,
        *,
        parent: int | None = None,
        children: Iterable[int] = (),
        successors: Iterable[int] = (),
        extra: Iterable[RawRelation] = (),
    ) -> WorkItem:
        relations: list[RawRelation] = []
        if parent is not None:
            relations.append(RawRelation(HIERARCHY_REVERSE, item_url(parent)))
        relations.extend(RawRelation(HIERARCHY_FORWARD, item_url(c)) for c in children)
        relations.extend(RawRelation(DEPENDENCY_FORWARD, item_url(s)) for s in successors)
        relations.extend(extra)
        return WorkItem(id=item_id, type=item_type, title=title, relations=tuple(relations))

    return factory
