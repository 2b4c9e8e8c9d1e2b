from __future__ import annotations

import pytest

from planexport.errors import EmptyWorkingSetError
from planexport.events import Diagnostics, ResolveEvent, normalize_level
from planexport.models import WorkingSet, WorkItem


def test_diagnostics_records_and_forwards_events() -> None:
    seen: list[ResolveEvent] = []
    diagnostics = Diagnostics(seen.append)

    diagnostics.debug("edge.dangling", "ignored", source_id=1)
    diagnostics.warning("ordering.no_roots", "fallback")

    assert [event.kind for event in seen] == ["edge.dangling", "ordering.no_roots"]
    assert seen[0].payload == {"source_id": 1}
    assert seen[0].timestamp.endswith("Z")
    assert [event.kind for event in diagnostics.warnings] == ["ordering.no_roots"]


def test_diagnostics_filters_below_minimum_level() -> None:
    diagnostics = Diagnostics(min_level="warning")

    diagnostics.debug("edge.malformed", "skip")
    diagnostics.info("ordering.strategy", "skip")
    diagnostics.warning("outline.depth_exceeded", "keep")

    assert diagnostics.kinds() == ["outline.depth_exceeded"]


def test_normalize_level_rejects_unknown_levels() -> None:
    assert normalize_level(" Warning ") == "warning"
    with pytest.raises(ValueError, match="invalid event level"):
        normalize_level("fatal")


def test_working_set_requires_items_and_keeps_first_copy() -> None:
    with pytest.raises(EmptyWorkingSetError):
        WorkingSet([])

    first = WorkItem(id=1, type="Epic", title="First")
    working_set = WorkingSet([first, WorkItem(id=1, type="Epic", title="Second")])

    assert len(working_set) == 1
    assert working_set[1] is first
    assert working_set.add(WorkItem(id=2, type="Task", title="T")) is True
    assert working_set.add(WorkItem(id=2, type="Task", title="T again")) is False
    assert working_set.ids() == [1, 2]
