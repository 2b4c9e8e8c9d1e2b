"""Diagnostic events emitted while a plan is resolved.

Every component receives a :class:`Diagnostics` instance explicitly instead of
reaching for a module-level logger. The CLI attaches a sink that renders the
events; tests inspect ``diagnostics.events`` directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Literal

from .util import utc_now_iso


EventLevel = Literal["debug", "info", "warning"]
EVENT_LEVELS: tuple[EventLevel, ...] = ("debug", "info", "warning")
_LEVEL_RANK = {level: rank for rank, level in enumerate(EVENT_LEVELS)}

EDGE_MALFORMED = "edge.malformed"
EDGE_DANGLING = "edge.dangling"
ANCESTORS_REQUESTED = "ancestors.requested"
ANCESTORS_FETCH_FAILED = "ancestors.fetch_failed"
ANCESTORS_PARTIAL = "ancestors.partial"
HIERARCHY_PARENT_CONFLICT = "hierarchy.parent_conflict"
ORDERING_NO_ROOTS = "ordering.no_roots"
ORDERING_UNREACHABLE = "ordering.unreachable"
ORDERING_STRATEGY = "ordering.strategy"
OUTLINE_DEPTH_EXCEEDED = "outline.depth_exceeded"
DEPENDENCY_DANGLING = "dependency.dangling"


@dataclass(frozen=True)
class ResolveEvent:
    level: EventLevel
    kind: str
    message: str
    timestamp: str
    payload: dict[str, Any] = field(default_factory=dict)


EventSink = Callable[[ResolveEvent], None]


def normalize_level(raw: str) -> EventLevel:
    value = raw.strip().lower()
    if value not in _LEVEL_RANK:
        expected = ", ".join(EVENT_LEVELS)
        raise ValueError(f"invalid event level {raw!r}; expected one of: {expected}")
    return value  # type: ignore[return-value]


class Diagnostics:
    def __init__(
        self,
        sink: EventSink | None = None,
        *,
        min_level: EventLevel = "debug",
    ) -> None:
        self.sink = sink
        self.min_level = normalize_level(min_level)
        self.events: list[ResolveEvent] = []

    def emit(self, level: EventLevel, kind: str, message: str, **payload: Any) -> None:
        if _LEVEL_RANK[level] < _LEVEL_RANK[self.min_level]:
            return
        event = ResolveEvent(
            level=level,
            kind=kind,
            message=message,
            timestamp=utc_now_iso(),
            payload=dict(payload),
        )
        self.events.append(event)
        if self.sink is not None:
            self.sink(event)

    def debug(self, kind: str, message: str, **payload: Any) -> None:
        self.emit("debug", kind, message, **payload)

    def info(self, kind: str, message: str, **payload: Any) -> None:
        self.emit("info", kind, message, **payload)

    def warning(self, kind: str, message: str, **payload: Any) -> None:
        self.emit("warning", kind, message, **payload)

    @property
    def warnings(self) -> list[ResolveEvent]:
        return [event for event in self.events if event.level == "warning"]

    def kinds(self) -> list[str]:
        return [event.kind for event in self.events]
