from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import PayloadError
from ..models import RawRelation, WorkItem


class WorkItemSource(Protocol):
    def query(self) -> list[WorkItem]: ...

    def fetch_by_ids(self, ids: set[int]) -> list[WorkItem]: ...


class RelationPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    rel: str = ""
    url: str = ""

    @field_validator("rel", "url", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        # Left empty, the relation is dropped when it is classified.
        return "" if value is None else value


class WorkItemFields(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    work_item_type: str = Field(default="", alias="System.WorkItemType")
    title: str = Field(default="", alias="System.Title")
    state: str | None = Field(default=None, alias="System.State")
    assigned_to: str | None = Field(default=None, alias="System.AssignedTo")
    iteration_path: str | None = Field(default=None, alias="System.IterationPath")
    area_path: str | None = Field(default=None, alias="System.AreaPath")
    start_date: datetime | None = Field(
        default=None, alias="Microsoft.VSTS.Scheduling.StartDate"
    )
    finish_date: datetime | None = Field(
        default=None, alias="Microsoft.VSTS.Scheduling.FinishDate"
    )
    target_date: datetime | None = Field(
        default=None, alias="Microsoft.VSTS.Scheduling.TargetDate"
    )
    original_estimate: float | None = Field(
        default=None, alias="Microsoft.VSTS.Scheduling.OriginalEstimate"
    )
    remaining_work: float | None = Field(
        default=None, alias="Microsoft.VSTS.Scheduling.RemainingWork"
    )
    completed_work: float | None = Field(
        default=None, alias="Microsoft.VSTS.Scheduling.CompletedWork"
    )
    priority: int | None = Field(default=None, alias="Microsoft.VSTS.Common.Priority")

    @field_validator("assigned_to", mode="before")
    @classmethod
    def _identity_name(cls, value: Any) -> Any:
        # Identity fields arrive as {"displayName": ..., "uniqueName": ...}.
        if isinstance(value, Mapping):
            return value.get("displayName") or value.get("uniqueName")
        return value

    @field_validator("title", "work_item_type", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class WorkItemPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    item_fields: WorkItemFields = Field(default_factory=WorkItemFields, alias="fields")
    relations: list[RelationPayload] | None = None


def parse_work_item(payload: Mapping[str, Any]) -> WorkItem:
    try:
        parsed = WorkItemPayload.model_validate(payload)
    except ValidationError as exc:
        raw_id = payload.get("id") if isinstance(payload, Mapping) else None
        raise PayloadError(f"invalid work item payload (id={raw_id!r}): {exc}") from exc

    fields = parsed.item_fields
    return WorkItem(
        id=parsed.id,
        type=fields.work_item_type.strip(),
        title=fields.title.strip(),
        relations=tuple(
            RawRelation(rel=relation.rel, url=relation.url)
            for relation in parsed.relations or ()
        ),
        state=fields.state,
        assigned_to=fields.assigned_to,
        start_date=fields.start_date,
        finish_date=fields.finish_date or fields.target_date,
        original_estimate=fields.original_estimate,
        remaining_work=fields.remaining_work,
        completed_work=fields.completed_work,
        iteration_path=fields.iteration_path,
        area_path=fields.area_path,
        priority=fields.priority,
    )


def parse_work_items(payloads: Iterable[Mapping[str, Any]]) -> list[WorkItem]:
    return [parse_work_item(payload) for payload in payloads]


def unwrap_value_list(raw: Any) -> list[Any]:
    """Accept both a bare list and the REST API's ``{"count": n, "value": [...]}``."""
    if isinstance(raw, list):
        return raw
    if isinstance(raw, Mapping) and isinstance(raw.get("value"), list):
        return list(raw["value"])
    raise PayloadError("expected a list of work items or an object with a 'value' list")
