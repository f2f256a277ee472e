"""Statistics, dashboard and event schemas."""

from __future__ import annotations

import uuid
import datetime as dt
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from .tasks import TaskRead


class PriorityCount(BaseModel):
    priority: str  # low | medium | high | none
    count: int


class TagCount(BaseModel):
    tag: str  # "untagged" for tasks without tags
    count: int


class StatusCounts(BaseModel):
    completed: int
    pending: int


class RatePoint(BaseModel):
    date: dt.date
    rate: int


class StatisticsResponse(BaseModel):
    total: int
    completion_rate: int
    by_status: StatusCounts
    by_priority: List[PriorityCount]
    by_tag: List[TagCount]
    tag_usage: List[TagCount]
    window_days: int
    completion_rate_series: List[RatePoint]


class DashboardOrg(BaseModel):
    id: uuid.UUID
    name: str


class DashboardResponse(BaseModel):
    total: int
    completed: int
    pending: int
    completion_rate: int
    recent_tasks: List[TaskRead] = Field(default_factory=list)
    organizations: List[DashboardOrg] = Field(default_factory=list)


class EventRead(BaseModel):
    id: int
    type: str
    actor_id: Optional[uuid.UUID] = None
    organization_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: dt.datetime

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    data: List[EventRead]
    cursor: Optional[int] = None  # highest id returned; pass back as ``after``
