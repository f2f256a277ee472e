"""Task and template Pydantic schemas for shared use across server and clients."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic import UUID4

from .common import StatusFilter, TaskPriority


def normalize_tags(tags: Optional[List[str]]) -> List[str]:
    """Trim tags, drop blanks and duplicates, keep first-seen order."""
    seen: list[str] = []
    for tag in tags or []:
        cleaned = tag.strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


# ---------------------------------------------------------------------------
# Task CRUD
# ---------------------------------------------------------------------------

class TaskBase(BaseModel):
    title: str = Field(..., max_length=200)
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: Optional[TaskPriority] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, value: List[str]) -> List[str]:
        return normalize_tags(value)


class TaskCreate(TaskBase):
    organization_id: Optional[UUID4] = None
    is_complete: bool = False


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: Optional[TaskPriority] = None
    tags: Optional[List[str]] = None
    is_complete: Optional[bool] = None

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        return normalize_tags(value)


class TaskRead(BaseModel):
    id: UUID4
    title: str
    description: Optional[str] = None
    is_complete: bool
    due_date: Optional[date] = None
    priority: Optional[TaskPriority] = None
    tags: List[str] = Field(default_factory=list)
    owner_id: UUID4
    organization_id: Optional[UUID4] = None
    created_at: datetime
    updated_at: datetime


class TaskFilters(BaseModel):
    """Listing filters; a missing filter imposes no restriction."""
    status: Optional[StatusFilter] = None
    priority: Optional[TaskPriority] = None
    tag: Optional[str] = None


class TagListResponse(BaseModel):
    data: List[str]


# ---------------------------------------------------------------------------
# Templates ("frequent tasks")
# ---------------------------------------------------------------------------

class TemplateCreate(BaseModel):
    title: str = Field(..., max_length=200)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, value: List[str]) -> List[str]:
        return normalize_tags(value)


class TemplateUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    tags: Optional[List[str]] = None

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        return normalize_tags(value)


class TemplateRead(BaseModel):
    id: UUID4
    title: str
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    tags: List[str] = Field(default_factory=list)
    organization_id: UUID4
    creator_id: UUID4
    created_at: datetime
    updated_at: datetime
