"""Task model and its tag join table."""

from datetime import date
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Task(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "tasks"

    title: str = Field(nullable=False)
    description: Optional[str] = None
    is_complete: bool = Field(default=False, nullable=False)
    due_date: Optional[date] = Field(default=None, sa_type=sa.Date)
    priority: Optional[str] = None  # low | medium | high
    owner_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    organization_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="organizations.id", index=True
    )  # null = personal


class TaskTag(SQLModel, table=True):
    __tablename__ = "task_tags"

    task_id: uuid.UUID = Field(foreign_key="tasks.id", primary_key=True)
    tag: str = Field(primary_key=True, index=True)
    position: int = Field(nullable=False, default=0)
