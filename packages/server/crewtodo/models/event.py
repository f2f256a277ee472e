"""Domain event model (append-only)."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import utcnow


class Event(SQLModel, table=True):
    __tablename__ = "events"

    id: Optional[int] = Field(default=None, primary_key=True)  # replay cursor
    type: str = Field(nullable=False, index=True)  # e.g. task.created, membership.removed
    actor_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    organization_id: Optional[uuid.UUID] = Field(default=None, index=True)
    user_id: Optional[uuid.UUID] = Field(default=None, index=True)  # subject user, if any
    payload: dict = Field(default_factory=dict, sa_type=sa.JSON, nullable=False)
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
