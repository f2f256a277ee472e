"""Template ("frequent task") model and its tag join table."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Template(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "templates"

    title: str = Field(nullable=False)
    description: Optional[str] = None
    priority: Optional[str] = None  # low | medium | high
    organization_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    creator_id: uuid.UUID = Field(foreign_key="users.id", nullable=False)


class TemplateTag(SQLModel, table=True):
    __tablename__ = "template_tags"

    template_id: uuid.UUID = Field(foreign_key="templates.id", primary_key=True)
    tag: str = Field(primary_key=True)
    position: int = Field(nullable=False, default=0)
