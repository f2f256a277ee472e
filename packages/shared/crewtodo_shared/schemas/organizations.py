"""
Organization-related Pydantic schemas shared between server and clients.

Covers: org create/update/join requests, org responses and member listings.
The join secret only ever travels inbound; no response model carries it.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .common import Role


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class OrgCreateRequest(BaseModel):
    name: str = Field(..., max_length=100, description="Organization display name")
    description: Optional[str] = Field(None, max_length=1000)
    join_secret: str = Field(
        ...,
        max_length=200,
        description="Shared credential members must supply to join",
    )


class OrgUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    join_secret: Optional[str] = Field(
        None,
        max_length=200,
        description="Replaces the join credential; existing members are unaffected",
    )


class OrgJoinRequest(BaseModel):
    """Join by organization name (names are not unique, oldest match wins)."""
    name: str
    join_secret: str


class OrgJoinByIdRequest(BaseModel):
    """Join by opaque organization id; the id is taken from the path."""
    join_secret: str


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class OrgResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    creator_id: uuid.UUID
    is_creator: bool = False
    role: Optional[Role] = None  # the requesting user's role, if a member
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OrgListItem(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    role: Role
    is_creator: bool
    joined_at: datetime


class OrgListResponse(BaseModel):
    data: list[OrgListItem]


class MembershipResponse(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    user_id: uuid.UUID
    role: Role
    joined_at: datetime

    model_config = {"from_attributes": True}


class MemberResponse(BaseModel):
    """A membership joined with the member's profile."""
    id: uuid.UUID
    user_id: uuid.UUID
    role: Role
    joined_at: datetime
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    is_creator: bool = False


class MemberListResponse(BaseModel):
    data: list[MemberResponse]
