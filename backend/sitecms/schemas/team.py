from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class TeamMemberOut(BaseModel):
    id: UUID
    site_id: UUID
    user_id: UUID
    email: Optional[str] = None
    role: str
    created_at: datetime

    model_config = {"from_attributes": True}


class TeamMemberUpdate(BaseModel):
    role: str


class TeamInviteCreate(BaseModel):
    # Validated by the team manager (required, must contain "@").
    email: str = Field(max_length=320)
    role: str = Field(default="editor", description="admin, editor, author or viewer")


class TeamInviteOut(BaseModel):
    id: UUID
    site_id: UUID
    email: str
    role: str
    token: str
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    accepted_by_user_id: Optional[UUID] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AcceptTeamInvite(BaseModel):
    token: str = Field(..., description="Invitation token")


class AcceptTeamInviteOut(BaseModel):
    status: str = "ok"
    site_id: UUID
    user_id: UUID
    role: str
