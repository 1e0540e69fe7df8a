# sitecms/api/v1/team.py
from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.api.deps.site import get_current_role, get_current_site, require_capability
from sitecms.api.v1.auth import get_current_user
from sitecms.auth.permissions import Capability
from sitecms.core.roles import SiteRole
from sitecms.core.team import TeamManager, accept_invite
from sitecms.db.session import get_db
from sitecms.models.site import Site
from sitecms.models.user import User
from sitecms.schemas.team import (
    AcceptTeamInvite,
    AcceptTeamInviteOut,
    TeamInviteCreate,
    TeamInviteOut,
    TeamMemberOut,
    TeamMemberUpdate,
)

router = APIRouter(prefix="/team", tags=["team"])

manage_team = require_capability(Capability.MANAGE_TEAM)


def _manager(db: AsyncSession, site: Site, user: User, role: SiteRole) -> TeamManager:
    return TeamManager(db, site, user, role)


# =========================================================
# MEMBERS
# =========================================================
@router.get("/members", response_model=List[TeamMemberOut])
async def list_members(
    db: AsyncSession = Depends(get_db),
    site: Site = Depends(get_current_site),
    user: User = Depends(get_current_user),
    role: SiteRole = Depends(get_current_role),
):
    """
    Any role on the site may see the team, oldest member first.
    """
    return await _manager(db, site, user, role).list_members()


@router.patch("/members/{member_id}", response_model=List[TeamMemberOut])
async def update_member_role(
    member_id: uuid.UUID,
    payload: TeamMemberUpdate,
    db: AsyncSession = Depends(get_db),
    site: Site = Depends(get_current_site),
    user: User = Depends(get_current_user),
    role: SiteRole = Depends(manage_team),
):
    """
    Returns the refreshed member list.
    """
    return await _manager(db, site, user, role).update_member_role(member_id, payload.role)


@router.delete("/members/{member_id}", response_model=List[TeamMemberOut])
async def remove_member(
    member_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    site: Site = Depends(get_current_site),
    user: User = Depends(get_current_user),
    role: SiteRole = Depends(manage_team),
):
    return await _manager(db, site, user, role).remove_member(member_id)


# =========================================================
# INVITATIONS
# =========================================================
@router.get("/invitations", response_model=List[TeamInviteOut])
async def list_invitations(
    pending_only: bool = False,
    db: AsyncSession = Depends(get_db),
    site: Site = Depends(get_current_site),
    user: User = Depends(get_current_user),
    role: SiteRole = Depends(manage_team),
):
    return await _manager(db, site, user, role).list_invites(pending_only=pending_only)


@router.post("/invitations", response_model=TeamInviteOut, status_code=status.HTTP_201_CREATED)
async def invite_member(
    payload: TeamInviteCreate,
    db: AsyncSession = Depends(get_db),
    site: Site = Depends(get_current_site),
    user: User = Depends(get_current_user),
    role: SiteRole = Depends(manage_team),
):
    """
    Creates a pending invitation. The member row appears once the invitee
    signs in with that email and accepts.
    """
    return await _manager(db, site, user, role).add_member(payload.email, payload.role)


@router.post("/invitations/{invite_id}/revoke", response_model=TeamInviteOut)
async def revoke_invitation(
    invite_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    site: Site = Depends(get_current_site),
    user: User = Depends(get_current_user),
    role: SiteRole = Depends(manage_team),
):
    return await _manager(db, site, user, role).revoke_invite(invite_id)


@router.post("/invitations/accept", response_model=AcceptTeamInviteOut)
async def accept_invitation(
    payload: AcceptTeamInvite,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Accept by token (authenticated). The signed-in email must match the
    invitation. No site header needed: the token names the site.
    """
    membership = await accept_invite(db, payload.token, user)
    return AcceptTeamInviteOut(
        site_id=membership.site_id,
        user_id=membership.user_id,
        role=membership.role,
    )
