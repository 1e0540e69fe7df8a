# backend/sitecms/core/team.py

from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.auth.permissions import Capability, has_permission
from sitecms.core.config import settings
from sitecms.core.errors import (
    ConflictError,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)
from sitecms.core.roles import ASSIGNABLE_ROLES, SiteRole, parse_role
from sitecms.crud.site_members import (
    get_member_in_site,
    get_membership,
    get_pending_invitation,
    get_user_by_email,
    list_members_with_email,
)
from sitecms.db.base import as_aware, utcnow
from sitecms.db.guard import storage_guard
from sitecms.models.site import Site
from sitecms.models.site_invitation import SiteInvitation
from sitecms.models.site_member import SiteMember
from sitecms.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeamMember:
    id: uuid.UUID
    site_id: uuid.UUID
    user_id: uuid.UUID
    role: str
    created_at: datetime
    email: Optional[str] = None


def _generate_token() -> str:
    return secrets.token_urlsafe(48)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def validate_invite_email(email: Optional[str]) -> str:
    e = normalize_email(email)
    if not e:
        raise ValidationError("Email is required")
    if "@" not in e:
        raise ValidationError("Please enter a valid email")
    return e


def validate_assignable_role(role: "str | SiteRole | None") -> SiteRole:
    r = parse_role(role)
    if r is None or r not in ASSIGNABLE_ROLES:
        allowed = ", ".join(sorted(x.value for x in ASSIGNABLE_ROLES))
        raise ValidationError(f"Invalid role. Allowed: {allowed}")
    return r


def ensure_can_manage_team(actor_role: Optional[SiteRole]) -> None:
    if not has_permission(actor_role, Capability.MANAGE_TEAM):
        raise PermissionDenied("You do not have permission to manage this team")


def ensure_member_modifiable(member: SiteMember, actor: User) -> None:
    """
    Business rules for changing/removing a membership row:
      - rows carrying the owner role are untouchable here
      - nobody edits or removes their own row through this path
    """
    if parse_role(member.role) is SiteRole.OWNER:
        raise PermissionDenied("The site owner cannot be changed or removed")
    if member.user_id == actor.id:
        raise PermissionDenied("You cannot change or remove your own membership")


class TeamManager:
    """
    Membership CRUD for one site.

    The API layer gates every mutation on canManageTeam before calling in;
    the manager checks again with the actor_role it was built with.
    """

    def __init__(
        self,
        db: AsyncSession,
        site: Site,
        actor: User,
        actor_role: Optional[SiteRole],
    ):
        self.db = db
        self.site = site
        self.actor = actor
        self.actor_role = actor_role
        self.members: List[TeamMember] = []

    # ---------------------------------------------------------
    # Reads
    # ---------------------------------------------------------
    async def list_members(self) -> List[TeamMember]:
        async with storage_guard(self.db, "load team members"):
            rows = await list_members_with_email(self.db, self.site.id)

        self.members = [
            TeamMember(
                id=m.id,
                site_id=m.site_id,
                user_id=m.user_id,
                role=m.role,
                created_at=m.created_at,
                email=email,
            )
            for m, email in rows
        ]
        return list(self.members)

    async def list_invites(self, pending_only: bool = False) -> List[SiteInvitation]:
        stmt = (
            select(SiteInvitation)
            .where(SiteInvitation.site_id == self.site.id)
            .order_by(SiteInvitation.created_at.desc())
        )
        async with storage_guard(self.db, "load invitations"):
            invites = list((await self.db.execute(stmt)).scalars().all())

        if pending_only:
            now = utcnow()
            invites = [inv for inv in invites if inv.is_pending(now)]
        return invites

    # ---------------------------------------------------------
    # Invitations
    # ---------------------------------------------------------
    async def add_member(self, email: str, role: "str | SiteRole") -> SiteInvitation:
        """
        Invite someone by email. Creates a pending invitation (no user bound);
        the membership row only appears once the invitee accepts.
        """
        ensure_can_manage_team(self.actor_role)
        clean_email = validate_invite_email(email)
        invite_role = validate_assignable_role(role)

        async with storage_guard(self.db, "invite member"):
            existing_user = await get_user_by_email(self.db, clean_email)
            if existing_user is not None:
                if existing_user.id == self.site.owner_id:
                    raise ConflictError("This user already owns the site")
                if await get_membership(self.db, self.site.id, existing_user.id) is not None:
                    raise ConflictError("User is already a member of this site")

            if await get_pending_invitation(self.db, self.site.id, clean_email) is not None:
                raise ConflictError("A pending invitation already exists for this email")

            invitation = SiteInvitation(
                site_id=self.site.id,
                email=clean_email,
                role=invite_role.value,
                token=_generate_token(),
                expires_at=utcnow() + timedelta(days=settings.INVITE_EXPIRY_DAYS),
                created_by_user_id=self.actor.id,
            )
            self.db.add(invitation)
            await self.db.commit()

        logger.info(
            "Invited %s as %s to site=%s by user=%s",
            clean_email, invite_role.value, self.site.id, self.actor.id,
        )
        return invitation

    async def revoke_invite(self, invite_id: uuid.UUID) -> SiteInvitation:
        ensure_can_manage_team(self.actor_role)

        async with storage_guard(self.db, "revoke invitation"):
            inv = (
                await self.db.execute(
                    select(SiteInvitation).where(
                        SiteInvitation.id == invite_id,
                        SiteInvitation.site_id == self.site.id,
                    )
                )
            ).scalar_one_or_none()

            if inv is None:
                raise NotFoundError("Invitation not found")
            if inv.accepted_at is not None:
                raise ConflictError("Invitation already accepted")
            if not inv.is_pending():
                raise ConflictError("Invitation already expired")

            # Soft-revoke by expiring it now (keeps audit trail)
            inv.expires_at = utcnow()
            await self.db.commit()

        logger.info("Revoked invitation %s on site=%s", invite_id, self.site.id)
        return inv

    # ---------------------------------------------------------
    # Members
    # ---------------------------------------------------------
    async def update_member_role(self, member_id: uuid.UUID, new_role: "str | SiteRole") -> List[TeamMember]:
        ensure_can_manage_team(self.actor_role)
        role = validate_assignable_role(new_role)

        async with storage_guard(self.db, "update member role"):
            member = await get_member_in_site(self.db, self.site.id, member_id)
            if member is None:
                raise NotFoundError("Member not found")
            ensure_member_modifiable(member, self.actor)

            member.role = role.value
            await self.db.commit()

        logger.info("Member %s on site=%s is now %s", member_id, self.site.id, role.value)
        return await self.list_members()

    async def remove_member(self, member_id: uuid.UUID) -> List[TeamMember]:
        ensure_can_manage_team(self.actor_role)

        async with storage_guard(self.db, "remove member"):
            member = await get_member_in_site(self.db, self.site.id, member_id)
            if member is None:
                raise NotFoundError("Member not found")
            ensure_member_modifiable(member, self.actor)

            await self.db.delete(member)
            await self.db.commit()

        logger.info("Removed member %s from site=%s", member_id, self.site.id)
        return await self.list_members()


async def accept_invite(db: AsyncSession, token: str, user: User) -> SiteMember:
    """
    Promote a pending invitation to an active membership for `user`.
    The signed-in email must match the invited one.
    """
    token = (token or "").strip()
    if not token:
        raise ValidationError("token is required")

    async with storage_guard(db, "accept invitation"):
        inv = (
            await db.execute(
                select(SiteInvitation)
                .where(SiteInvitation.token == token)
                .with_for_update()
            )
        ).scalar_one_or_none()

        if inv is None:
            raise NotFoundError("Invalid invitation token")
        if inv.accepted_at is not None:
            raise ConflictError("Invitation already accepted")
        if as_aware(inv.expires_at) <= utcnow():
            raise ValidationError("Invitation expired", code="invitation_expired")

        if normalize_email(user.email) != normalize_email(inv.email):
            raise PermissionDenied(
                "You are signed in with a different email than the invitation",
                code="invite_email_mismatch",
            )

        site = await db.get(Site, inv.site_id)
        if site is None:
            raise NotFoundError("Site not found")
        if site.owner_id == user.id:
            raise ConflictError("You already own this site")

        invite_role = validate_assignable_role(inv.role)

        membership = await get_membership(db, inv.site_id, user.id)
        if membership is None:
            membership = SiteMember(site_id=inv.site_id, user_id=user.id, role=invite_role.value)
            db.add(membership)
        else:
            membership.role = invite_role.value

        inv.accepted_at = utcnow()
        inv.accepted_by_user_id = user.id

        try:
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            raise ConflictError("Membership already exists for this site") from exc

    logger.info("User %s joined site=%s as %s", user.id, inv.site_id, invite_role.value)
    return membership
