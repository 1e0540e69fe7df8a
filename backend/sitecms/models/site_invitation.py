# backend/sitecms/models/site_invitation.py

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from sitecms.db.base import Base, as_aware, utcnow


class SiteInvitation(Base):
    """
    A pending team member: email + role, no bound user yet.
    Becomes a SiteMember when a signed-in user with the same email accepts it.
    """

    __tablename__ = "cms_site_invitations"
    __table_args__ = (
        UniqueConstraint("token", name="uq_cms_site_invitations_token"),
        Index("ix_cms_site_invitations_site_email", "site_id", "email"),
        Index("ix_cms_site_invitations_site_created_at", "site_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    site_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("cms_sites.id", ondelete="CASCADE"),
        nullable=False,
    )

    email: Mapped[str] = mapped_column(String(320), nullable=False)
    role: Mapped[str] = mapped_column(String(30), nullable=False, default="editor")

    token: Mapped[str] = mapped_column(String(200), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    accepted_by_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_by_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    def is_pending(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return self.accepted_at is None and as_aware(self.expires_at) > now
