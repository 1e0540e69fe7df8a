# backend/sitecms/models/site_member.py

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from sitecms.db.base import Base, utcnow


class SiteMember(Base):
    __tablename__ = "cms_site_members"
    __table_args__ = (
        UniqueConstraint("site_id", "user_id", name="uq_cms_site_members_site_user"),
        Index("ix_cms_site_members_site_created_at", "site_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    site_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("cms_sites.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # admin | editor | author | viewer
    role: Mapped[str] = mapped_column(String(30), nullable=False, default="viewer")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
