# backend/sitecms/models/site.py

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from sitecms.db.base import Base, utcnow


class Site(Base):
    __tablename__ = "cms_sites"
    __table_args__ = (
        UniqueConstraint("slug", name="uq_cms_sites_slug"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Ownership lives here, not in cms_site_members.
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), nullable=False)
    theme: Mapped[str] = mapped_column(String(50), nullable=False, default="default")

    # Site identity
    site_title: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    site_tagline: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    site_logo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    site_favicon_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    custom_css: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
