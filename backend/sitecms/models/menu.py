# backend/sitecms/models/menu.py

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from sitecms.db.base import Base, utcnow


class Menu(Base):
    __tablename__ = "cms_menus"
    __table_args__ = (
        Index("ix_cms_menus_site_created_at", "site_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    site_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("cms_sites.id", ondelete="CASCADE"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # primary | footer | mobile | sidebar
    location: Mapped[str] = mapped_column(String(30), nullable=False, default="primary")

    # Whole tree as a JSON array; every save replaces it.
    items: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    # Bumped on every save; clients may send it back to detect concurrent edits.
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
