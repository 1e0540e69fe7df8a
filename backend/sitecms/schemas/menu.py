from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

MenuItemType = Literal["page", "post", "custom", "category"]
MenuTarget = Literal["_self", "_blank"]
MenuLocation = Literal["primary", "footer", "mobile", "sidebar"]


class MenuItem(BaseModel):
    id: str = Field(min_length=1, max_length=100)
    label: str
    url: str
    type: MenuItemType = "custom"
    target: MenuTarget = "_self"
    children: List[MenuItem] = Field(default_factory=list)


MenuItem.model_rebuild()


class MenuItemDraft(BaseModel):
    """
    What the item editor submits. For page/post items, label/url are derived
    from the referenced entity (label may still be overridden; url may not).
    """

    id: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: MenuItemType = "custom"
    target: MenuTarget = "_self"
    label: Optional[str] = None
    url: Optional[str] = None
    page_id: Optional[UUID] = None
    post_id: Optional[UUID] = None
    children: Optional[List[MenuItem]] = None


def _clean_name(v: str) -> str:
    v = " ".join((v or "").split())
    if not v:
        raise ValueError("Please enter a menu name")
    return v


class MenuCreate(BaseModel):
    name: str = Field(max_length=200)
    location: MenuLocation = "primary"
    items: List[MenuItem] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_name(v)


class MenuSave(MenuCreate):
    # Omit for last-write-wins; send the version you loaded to reject stale saves.
    expected_version: Optional[int] = Field(default=None, ge=1)


class MenuOut(BaseModel):
    id: UUID
    site_id: UUID
    name: str
    location: str
    items: List[MenuItem]
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MenuReorder(BaseModel):
    dragged_id: str
    target_id: str
    # Set to reorder inside one top-level item's children.
    parent_id: Optional[str] = None
    expected_version: Optional[int] = Field(default=None, ge=1)


class LinkTarget(BaseModel):
    id: UUID
    title: str
    slug: str
    url: str

    model_config = {"from_attributes": True}


class LinkTargetsOut(BaseModel):
    pages: List[LinkTarget]
    posts: List[LinkTarget]
