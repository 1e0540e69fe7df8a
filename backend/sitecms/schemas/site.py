from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SiteCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    # Optional: derived from the name when left out.
    slug: Optional[str] = Field(default=None, max_length=200)


class SiteUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, max_length=200)
    theme: Optional[str] = Field(default=None, max_length=50)
    site_title: Optional[str] = Field(default=None, max_length=200)
    site_tagline: Optional[str] = Field(default=None, max_length=300)
    site_logo_url: Optional[str] = None
    site_favicon_url: Optional[str] = None
    custom_css: Optional[str] = None


class SiteOut(BaseModel):
    id: UUID
    owner_id: UUID
    name: str
    slug: str
    theme: str
    site_title: Optional[str] = None
    site_tagline: Optional[str] = None
    site_logo_url: Optional[str] = None
    site_favicon_url: Optional[str] = None
    custom_css: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ActiveSiteIn(BaseModel):
    site_id: UUID


class ActiveSiteOut(BaseModel):
    site: Optional[SiteOut] = None


class SitePermissionsOut(BaseModel):
    site_id: UUID
    role: Optional[str] = None
    permissions: Dict[str, bool]
    is_owner: bool
    is_admin: bool


class RoleOut(BaseModel):
    role: str
    label: str
    description: str
    permissions: Dict[str, bool]


class ThemeOut(BaseModel):
    id: str
    name: str
    description: str


class RoleTableOut(BaseModel):
    roles: List[RoleOut]
    assignable: List[str]
