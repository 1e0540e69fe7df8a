from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, FrozenSet, Mapping, Optional

from sitecms.core.roles import ROLE_ORDER, SiteRole


class Capability(str, enum.Enum):
    # team + site
    MANAGE_TEAM = "canManageTeam"
    MANAGE_SETTINGS = "canManageSettings"
    DELETE_SITE = "canDeleteSite"

    # structure
    MANAGE_MENUS = "canManageMenus"
    MANAGE_DATABASE = "canManageDatabase"
    EXPORT_DATA = "canExportData"

    # content
    MANAGE_PAGES = "canManagePages"
    MANAGE_POSTS = "canManagePosts"
    MANAGE_MEDIA = "canManageMedia"
    EDIT_OTHERS_CONTENT = "canEditOthersContent"


@dataclass(frozen=True)
class RoleInfo:
    label: str
    description: str


C = Capability

ALL_CAPABILITIES: FrozenSet[Capability] = frozenset(Capability)

ROLE_PERMISSIONS: Mapping[SiteRole, FrozenSet[Capability]] = {
    SiteRole.OWNER: ALL_CAPABILITIES,
    SiteRole.ADMIN: ALL_CAPABILITIES - {C.DELETE_SITE},
    SiteRole.EDITOR: frozenset(
        {
            C.MANAGE_MENUS,
            C.MANAGE_PAGES,
            C.MANAGE_POSTS,
            C.MANAGE_MEDIA,
            C.EDIT_OTHERS_CONTENT,
        }
    ),
    SiteRole.AUTHOR: frozenset(
        {
            # own posts only (no EDIT_OTHERS_CONTENT)
            C.MANAGE_POSTS,
            C.MANAGE_MEDIA,
        }
    ),
    SiteRole.VIEWER: frozenset(),
}

ROLE_INFO: Mapping[SiteRole, RoleInfo] = {
    SiteRole.OWNER: RoleInfo("Owner", "Full access including site deletion"),
    SiteRole.ADMIN: RoleInfo("Admin", "Full access except site deletion"),
    SiteRole.EDITOR: RoleInfo("Editor", "Can edit all pages, posts, and media"),
    SiteRole.AUTHOR: RoleInfo("Author", "Can create and edit own posts only"),
    SiteRole.VIEWER: RoleInfo("Viewer", "Can view content only, no editing"),
}


def _check_tables_cover_every_role() -> None:
    missing = [r for r in SiteRole if r not in ROLE_PERMISSIONS or r not in ROLE_INFO]
    if missing:
        raise RuntimeError(f"Permission table is missing role(s): {[r.value for r in missing]}")


_check_tables_cover_every_role()


def permissions_for(role: Optional[SiteRole]) -> FrozenSet[Capability]:
    """
    Capabilities granted to a role. No role (None) means no capabilities.
    """
    if role is None:
        return frozenset()
    return ROLE_PERMISSIONS[role]


def has_permission(role: Optional[SiteRole], capability: Capability) -> bool:
    """
    The only authorization check in the service. Everything that gates an
    action goes through here instead of comparing role names.
    """
    return capability in permissions_for(role)


def permission_matrix(role: Optional[SiteRole]) -> Dict[str, bool]:
    granted = permissions_for(role)
    return {cap.value: cap in granted for cap in Capability}


def role_table() -> list[dict]:
    return [
        {
            "role": role.value,
            "label": ROLE_INFO[role].label,
            "description": ROLE_INFO[role].description,
            "permissions": permission_matrix(role),
        }
        for role in ROLE_ORDER
    ]
