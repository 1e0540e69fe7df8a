# sitecms/core/roles.py

import enum


class SiteRole(str, enum.Enum):
    OWNER = "owner"    # site.owner_id; not assignable
    ADMIN = "admin"    # everything except deleting the site
    EDITOR = "editor"  # all content + menus
    AUTHOR = "author"  # own posts + media
    VIEWER = "viewer"  # read only


# Highest privilege first.
ROLE_ORDER = (SiteRole.OWNER, SiteRole.ADMIN, SiteRole.EDITOR, SiteRole.AUTHOR, SiteRole.VIEWER)

# Roles that can be handed out through invitations / role changes.
ASSIGNABLE_ROLES = frozenset({SiteRole.ADMIN, SiteRole.EDITOR, SiteRole.AUTHOR, SiteRole.VIEWER})


def parse_role(value: "str | SiteRole | None") -> "SiteRole | None":
    if value is None:
        return None
    if isinstance(value, SiteRole):
        return value
    try:
        return SiteRole((value or "").strip().lower())
    except ValueError:
        return None
