# Import models here so Base.metadata sees every table.
from sitecms.models.user import User  # noqa: F401

# Sites, team, invitations
from sitecms.models.site import Site  # noqa: F401
from sitecms.models.site_member import SiteMember  # noqa: F401
from sitecms.models.site_invitation import SiteInvitation  # noqa: F401
from sitecms.models.actor_preference import ActorPreference  # noqa: F401

# Navigation + link targets
from sitecms.models.menu import Menu  # noqa: F401
from sitecms.models.content import Page, Post  # noqa: F401
