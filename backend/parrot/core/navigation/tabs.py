"""
Dashboard tab table.

Single source of truth for which tabs exist, which class each belongs to,
and which roles may see them.
"""

import enum
from typing import Optional, Union

from parrot.core.models import UserRole


class TabId(str, enum.Enum):
    """Dashboard navigation destinations."""
    SPACES = "spaces"
    DASHBOARD = "dashboard"
    USER_DASHBOARD = "user-dashboard"
    PROJECTS = "projects"
    FORMS = "forms"
    SERVICES = "services"
    DOCUMENTS = "documents"
    ADMIN = "admin"
    COMPANIES = "companies"
    COMPANY_CALENDARS = "company-calendars"
    PROJECT_OVERVIEW = "project-overview"
    DEBUG = "debug"
    REPORTS = "reports"
    SETTINGS = "settings"
    USER_SETTINGS = "user-settings"


class TabClass(str, enum.Enum):
    """How a tab relates to the current space."""
    ADMIN_ONLY = "admin_only"          # Admin role only, never scoped (except admin)
    SPACE_REQUIRED = "space_required"  # Must carry a space
    PERSONAL = "personal"              # Never carries a space
    SPACE_OPTIONAL = "space_optional"  # Depends on role


TAB_CLASSES: dict[TabId, TabClass] = {
    TabId.SPACES: TabClass.ADMIN_ONLY,
    TabId.ADMIN: TabClass.ADMIN_ONLY,
    TabId.COMPANIES: TabClass.ADMIN_ONLY,
    TabId.PROJECT_OVERVIEW: TabClass.ADMIN_ONLY,
    TabId.DEBUG: TabClass.ADMIN_ONLY,
    TabId.DASHBOARD: TabClass.SPACE_REQUIRED,
    TabId.PROJECTS: TabClass.SPACE_REQUIRED,
    TabId.SERVICES: TabClass.SPACE_REQUIRED,
    TabId.COMPANY_CALENDARS: TabClass.SPACE_REQUIRED,
    TabId.DOCUMENTS: TabClass.SPACE_REQUIRED,
    TabId.SETTINGS: TabClass.SPACE_REQUIRED,
    TabId.USER_DASHBOARD: TabClass.PERSONAL,
    TabId.USER_SETTINGS: TabClass.PERSONAL,
    TabId.REPORTS: TabClass.SPACE_OPTIONAL,
    TabId.FORMS: TabClass.SPACE_OPTIONAL,
}

# Tabs that may run cross-tenant and therefore never keep a space
UNSCOPED_TABS = frozenset({TabId.REPORTS})


def tab_class(tab: TabId) -> TabClass:
    return TAB_CLASSES[tab]


def is_admin_only(tab: TabId) -> bool:
    return TAB_CLASSES[tab] is TabClass.ADMIN_ONLY


def is_personal(tab: TabId) -> bool:
    return TAB_CLASSES[tab] is TabClass.PERSONAL


def is_space_required(tab: TabId) -> bool:
    return TAB_CLASSES[tab] is TabClass.SPACE_REQUIRED


def never_scoped(tab: TabId) -> bool:
    """True if the tab must never carry a space."""
    if is_personal(tab) or tab in UNSCOPED_TABS:
        return True
    return is_admin_only(tab) and tab is not TabId.ADMIN


def parse_tab(value: Union[TabId, str, None]) -> Optional[TabId]:
    """Parse a tab id, returning None for empty or unknown values."""
    if isinstance(value, TabId):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return TabId(value.strip())
    except ValueError:
        return None


# ==========================================================================
# Role Helpers
# ==========================================================================

def has_admin_privileges(role: Optional[UserRole]) -> bool:
    """Admins and system admins."""
    return role in (UserRole.ADMIN, UserRole.SYSTEM_ADMIN)


def has_space_access_rights(role: Optional[UserRole]) -> bool:
    """Roles allowed to work inside a space beyond the personal dashboard."""
    return has_admin_privileges(role) or role is UserRole.MANAGER


def manager_may_open(role: Optional[UserRole], tab: TabId, space_id: Optional[str]) -> bool:
    """
    Managers may open the admin (user management) tab, but only scoped to a
    space. No other AdminOnly tab is opened to them.
    """
    return role is UserRole.MANAGER and tab is TabId.ADMIN and bool(space_id)


def default_tab_for(role: Optional[UserRole]) -> TabId:
    """Landing tab when the URL carries none."""
    if has_admin_privileges(role):
        return TabId.SPACES
    return TabId.USER_DASHBOARD


def visible_tabs(role: Optional[UserRole]) -> list[dict]:
    """
    Describe the tabs a role can see in the sidebar.

    Each entry has the tab id, its class, and whether it needs a space to be
    selected before it can be opened by this role.
    """
    admin = has_admin_privileges(role)
    result = []
    for tab, klass in TAB_CLASSES.items():
        if klass is TabClass.ADMIN_ONLY and not admin:
            if not (role is UserRole.MANAGER and tab is TabId.ADMIN):
                continue
            requires_space = True
        elif klass is TabClass.SPACE_REQUIRED:
            requires_space = True
        else:
            requires_space = False
        result.append({
            "tab": tab,
            "tab_class": klass,
            "requires_space": requires_space,
        })
    return result
