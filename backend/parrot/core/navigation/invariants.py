"""
Settled-state invariants for dashboard navigation.
"""

from typing import Optional

from parrot.core.navigation.state import NavigationState, NavSession, ObservedUrl
from parrot.core.navigation.tabs import (
    TabId,
    has_admin_privileges,
    is_admin_only,
    is_personal,
    manager_may_open,
)


def check_invariants(
    state: NavigationState,
    session: NavSession,
    url: Optional[ObservedUrl] = None,
) -> list[str]:
    """
    Return a message for every invariant the settled state violates.

    An empty list means the state is consistent. ``url`` is the router's
    current query; when omitted the URL check is skipped.
    """
    violations = []
    tab = state.active_tab
    space = state.current_space_id

    if is_personal(tab) and space is not None:
        violations.append(f"personal tab {tab.value} carries space {space}")

    if is_admin_only(tab) and tab is not TabId.ADMIN and space is not None:
        violations.append(f"admin-only tab {tab.value} carries space {space}")

    if (
        is_admin_only(tab)
        and not has_admin_privileges(session.role)
        and not manager_may_open(session.role, tab, space)
    ):
        violations.append(f"role {session.role.value} is on admin-only tab {tab.value}")

    if state.selected_company != space:
        violations.append(
            f"selected_company {state.selected_company} != current_space_id {space}"
        )

    if url is not None and url.projection() != state.projection:
        violations.append(f"url {url.projection()} does not encode {state.projection}")

    return violations
