"""
Parrot Platform - URL Reconciliation Tests
==========================================

Deep links, browser history and the settled-state invariants.
"""

import random

import pytest

from parrot.core.navigation import NavigationAction, TabId, check_invariants


def settled(nav) -> list[str]:
    return check_invariants(nav.state, nav.session, nav.router.query)


# ==========================================================================
# Redirect Rules
# ==========================================================================

class TestUrlRules:
    """reconcile_from_url rules for externally observed URLs."""

    def test_user_hacking_admin_tab(self, make_nav):
        nav = make_nav("user", company_id="space-42")

        result = nav.reconcile_from_url("debug")

        assert nav.state.active_tab is TabId.USER_DASHBOARD
        assert result.action is None  # URL already shows user-dashboard

    def test_user_admin_tab_redirected_with_replace(self, make_nav):
        nav = make_nav("user", company_id="space-42", query="tab=projects&space=space-42")

        result = nav.reconcile_from_url("companies")

        assert result.action is NavigationAction.REPLACE
        assert nav.router.location == "/dashboard?tab=user-dashboard"

    def test_dashboard_without_space_for_user(self, make_nav):
        nav = make_nav("user", company_id="space-42", query="tab=dashboard")

        assert nav.state.active_tab is TabId.USER_DASHBOARD
        assert nav.router.location == "/dashboard?tab=user-dashboard"

    def test_stray_space_on_personal_dashboard(self, make_nav):
        nav = make_nav("user", company_id="space-42", query="tab=user-dashboard&space=space-42")

        assert nav.state.current_space_id is None
        assert nav.router.location == "/dashboard?tab=user-dashboard"

    def test_stale_spaces_link(self, make_nav):
        nav = make_nav("admin", query="tab=spaces&space=space-7")

        assert nav.state.active_tab is TabId.DASHBOARD
        assert nav.state.current_space_id == "space-7"
        assert nav.router.location == "/dashboard?tab=dashboard&space=space-7"

    def test_admin_only_tab_drops_space(self, make_nav):
        nav = make_nav("admin", query="tab=debug&space=space-7")

        assert nav.state.active_tab is TabId.DEBUG
        assert nav.state.current_space_id is None

    def test_admin_tab_keeps_space(self, make_nav):
        nav = make_nav("admin", query="tab=admin&space=space-7")

        assert nav.state.current_space_id == "space-7"
        assert nav.router.replace_count == 0

    def test_reports_drops_space(self, make_nav):
        nav = make_nav("admin", query="tab=reports&space=space-7")

        assert nav.router.location == "/dashboard?tab=reports"

    def test_admin_space_required_without_space(self, make_nav):
        nav = make_nav("admin", query="tab=projects")

        assert nav.state.active_tab is TabId.SPACES

    def test_user_space_required_adopts_home(self, make_nav):
        nav = make_nav("user", company_id="space-42", query="tab=documents")

        assert nav.router.location == "/dashboard?tab=documents&space=space-42"

    def test_company_alias_accepted(self, make_nav):
        nav = make_nav("user", company_id="space-42", query="tab=projects&company=space-42")

        assert nav.state.current_space_id == "space-42"
        assert nav.state.selected_company == "space-42"
        assert nav.router.location == "/dashboard?tab=projects&space=space-42"

    def test_company_only_link_rewritten_in_place(self, make_nav):
        nav = make_nav("user", company_id="space-9", query="tab=projects&company=space-9")

        assert nav.router.history == ["/dashboard?tab=projects&space=space-9"]
        assert nav.router.replace_count == 1

    def test_personal_tab_ignores_foreign_space(self, make_nav):
        nav = make_nav("user", company_id="space-9", query="tab=user-settings&space=space-1")

        assert nav.state.active_tab is TabId.USER_SETTINGS
        assert nav.state.current_space_id is None
        assert nav.router.location == "/dashboard?tab=user-settings"

    def test_reports_ignores_unknown_space(self, make_nav, space_lookup):
        nav = make_nav("admin", query="tab=reports&space=gone", directory=space_lookup("space-1"))

        assert nav.state.active_tab is TabId.REPORTS
        assert nav.router.location == "/dashboard?tab=reports"

    def test_non_string_query_values_ignored(self, make_nav):
        nav = make_nav("admin")

        result = nav.reconcile_query({"tab": 5, "space": ["space-1"]})

        assert result.action is None
        assert nav.state.active_tab is TabId.SPACES

    def test_user_foreign_space_in_url(self, make_nav):
        nav = make_nav("user", company_id="space-42", query="tab=projects&space=space-7")

        assert nav.state.active_tab is TabId.DASHBOARD
        assert nav.state.current_space_id == "space-42"

    def test_admin_unknown_space_in_url(self, make_nav, space_lookup):
        nav = make_nav("admin", query="tab=projects&space=space-x", directory=space_lookup("space-1"))

        assert nav.state.active_tab is TabId.SPACES
        assert nav.state.current_space_id is None

    def test_manager_admin_tab_with_space(self, make_nav):
        nav = make_nav("manager", company_id="space-3", query="tab=admin&space=space-3")

        assert nav.state.active_tab is TabId.ADMIN
        assert nav.state.current_space_id == "space-3"

    def test_manager_admin_tab_without_space(self, make_nav):
        nav = make_nav("manager", company_id="space-3", query="tab=admin")

        assert nav.state.active_tab is TabId.USER_DASHBOARD

    def test_unknown_tab_falls_back_to_role_default(self, make_nav):
        nav = make_nav("admin", query="tab=billing")

        assert nav.state.active_tab is TabId.SPACES

    def test_internal_role_treated_as_user(self, make_nav):
        nav = make_nav("internal", company_id="space-42", query="")

        assert nav.state.active_tab is TabId.USER_DASHBOARD


# ==========================================================================
# Idempotence & Echoes
# ==========================================================================

class TestIdempotence:

    def test_same_url_twice_is_noop(self, make_nav):
        nav = make_nav("user", company_id="space-42")

        first = nav.reconcile_from_url("projects", "space-42")
        state_after_first = nav.state
        counts = (nav.router.push_count, nav.router.replace_count)

        second = nav.reconcile_from_url("projects", "space-42")

        assert first.changed
        assert not second.changed
        assert second.action is None
        assert nav.state == state_after_first
        assert (nav.router.push_count, nav.router.replace_count) == counts

    def test_redirect_to_current_state_is_noop(self, make_nav):
        nav = make_nav("user", company_id="space-42")
        counts = (nav.router.push_count, nav.router.replace_count)

        nav.reconcile_from_url("user-dashboard")

        assert (nav.router.push_count, nav.router.replace_count) == counts

    def test_own_push_is_not_reconciled_again(self, make_nav):
        nav = make_nav("admin", query="tab=dashboard&space=space-1")

        nav.request_tab_change("admin")

        assert nav.router.history == [
            "/dashboard?tab=dashboard&space=space-1",
            "/dashboard?tab=admin&space=space-1",
        ]
        assert nav.generation == 1

    def test_company_alias_written_when_enabled(self, make_nav):
        nav = make_nav("admin")
        nav.emit_company_alias = True

        nav.request_space_change("space-7")

        assert nav.router.location == "/dashboard?tab=dashboard&space=space-7&company=space-7"
        assert nav.router.replace_count == 2


# ==========================================================================
# Browser History
# ==========================================================================

class TestHistory:

    def test_back_and_forward(self, make_nav):
        nav = make_nav("user", company_id="space-42")
        nav.request_tab_change("forms")
        nav.request_tab_change("projects")

        assert nav.router.back() is True
        assert nav.state.active_tab is TabId.FORMS
        assert nav.state.current_space_id == "space-42"

        assert nav.router.back() is True
        assert nav.state.active_tab is TabId.USER_DASHBOARD
        assert nav.state.current_space_id is None
        assert nav.router.back() is False

        assert nav.router.forward() is True
        assert nav.router.forward() is True
        assert nav.state.active_tab is TabId.PROJECTS
        assert nav.router.forward() is False
        assert settled(nav) == []

    def test_back_after_space_switch(self, make_nav):
        """Space switches replace, so back skips the previous space."""
        nav = make_nav("admin")
        nav.request_space_change("space-1")
        nav.request_tab_change("projects")
        nav.request_space_change("space-2")

        nav.router.back()

        assert nav.state.active_tab is TabId.DASHBOARD
        assert nav.state.current_space_id == "space-1"
        assert settled(nav) == []

    def test_push_after_back_drops_forward_entries(self, make_nav):
        nav = make_nav("admin", query="tab=dashboard&space=space-1")
        nav.request_tab_change("projects")
        nav.router.back()

        nav.request_tab_change("documents")

        assert nav.router.can_go_forward() is False
        assert nav.router.location == "/dashboard?tab=documents&space=space-1"


# ==========================================================================
# Invariants over Random Sequences
# ==========================================================================

TAB_VALUES = [tab.value for tab in TabId] + ["bogus", None]
SPACE_VALUES = [None, "space-1", "space-2", "", "  "]

SESSIONS = [
    ("admin", None),
    ("system_admin", None),
    ("manager", "space-1"),
    ("user", "space-1"),
    ("user", None),
    ("internal", "space-2"),
]


def random_step(nav, rng: random.Random) -> None:
    op = rng.randrange(6)
    if op == 0:
        nav.request_tab_change(rng.choice([t for t in TAB_VALUES if t]))
    elif op == 1:
        nav.request_space_change(rng.choice(SPACE_VALUES))
    elif op == 2:
        nav.reconcile_from_url(rng.choice(TAB_VALUES), rng.choice(SPACE_VALUES))
    elif op == 3:
        nav.switch_to_admin_view(rng.choice(["admin", "spaces", "debug", "companies"]))
    elif op == 4:
        nav.router.back()
    else:
        nav.router.forward()


@pytest.mark.parametrize("role,company_id", SESSIONS)
@pytest.mark.parametrize("seed", range(8))
def test_invariants_hold_after_every_step(make_nav, role, company_id, seed):
    """Every settled state satisfies all invariants, whatever the sequence."""
    rng = random.Random(f"{role}-{company_id}-{seed}")
    nav = make_nav(role, company_id=company_id)
    assert settled(nav) == []

    for step in range(60):
        random_step(nav, rng)
        assert nav.in_flight == ()
        assert settled(nav) == [], f"step {step}"
