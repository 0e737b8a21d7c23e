"""
Dashboard Navigation Reconciler
===============================

Keeps ``(active_tab, current_space_id, selected_company)`` consistent with
the browser URL, the signed-in user's role and the tab table.

Two sources change navigation: user requests (tab or space clicks) and URL
changes observed from the router (back/forward, deep links, and the echoes
of our own pushes). Echoes are told apart from external navigation with an
intent token: before every router call the reconciler records the
projection it is about to write, and an observed URL matching that record
is consumed as an echo instead of being reconciled.

Composite transitions (changing space, switching to an admin view) are
additionally marked in-flight for their duration. The marker is scoped by a
context manager, so it is released on every exit path.

Policy violations never raise. They resolve to a redirect and a log line.
"""

import enum
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Mapping, Optional, Protocol, Union

import structlog

from parrot.core.config import settings
from parrot.core.navigation.invariants import check_invariants
from parrot.core.navigation.router import InMemoryRouter, NavigationAction
from parrot.core.navigation.state import (
    NavigationState,
    NavSession,
    ObservedUrl,
    Projection,
    build_url,
    parse_query,
)
from parrot.core.navigation.tabs import (
    UNSCOPED_TABS,
    TabId,
    default_tab_for,
    has_admin_privileges,
    has_space_access_rights,
    is_admin_only,
    is_personal,
    is_space_required,
    manager_may_open,
    never_scoped,
    parse_tab,
)

logger = structlog.get_logger()


class TransitionKind(str, enum.Enum):
    """In-flight transition markers."""
    CHANGING_TAB = "changing_tab"
    CHANGING_SPACE = "changing_space"
    SWITCHING_TO_ADMIN = "switching_to_admin"


# URL observations are dropped while any of these is in flight
URL_SUPPRESSING = frozenset({TransitionKind.CHANGING_SPACE, TransitionKind.SWITCHING_TO_ADMIN})


class SpaceLookup(Protocol):
    """Anything that can tell whether a space id exists for the session."""

    def contains(self, space_id: str) -> bool:
        ...


@dataclass(frozen=True)
class Transition:
    """Outcome of one reconciler operation."""
    previous: NavigationState
    state: NavigationState
    action: Optional[NavigationAction]
    url: Optional[str]
    reason: str

    @property
    def changed(self) -> bool:
        return self.previous != self.state

    @property
    def navigated(self) -> bool:
        return self.action is not None

    def to_dict(self) -> dict:
        return {
            "previous": self.previous.to_dict(),
            "state": self.state.to_dict(),
            "action": self.action.value if self.action else None,
            "url": self.url,
            "reason": self.reason,
        }


class NavigationReconciler:
    """
    Navigation state machine for one dashboard view.

    Usage:
        router = InMemoryRouter()
        nav = NavigationReconciler(session, router)
        nav.start()
        nav.request_tab_change("projects")
    """

    def __init__(
        self,
        session: NavSession,
        router: InMemoryRouter,
        directory: Optional[SpaceLookup] = None,
        base_path: Optional[str] = None,
        emit_company_alias: Optional[bool] = None,
    ):
        self.session = session
        self.router = router
        self.directory = directory
        self.base_path = base_path or router.base_path
        self.emit_company_alias = (
            settings.NAV_EMIT_COMPANY_ALIAS if emit_company_alias is None else emit_company_alias
        )

        self.state = NavigationState(active_tab=default_tab_for(session.role))
        self.generation = 0
        self.last_intent: Optional[Projection] = None
        self._in_flight: list[TransitionKind] = []
        self._started = False

        self._log = logger.bind(user_id=session.user_id, role=session.role.value)

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    def start(self) -> Transition:
        """Subscribe to the router and reconcile the URL the view opened on."""
        if not self._started:
            self.router.subscribe(self._on_url_change)
            self._started = True
        return self._reconcile(self.router.query)

    def stop(self) -> None:
        if self._started:
            self.router.unsubscribe(self._on_url_change)
            self._started = False

    @property
    def in_flight(self) -> tuple[TransitionKind, ...]:
        return tuple(self._in_flight)

    @property
    def is_admin(self) -> bool:
        return has_admin_privileges(self.session.role)

    @property
    def home_space(self) -> Optional[str]:
        return self.session.company_id

    def snapshot(self) -> dict:
        return {
            **self.state.to_dict(),
            "url": self.router.location,
            "generation": self.generation,
            "can_go_back": self.router.can_go_back(),
            "can_go_forward": self.router.can_go_forward(),
        }

    # ==========================================================================
    # Operations
    # ==========================================================================

    def request_tab_change(self, tab: Union[TabId, str]) -> Transition:
        """Handle a tab the user picked."""
        parsed = parse_tab(tab)
        if parsed is None:
            self._log.error("nav_unknown_tab", tab=tab)
            return self._noop("unknown tab")

        with self._transition(TransitionKind.CHANGING_TAB):
            projection, action, reason = self._resolve_tab(parsed)
            result = self._commit(projection, action, reason)
        self._settle(result)
        return result

    def request_space_change(self, space_id: Optional[str]) -> Transition:
        """Handle a space picked (or left) in the sidebar."""
        if space_id is not None and (not isinstance(space_id, str) or not space_id.strip()):
            self._log.error("nav_malformed_space_id", space_id=repr(space_id))
            return self._noop("malformed space id")

        with self._transition(TransitionKind.CHANGING_SPACE):
            resolved = self._resolve_space(space_id.strip() if space_id else None)
            if resolved is None:
                result = self._noop("unknown space")
            else:
                result = self._commit(*resolved)
        self._settle(result)
        return result

    def switch_to_admin_view(self, tab: Union[TabId, str] = TabId.ADMIN) -> Transition:
        """
        Leave the current space and open an admin-only tab in one step.

        The space clear and the tab change share a single history entry.
        """
        parsed = parse_tab(tab)
        if parsed is None or not is_admin_only(parsed):
            self._log.error("nav_not_an_admin_tab", tab=tab)
            return self._noop("not an admin tab")

        if not self.is_admin:
            return self.request_tab_change(parsed)

        previous = self.state
        with self._transition(TransitionKind.SWITCHING_TO_ADMIN):
            if self.state.current_space_id is not None:
                self.request_space_change(None)
            inner = self.request_tab_change(parsed)
        result = Transition(previous, self.state, inner.action, inner.url, "switched to admin view")
        self._settle(result)
        return result

    def reconcile_from_url(
        self,
        tab: Optional[str] = None,
        space: Optional[str] = None,
        company: Optional[str] = None,
    ) -> Transition:
        """Reconcile an observed ``?tab=&space=&company=`` query."""
        return self._reconcile(parse_query({"tab": tab, "space": space, "company": company}))

    def reconcile_query(self, query: Union[str, Mapping[str, object]]) -> Transition:
        return self._reconcile(parse_query(query))

    # ==========================================================================
    # Resolution Rules
    # ==========================================================================

    def _home_projection(self) -> Projection:
        if self.home_space:
            return Projection(TabId.DASHBOARD, self.home_space)
        return Projection(TabId.USER_DASHBOARD)

    def _adopt_home(self, tab: TabId) -> tuple[Projection, NavigationAction, str]:
        if self.home_space:
            return Projection(tab, self.home_space), NavigationAction.PUSH, "adopted home space"
        self._log.warning("nav_no_home_space", tab=tab.value)
        return Projection(TabId.USER_DASHBOARD), NavigationAction.REPLACE, "no home space"

    def _resolve_tab(self, tab: TabId) -> tuple[Projection, NavigationAction, str]:
        role = self.session.role
        space = self.state.current_space_id

        if is_personal(tab):
            return Projection(tab), NavigationAction.PUSH, "personal tab"

        if is_admin_only(tab) and not self.is_admin and not manager_may_open(role, tab, space):
            self._log.warning("nav_unauthorized_tab", tab=tab.value, source="request")
            return self._home_projection(), NavigationAction.REPLACE, "unauthorized tab"

        if is_admin_only(tab):
            if tab is TabId.ADMIN and space:
                return Projection(tab, space), NavigationAction.PUSH, "admin scoped to space"
            return Projection(tab), NavigationAction.PUSH, "admin-only tab"

        if tab is TabId.FORMS and not space:
            if self.is_admin:
                return Projection(tab), NavigationAction.PUSH, "admin forms view"
            return self._adopt_home(tab)

        if is_space_required(tab) and not space:
            if self.is_admin:
                return Projection(TabId.SPACES), NavigationAction.PUSH, "pick a space first"
            return self._adopt_home(tab)

        if tab in UNSCOPED_TABS:
            return Projection(tab), NavigationAction.PUSH, "cross-space tab"

        return Projection(tab, space), NavigationAction.PUSH, "tab change"

    def _resolve_space(
        self, space_id: Optional[str]
    ) -> Optional[tuple[Projection, Optional[NavigationAction], str]]:
        if space_id is None:
            if not self.is_admin:
                self._log.warning("nav_space_exit_denied", home_space=self.home_space)
                return self._home_projection(), NavigationAction.REPLACE, "space exit denied"
            if TransitionKind.SWITCHING_TO_ADMIN in self._in_flight:
                # The admin tab change that follows owns the URL write
                return Projection(self.state.active_tab), None, "space cleared for admin view"
            return Projection(TabId.SPACES), NavigationAction.REPLACE, "left space"

        if not self.is_admin and space_id != self.home_space:
            self._log.warning("nav_foreign_space", space_id=space_id, home_space=self.home_space)
            return self._home_projection(), NavigationAction.REPLACE, "space outside role scope"

        if self.directory is not None and not self.directory.contains(space_id):
            self._log.error("nav_unknown_space", space_id=space_id)
            return None

        return Projection(TabId.DASHBOARD, space_id), NavigationAction.REPLACE, "space selected"

    def _space_allowed(self, space_id: str) -> bool:
        if not self.is_admin:
            return space_id == self.home_space
        return self.directory is None or self.directory.contains(space_id)

    def _url_target(self, tab: TabId, space: Optional[str]) -> Projection:
        if never_scoped(tab):
            return Projection(tab)
        if space:
            return Projection(tab, space)
        if tab is TabId.FORMS or is_space_required(tab):
            if self.is_admin:
                return Projection(TabId.SPACES) if is_space_required(tab) else Projection(tab)
            if self.home_space:
                return Projection(tab, self.home_space)
            return Projection(TabId.USER_DASHBOARD)
        return Projection(tab)

    def _reconcile(self, observed: ObservedUrl) -> Transition:
        suppressed = [kind.value for kind in self._in_flight if kind in URL_SUPPRESSING]
        if suppressed:
            self._log.debug("nav_url_suppressed", in_flight=suppressed)
            return self._noop("suppressed")

        observed_projection = observed.projection()
        intent, self.last_intent = self.last_intent, None
        if intent is not None and observed_projection == intent == self.state.projection:
            return self._noop("echo")

        role = self.session.role
        tab = observed.tab
        space = observed.effective_space
        replace = NavigationAction.REPLACE

        if observed.has_unknown_tab:
            self._log.warning("nav_unknown_tab_in_url", tab=observed.raw_tab)

        if (
            tab is not None
            and is_admin_only(tab)
            and not self.is_admin
            and not manager_may_open(role, tab, space)
        ):
            self._log.warning("nav_unauthorized_tab", tab=tab.value, source="url")
            result = self._commit(Projection(TabId.USER_DASHBOARD), replace, "unauthorized tab in url")
        elif tab is TabId.DASHBOARD and not space and not self.is_admin:
            result = self._commit(Projection(TabId.USER_DASHBOARD), replace, "dashboard without space")
        elif not has_space_access_rights(role) and (
            tab is None or (tab is TabId.USER_DASHBOARD and space)
        ):
            result = self._commit(Projection(TabId.USER_DASHBOARD), replace, "landing")
        elif space and not never_scoped(tab or default_tab_for(role)) and not self._space_allowed(space):
            self._log.warning("nav_foreign_space", space_id=space, source="url")
            target = Projection(TabId.SPACES) if self.is_admin else self._home_projection()
            result = self._commit(target, replace, "space outside role scope")
        elif tab is TabId.SPACES and space:
            result = self._commit(Projection(TabId.DASHBOARD, space), replace, "stale spaces link")
        else:
            target = self._url_target(tab or default_tab_for(role), space)
            result = self._commit(target, replace, "url adopted")

        self._settle(result)
        return result

    def _on_url_change(self, observed: ObservedUrl) -> None:
        self._reconcile(observed)

    # ==========================================================================
    # Commit
    # ==========================================================================

    @contextmanager
    def _transition(self, kind: TransitionKind) -> Iterator[None]:
        self._in_flight.append(kind)
        try:
            yield
        finally:
            self._in_flight.remove(kind)

    def _noop(self, reason: str) -> Transition:
        return Transition(self.state, self.state, None, None, reason)

    def _commit(
        self,
        projection: Projection,
        action: Optional[NavigationAction],
        reason: str,
    ) -> Transition:
        """
        Apply a projection to the state and, if needed, to the URL.

        A projection equal to both the current state and the current URL is a
        no-op. ``action=None`` updates state only.
        """
        previous = self.state
        self.state = previous.with_projection(projection)
        url = build_url(self.base_path, projection, self.emit_company_alias)

        # Compare whole URLs: a legacy company-only link projects the same
        # but still has to be rewritten to the space param.
        if action is None or self.router.location == url:
            return Transition(previous, self.state, None, None, reason)

        self.generation += 1
        self.last_intent = projection
        self._log.info(
            "nav_commit",
            reason=reason,
            action=action.value,
            url=url,
            generation=self.generation,
        )
        self.router.navigate(url, action)
        return Transition(previous, self.state, action, url, reason)

    def _settle(self, result: Transition) -> None:
        if self._in_flight:
            return
        violations = check_invariants(self.state, self.session, self.router.query)
        if violations:
            self._log.warning("nav_invariant_violation", violations=violations, reason=result.reason)
