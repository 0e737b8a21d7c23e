"""
Open dashboard views.

One view is a reconciler plus its router, owned by a single user. Views
live in memory for as long as the dashboard is open.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

import structlog

from parrot.core.config import settings
from parrot.core.navigation.reconciler import NavigationReconciler, SpaceLookup, Transition
from parrot.core.navigation.router import InMemoryRouter
from parrot.core.navigation.state import NavSession

logger = structlog.get_logger()


class ViewNotFound(KeyError):
    """No open view with that id for that user."""


@dataclass
class DashboardView:
    id: str
    session: NavSession
    router: InMemoryRouter
    reconciler: NavigationReconciler
    opened_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ViewRegistry:
    """Tracks open views with a per-user cap (oldest evicted first)."""

    def __init__(self, max_views_per_user: Optional[int] = None):
        if max_views_per_user is None:
            max_views_per_user = settings.NAV_MAX_VIEWS_PER_USER
        if max_views_per_user < 1:
            raise ValueError(f"max_views_per_user must be at least 1, got {max_views_per_user}")
        self.max_views_per_user = max_views_per_user
        self._views: "OrderedDict[str, DashboardView]" = OrderedDict()

    def open(
        self,
        session: NavSession,
        query: str = "",
        directory: Optional[SpaceLookup] = None,
    ) -> tuple[DashboardView, Transition]:
        """Open a view on ``query`` and run its cold-start reconciliation."""
        owned = [view for view in self._views.values() if view.session.user_id == session.user_id]
        while len(owned) >= self.max_views_per_user:
            evicted = owned.pop(0)
            self._discard(evicted.id)
            logger.info("nav_view_evicted", view_id=evicted.id, user_id=session.user_id)

        router = InMemoryRouter(base_path=settings.NAV_BASE_PATH, initial_query=query)
        reconciler = NavigationReconciler(session, router, directory=directory)
        view = DashboardView(id=uuid4().hex, session=session, router=router, reconciler=reconciler)
        self._views[view.id] = view

        transition = reconciler.start()
        logger.info("nav_view_opened", view_id=view.id, user_id=session.user_id, url=router.location)
        return view, transition

    def get(self, view_id: str, user_id: str) -> DashboardView:
        view = self._views.get(view_id)
        if view is None or view.session.user_id != user_id:
            raise ViewNotFound(view_id)
        return view

    def close(self, view_id: str, user_id: str) -> None:
        self.get(view_id, user_id)
        self._discard(view_id)
        logger.info("nav_view_closed", view_id=view_id, user_id=user_id)

    def _discard(self, view_id: str) -> None:
        view = self._views.pop(view_id, None)
        if view is not None:
            view.reconciler.stop()

    def count(self, user_id: Optional[str] = None) -> int:
        if user_id is None:
            return len(self._views)
        return sum(1 for view in self._views.values() if view.session.user_id == user_id)

    def clear(self) -> None:
        for view_id in list(self._views):
            self._discard(view_id)


# Global registry instance
_registry: Optional[ViewRegistry] = None


def get_view_registry() -> ViewRegistry:
    """Get or create the view registry."""
    global _registry
    if _registry is None:
        _registry = ViewRegistry()
    return _registry
