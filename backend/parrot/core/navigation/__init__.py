"""
Parrot Dashboard Navigation
===========================

Tab/space/URL reconciliation for the dashboard.

Components:
- tabs: tab table and role helpers
- state: NavigationState, Projection and the query codec
- router: InMemoryRouter (push/replace history with listeners)
- reconciler: NavigationReconciler
- invariants: settled-state checks
- registry: open dashboard views per user
"""

from parrot.core.navigation.invariants import check_invariants
from parrot.core.navigation.reconciler import NavigationReconciler, Transition, TransitionKind
from parrot.core.navigation.registry import ViewNotFound, ViewRegistry, get_view_registry
from parrot.core.navigation.router import InMemoryRouter, NavigationAction
from parrot.core.navigation.state import (
    NavigationState,
    NavSession,
    ObservedUrl,
    Projection,
    build_query,
    parse_query,
)
from parrot.core.navigation.tabs import TAB_CLASSES, TabClass, TabId

__all__ = [
    "TAB_CLASSES",
    "InMemoryRouter",
    "NavigationAction",
    "NavigationReconciler",
    "NavigationState",
    "NavSession",
    "ObservedUrl",
    "Projection",
    "TabClass",
    "TabId",
    "Transition",
    "TransitionKind",
    "ViewNotFound",
    "ViewRegistry",
    "build_query",
    "check_invariants",
    "get_view_registry",
    "parse_query",
]
