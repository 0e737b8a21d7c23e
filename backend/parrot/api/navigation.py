"""
Parrot Platform - Dashboard Navigation API
==========================================

Drives the navigation reconciler of an open dashboard view. The client
reports user clicks and browser URL changes; the response carries the
settled tab/space pair and the URL the browser should show.
"""

from urllib.parse import urlencode

from fastapi import APIRouter, HTTPException, status

from parrot.api.deps import CurrentNavSession, CurrentUser, DbSession, Views
from parrot.core.navigation import Transition, ViewNotFound
from parrot.core.navigation.registry import DashboardView
from parrot.core.navigation.tabs import default_tab_for, visible_tabs
from parrot.core.schemas import (
    AdminSwitchRequest,
    MessageResponse,
    NavigationStateResponse,
    SpaceChangeRequest,
    TabChangeRequest,
    TabInfo,
    TabListResponse,
    UrlObservedRequest,
    ViewOpenRequest,
    ViewResponse,
)
from parrot.core.spaces import SpaceDirectory

router = APIRouter(prefix="/navigation", tags=["Navigation"])


# ==========================================================================
# Helpers
# ==========================================================================

def view_response(view: DashboardView, transition: Transition | None = None) -> ViewResponse:
    snapshot = view.reconciler.snapshot()
    return ViewResponse(
        view_id=view.id,
        state=NavigationStateResponse(
            active_tab=snapshot["active_tab"],
            current_space_id=snapshot["current_space_id"],
            selected_company=snapshot["selected_company"],
        ),
        url=snapshot["url"],
        generation=snapshot["generation"],
        can_go_back=snapshot["can_go_back"],
        can_go_forward=snapshot["can_go_forward"],
        action=transition.action.value if transition and transition.action else None,
        reason=transition.reason if transition else None,
    )


def lookup_view(views, view_id: str, user_id: str) -> DashboardView:
    try:
        return views.get(view_id, user_id)
    except ViewNotFound as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="View not found",
        ) from e


# ==========================================================================
# Tabs
# ==========================================================================

@router.get(
    "/tabs",
    response_model=TabListResponse,
    summary="Tabs visible to the caller",
)
async def list_tabs(session: CurrentNavSession) -> TabListResponse:
    return TabListResponse(
        role=session.role,
        default_tab=default_tab_for(session.role),
        tabs=[TabInfo(**entry) for entry in visible_tabs(session.role)],
    )


# ==========================================================================
# Views
# ==========================================================================

@router.post(
    "/views",
    response_model=ViewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a dashboard view",
)
async def open_view(
    data: ViewOpenRequest,
    session: CurrentNavSession,
    db: DbSession,
    views: Views,
) -> ViewResponse:
    """
    Open a view on an initial query (deep link or bare ``/dashboard``) and
    run the cold-start reconciliation.
    """
    directory = await SpaceDirectory.load(db, session.role, session.company_id)
    view, transition = views.open(session, data.query, directory=directory)
    return view_response(view, transition)


@router.get(
    "/views/{view_id}",
    response_model=ViewResponse,
    summary="Get a view's current state",
)
async def get_view(view_id: str, current_user: CurrentUser, views: Views) -> ViewResponse:
    return view_response(lookup_view(views, view_id, str(current_user.id)))


@router.delete(
    "/views/{view_id}",
    response_model=MessageResponse,
    summary="Close a view",
)
async def close_view(view_id: str, current_user: CurrentUser, views: Views) -> MessageResponse:
    lookup_view(views, view_id, str(current_user.id))
    views.close(view_id, str(current_user.id))
    return MessageResponse(message="View closed")


@router.post(
    "/views/{view_id}/tab",
    response_model=ViewResponse,
    summary="Request a tab change",
)
async def change_tab(
    view_id: str,
    data: TabChangeRequest,
    current_user: CurrentUser,
    views: Views,
) -> ViewResponse:
    view = lookup_view(views, view_id, str(current_user.id))
    return view_response(view, view.reconciler.request_tab_change(data.tab))


@router.post(
    "/views/{view_id}/space",
    response_model=ViewResponse,
    summary="Request a space change",
)
async def change_space(
    view_id: str,
    data: SpaceChangeRequest,
    current_user: CurrentUser,
    views: Views,
) -> ViewResponse:
    view = lookup_view(views, view_id, str(current_user.id))
    return view_response(view, view.reconciler.request_space_change(data.space_id))


@router.post(
    "/views/{view_id}/admin",
    response_model=ViewResponse,
    summary="Leave the space and open an admin view",
)
async def switch_to_admin(
    view_id: str,
    data: AdminSwitchRequest,
    current_user: CurrentUser,
    views: Views,
) -> ViewResponse:
    view = lookup_view(views, view_id, str(current_user.id))
    return view_response(view, view.reconciler.switch_to_admin_view(data.tab))


@router.post(
    "/views/{view_id}/url",
    response_model=ViewResponse,
    summary="Report a URL typed or followed in the browser",
)
async def observe_url(
    view_id: str,
    data: UrlObservedRequest,
    current_user: CurrentUser,
    views: Views,
) -> ViewResponse:
    """The URL is pushed onto the view's history and then reconciled."""
    view = lookup_view(views, view_id, str(current_user.id))
    query = urlencode([(key, value) for key, value in data.model_dump().items() if value])
    view.router.go_to(f"{view.router.base_path}?{query}" if query else view.router.base_path)
    return view_response(view)


@router.post(
    "/views/{view_id}/back",
    response_model=ViewResponse,
    summary="Browser back",
)
async def go_back(view_id: str, current_user: CurrentUser, views: Views) -> ViewResponse:
    view = lookup_view(views, view_id, str(current_user.id))
    view.router.back()
    return view_response(view)


@router.post(
    "/views/{view_id}/forward",
    response_model=ViewResponse,
    summary="Browser forward",
)
async def go_forward(view_id: str, current_user: CurrentUser, views: Views) -> ViewResponse:
    view = lookup_view(views, view_id, str(current_user.id))
    view.router.forward()
    return view_response(view)
