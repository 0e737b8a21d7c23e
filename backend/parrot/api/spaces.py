"""
Parrot Platform - Spaces API
============================

Client workspaces listed in the dashboard sidebar.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from pydantic import Field
from sqlalchemy import select

from parrot.api.deps import CurrentAdminUser, CurrentUser, DbSession
from parrot.core.models import Space, User, UserRole
from parrot.core.schemas import (
    BaseSchema,
    SpaceCreate,
    SpaceListResponse,
    SpaceResponse,
    UserResponse,
)
from parrot.core.spaces import SpaceDirectory

router = APIRouter(prefix="/spaces", tags=["Spaces"])


class MemberAssignRequest(BaseSchema):
    """Make a user a member of a space (their home space)."""

    user_id: UUID
    role: UserRole = Field(UserRole.USER)


@router.get(
    "",
    response_model=SpaceListResponse,
    summary="List spaces visible to the caller",
)
async def list_spaces(current_user: CurrentUser, db: DbSession) -> SpaceListResponse:
    """
    Admins get every space, active ones first then by name.
    Everyone else gets only their home space.
    """
    directory = await SpaceDirectory.load(db, current_user.role, current_user.company_id)
    items = [
        SpaceResponse(id=space.id, name=space.name, is_active=space.is_active)
        for space in directory.spaces
    ]
    return SpaceListResponse(items=items, total=len(items))


@router.post(
    "",
    response_model=SpaceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a space",
    responses={
        403: {"description": "Admin access required"},
        409: {"description": "Space id already exists"},
    },
)
async def create_space(
    data: SpaceCreate,
    current_user: CurrentAdminUser,
    db: DbSession,
) -> SpaceResponse:
    if data.id is not None:
        existing = await db.get(Space, data.id)
        if existing is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Space id already exists",
            )

    space = Space(name=data.name, is_active=data.is_active)
    if data.id is not None:
        space.id = data.id

    db.add(space)
    await db.commit()
    await db.refresh(space)
    return SpaceResponse.model_validate(space)


@router.post(
    "/{space_id}/members",
    response_model=UserResponse,
    summary="Assign a user to a space",
    responses={
        403: {"description": "Admin access required"},
        404: {"description": "Space or user not found"},
    },
)
async def assign_member(
    space_id: str,
    data: MemberAssignRequest,
    current_user: CurrentAdminUser,
    db: DbSession,
) -> UserResponse:
    """Set the user's home space and role."""
    space = await db.get(Space, space_id)
    if space is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Space not found")

    result = await db.execute(select(User).where(User.id == data.user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    user.company_id = space.id
    user.role = data.role
    await db.commit()
    await db.refresh(user)
    return UserResponse.model_validate(user)
