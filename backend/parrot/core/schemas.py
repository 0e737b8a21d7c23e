"""
Parrot Platform - Pydantic Schemas
==================================

Request and response schemas for API validation.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from parrot.core.models import UserRole
from parrot.core.navigation.tabs import TabClass, TabId


# ==========================================================================
# Base Schemas
# ==========================================================================

class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class TimestampSchema(BaseSchema):
    """Schema with timestamp fields."""

    created_at: datetime
    updated_at: datetime


# ==========================================================================
# Auth Schemas
# ==========================================================================

class UserCreate(BaseSchema):
    """Schema for user registration."""

    email: EmailStr
    password: str = Field(min_length=8, max_length=100)
    name: str = Field(min_length=1, max_length=255)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Validate password strength."""
        if not any(c.isupper() for c in v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not any(c.islower() for c in v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not any(c.isdigit() for c in v):
            raise ValueError("Password must contain at least one digit")
        return v


class UserLogin(BaseSchema):
    """Schema for user login."""

    email: EmailStr
    password: str


class UserResponse(TimestampSchema):
    """Schema for user in responses (no password)."""

    id: UUID
    email: EmailStr
    name: str
    role: UserRole
    company_id: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None


class TokenResponse(BaseSchema):
    """Schema for authentication tokens."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds until access token expires


# ==========================================================================
# Space Schemas
# ==========================================================================

class SpaceCreate(BaseSchema):
    """Schema for creating a space."""

    name: str = Field(min_length=1, max_length=255)
    id: Optional[str] = Field(None, min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_-]+$")
    is_active: bool = True


class SpaceResponse(BaseSchema):
    """Space as listed in the sidebar."""

    id: str
    name: str
    is_active: bool


class SpaceListResponse(BaseSchema):
    items: list[SpaceResponse]
    total: int


# ==========================================================================
# Navigation Schemas
# ==========================================================================

class TabInfo(BaseSchema):
    tab: TabId
    tab_class: TabClass
    requires_space: bool


class TabListResponse(BaseSchema):
    role: UserRole
    default_tab: TabId
    tabs: list[TabInfo]


class ViewOpenRequest(BaseSchema):
    """Open a dashboard view on an initial query (e.g. a deep link)."""

    query: str = Field("", max_length=2048)


class TabChangeRequest(BaseSchema):
    tab: str = Field(min_length=1, max_length=64)


class SpaceChangeRequest(BaseSchema):
    """``space_id`` of null leaves the current space."""

    space_id: Optional[str] = Field(None, max_length=64)


class AdminSwitchRequest(BaseSchema):
    tab: str = Field(TabId.ADMIN.value, min_length=1, max_length=64)


class UrlObservedRequest(BaseSchema):
    """A URL change seen by the browser (deep link, typed URL)."""

    tab: Optional[str] = Field(None, max_length=64)
    space: Optional[str] = Field(None, max_length=64)
    company: Optional[str] = Field(None, max_length=64)


class NavigationStateResponse(BaseSchema):
    active_tab: TabId
    current_space_id: Optional[str] = None
    selected_company: Optional[str] = None


class ViewResponse(BaseSchema):
    """Current state of a dashboard view plus the last transition."""

    view_id: str
    state: NavigationStateResponse
    url: str
    generation: int
    can_go_back: bool
    can_go_forward: bool
    action: Optional[str] = None
    reason: Optional[str] = None


# ==========================================================================
# Common Schemas
# ==========================================================================

class MessageResponse(BaseSchema):
    """Generic message response."""

    message: str


class ErrorResponse(BaseSchema):
    """Error response schema."""

    error: str
    detail: Optional[str] = None
    code: Optional[str] = None


class HealthResponse(BaseSchema):
    """Health check response."""

    status: str
    version: str
    environment: str
    database: str
