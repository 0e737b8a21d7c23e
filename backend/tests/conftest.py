"""
Parrot Platform - Test Fixtures
===============================

Shared pytest fixtures for all tests.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")

from collections.abc import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from passlib.hash import bcrypt
from sqlalchemy.ext.asyncio import AsyncSession

from parrot.api.deps import create_access_token
from parrot.api.main import app
from parrot.core.database import create_engine, drop_db, get_db, init_db, session_factory
from parrot.core.models import Space, User, UserRole
from parrot.core.navigation import (
    InMemoryRouter,
    NavigationReconciler,
    NavSession,
    get_view_registry,
)


# ==========================================================================
# Test Database Setup
# ==========================================================================

# Use in-memory SQLite for tests (fast)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_engine(TEST_DATABASE_URL, echo=False)
TestingSessionLocal = session_factory(test_engine)


# ==========================================================================
# Database Fixtures
# ==========================================================================

@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a clean database session for each test.

    Creates all tables before test, drops after.
    """
    await init_db(test_engine)

    async with TestingSessionLocal() as session:
        yield session

    await drop_db(test_engine)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide test HTTP client with database override."""
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    get_view_registry().clear()


# ==========================================================================
# Space & User Fixtures
# ==========================================================================

@pytest_asyncio.fixture
async def spaces(db_session: AsyncSession) -> list[Space]:
    """Three spaces, one of them inactive."""
    rows = [
        Space(id="space-42", name="Zephyr Studio", is_active=True),
        Space(id="space-7", name="acme corp", is_active=True),
        Space(id="space-9", name="Bygone Ltd", is_active=False),
    ]
    db_session.add_all(rows)
    await db_session.commit()
    return rows


async def make_user(
    db_session: AsyncSession,
    email: str,
    role: UserRole,
    company_id: str | None = None,
    is_active: bool = True,
) -> User:
    user = User(
        id=uuid4(),
        email=email,
        password_hash=bcrypt.hash("TestPass123!"),
        name=email.split("@")[0].title(),
        role=role,
        company_id=company_id,
        is_active=is_active,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession, spaces: list[Space]) -> User:
    """Regular user whose home space is space-42. Password: TestPass123!"""
    return await make_user(db_session, "test@example.com", UserRole.USER, "space-42")


@pytest_asyncio.fixture
async def test_manager(db_session: AsyncSession, spaces: list[Space]) -> User:
    """Manager of space-7."""
    return await make_user(db_session, "manager@example.com", UserRole.MANAGER, "space-7")


@pytest_asyncio.fixture
async def test_admin(db_session: AsyncSession, spaces: list[Space]) -> User:
    """Admin with no home space."""
    return await make_user(db_session, "admin@example.com", UserRole.ADMIN)


@pytest_asyncio.fixture
async def inactive_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "inactive@example.com", UserRole.USER, is_active=False)


# ==========================================================================
# Auth Fixtures
# ==========================================================================

@pytest.fixture
def auth_headers(test_user: User) -> dict[str, str]:
    """Get authorization headers for test user."""
    return {"Authorization": f"Bearer {create_access_token(test_user.id)}"}


@pytest.fixture
def manager_headers(test_manager: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(test_manager.id)}"}


@pytest.fixture
def admin_headers(test_admin: User) -> dict[str, str]:
    """Get authorization headers for admin user."""
    return {"Authorization": f"Bearer {create_access_token(test_admin.id)}"}


# ==========================================================================
# Navigation Fixtures
# ==========================================================================

class FakeDirectory:
    """Space lookup backed by a fixed set of ids."""

    def __init__(self, *space_ids: str):
        self.ids = set(space_ids)

    def contains(self, space_id: str) -> bool:
        return space_id in self.ids


@pytest.fixture
def space_lookup():
    """FakeDirectory class, e.g. ``space_lookup("space-1", "space-2")``."""
    return FakeDirectory


@pytest.fixture
def make_nav():
    """
    Build a started reconciler.

    Usage:
        nav = make_nav("user", company_id="space-42", query="tab=forms")
    """
    def _make(
        role: str,
        company_id: str | None = None,
        query: str = "",
        directory=None,
        start: bool = True,
    ) -> NavigationReconciler:
        session = NavSession(user_id="u-1", role=UserRole(role), company_id=company_id)
        router = InMemoryRouter(base_path="/dashboard", initial_query=query)
        nav = NavigationReconciler(session, router, directory=directory, emit_company_alias=False)
        if start:
            nav.start()
        return nav

    return _make
