"""
Space directory - the spaces a session is allowed to see.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from parrot.core.models import Space, UserRole
from parrot.core.navigation.tabs import has_admin_privileges

logger = logging.getLogger(__name__)


@dataclass
class SpaceEntry:
    """Lightweight space record handed to navigation."""
    id: str
    name: str
    is_active: bool = True


def sort_spaces(spaces: list[SpaceEntry]) -> list[SpaceEntry]:
    """Active spaces first, then by name (case-insensitive)."""
    return sorted(spaces, key=lambda s: (not s.is_active, s.name.lower()))


@dataclass
class SpaceDirectory:
    """
    Spaces visible to one session.

    Admins see every space; everyone else sees only their home space.
    """
    spaces: list[SpaceEntry] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.spaces = sort_spaces(self.spaces)
        self._ids = {space.id for space in self.spaces}

    def contains(self, space_id: str) -> bool:
        return space_id in self._ids

    def get(self, space_id: str) -> Optional[SpaceEntry]:
        for space in self.spaces:
            if space.id == space_id:
                return space
        return None

    def __len__(self) -> int:
        return len(self.spaces)

    @classmethod
    async def load(
        cls,
        db: AsyncSession,
        role: UserRole,
        company_id: Optional[str],
    ) -> "SpaceDirectory":
        """Load the directory for a role from the database."""
        if has_admin_privileges(role):
            result = await db.execute(select(Space))
        elif company_id:
            result = await db.execute(select(Space).where(Space.id == company_id))
        else:
            logger.info(f"No home space for role {role.value}, directory is empty")
            return cls([])

        rows = result.scalars().all()
        if not has_admin_privileges(role) and not rows:
            logger.warning(f"Home space {company_id} not found")

        return cls([SpaceEntry(id=row.id, name=row.name, is_active=row.is_active) for row in rows])
