"""Auth domain models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class TeamRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


@dataclass(frozen=True)
class AuthenticatedUser:
    id: UUID
    email: str
    role_hint: str  # "employee" | "business_owner"; advisory, never grants team access


@dataclass(frozen=True)
class TeamContext:
    """Outcome of a successful team authorization check for one request."""

    user: AuthenticatedUser
    team_id: UUID
    role: TeamRole

    @property
    def is_admin(self) -> bool:
        return self.role == TeamRole.ADMIN
