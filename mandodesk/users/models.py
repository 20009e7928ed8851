from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from mandodesk.security import Role


@dataclass(slots=True)
class User:
    """Directory entry for a customer, agent or admin."""

    id: str
    name: str
    email: str
    role: Role
    created_at: datetime

    def summary(self) -> "UserSummary":
        return UserSummary(id=self.id, name=self.name, email=self.email, role=self.role)


@dataclass(frozen=True, slots=True)
class UserSummary:
    """Minimal identity used when expanding ticket references for display."""

    id: str
    name: str
    email: str
    role: Role
