from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Supported roles."""

    CUSTOMER = "customer"
    AGENT = "agent"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: str | None) -> "Role | None":
        if value is None:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller resolved for the current request."""

    id: str
    role: Role

    @property
    def is_staff(self) -> bool:
        return self.role in (Role.AGENT, Role.ADMIN)
