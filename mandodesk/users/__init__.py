"""User directory: name lookup, identity expansion and listing."""

from .models import User, UserSummary
from .repository import UserRepository
from .service import UserDirectory

__all__ = ["User", "UserDirectory", "UserRepository", "UserSummary"]
