"""Principal model and bearer token handling."""

from .principal import Principal, Role
from .tokens import create_access_token, decode_access_token, principal_from_token

__all__ = [
    "Principal",
    "Role",
    "create_access_token",
    "decode_access_token",
    "principal_from_token",
]
