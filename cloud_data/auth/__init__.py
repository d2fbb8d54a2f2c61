"""
Authentication support for cloud_data.
"""

from .bearer import BearerTokenAuth
from .models import AuthenticatedUser, AuthResult, UserProvider

__all__ = [
    "AuthenticatedUser",
    "AuthResult",
    "UserProvider",
    "BearerTokenAuth",
]
