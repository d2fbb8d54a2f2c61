"""
Authentication models.

The session itself (login, token storage, logout) belongs to the host
application; this package only reads the current user.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthenticatedUser(BaseModel):
    """The signed-in user, as handed out by the host's session lookup."""

    auth_token: str = Field(description="Token sent as the bearer credential")
    name: Optional[str] = Field(default=None, description="Display name")
    email: Optional[str] = Field(default=None, description="Account email")

    model_config = ConfigDict(extra="allow", frozen=True)


UserProvider = Callable[[], Optional[AuthenticatedUser]]


@dataclass
class AuthResult:
    """Result of authentication operation."""

    success: bool
    headers: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None
