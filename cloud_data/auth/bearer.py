"""
Bearer token authentication for requests to the remote service.

The token is looked up from the current user on every request, so a login or
logout in the host application is picked up without rebuilding anything.
"""

from __future__ import annotations

from .models import AuthResult, UserProvider


class BearerTokenAuth:
    """
    Builds the Authorization header from the current user's token.

    Example:
        ```python
        auth = BearerTokenAuth(lambda: session.user)
        headers = auth.authenticate().headers
        ```
    """

    def __init__(
        self,
        get_user: UserProvider,
        header_name: str = "Authorization",
        scheme: str = "bearer",
    ):
        """
        Initialize Bearer token authentication.

        Args:
            get_user: Current session lookup
            header_name: Header name for the token
            scheme: Token scheme prefix
        """
        self.get_user = get_user
        self.header_name = header_name
        self.scheme = scheme

    def authenticate(self) -> AuthResult:
        """
        Build the authentication headers for the current user.

        With no signed-in user the header is still sent, with an empty value,
        so the remote service sees an explicit anonymous request.
        """
        user = self.get_user()
        if user is None or not user.auth_token:
            return AuthResult(
                success=False,
                headers={self.header_name: ""},
                error="No authenticated user",
            )

        return AuthResult(
            success=True,
            headers={self.header_name: f"{self.scheme} {user.auth_token}"},
        )
