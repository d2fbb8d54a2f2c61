"""
Exception hierarchy for the cloud data layer.

Failures on the request path are never raised to callers of
``CloudDataSource.execute_remote_graphql``; the exchange converts them into
result data. The classes below are what ends up inside
``CombinedError.network_error``, and what configuration and wiring code
raises for programming errors.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import aiohttp


class CloudDataError(Exception):
    """
    Base exception for all cloud data operations.

    Attributes:
        message: Human-readable error message
        url: Endpoint that caused the error (if applicable)
        details: Additional error details as keyword arguments
    """

    def __init__(self, message: str, url: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message
        self.url = url
        self.details = kwargs


class ConfigurationError(CloudDataError):
    """Raised when configuration cannot be loaded or is inconsistent."""

    pass


class TransportError(CloudDataError):
    """
    Raised for failures of the network exchange itself.

    Covers connection failures, DNS problems, unreadable response bodies and
    anything else that prevents a GraphQL payload from being obtained.
    """

    pass


class RequestTimeoutError(TransportError):
    """Raised when the transport gives up waiting for the remote service."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        timeout_value: Optional[float] = None,
    ) -> None:
        super().__init__(message, url)
        self.timeout_value = timeout_value


class HTTPError(TransportError):
    """Raised when the remote service answers with a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: int,
        url: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        response_text: Optional[str] = None,
    ) -> None:
        super().__init__(message, url)
        self.status_code = status_code
        self.headers = headers or {}
        self.response_text = response_text


class AuthenticationError(HTTPError):
    """Raised for authentication-related errors (401, 403)."""

    pass


class ServerError(HTTPError):
    """Raised for server errors (5xx)."""

    pass


class CacheStoreError(CloudDataError):
    """Raised when the cache store rejects a command it does not understand."""

    pass


class DelegationError(CloudDataError):
    """Raised when a field is delegated without a schema delegation collaborator."""

    pass


class ErrorHandler:
    """
    Converts low-level transport exceptions into the cloud data hierarchy.
    """

    @staticmethod
    def handle_transport_error(
        error: Exception, url: Optional[str] = None
    ) -> CloudDataError:
        """
        Convert an exception raised by the fetch capability.

        Args:
            error: The original exception
            url: The endpoint that was being contacted

        Returns:
            Appropriate CloudDataError subclass
        """
        if isinstance(error, CloudDataError):
            return error

        if isinstance(error, asyncio.TimeoutError):
            return RequestTimeoutError(f"Request timed out: {error}", url=url)

        if isinstance(error, aiohttp.ClientResponseError):
            return ErrorHandler.handle_http_status_error(
                error.status, str(error.message), url
            )

        if isinstance(error, aiohttp.ClientError):
            return TransportError(f"Connection error: {error}", url=url)

        return TransportError(f"Unexpected transport error: {error}", url=url)

    @staticmethod
    def handle_http_status_error(
        status_code: int,
        message: str,
        url: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        response_text: Optional[str] = None,
    ) -> HTTPError:
        """
        Create appropriate HTTPError subclass based on status code.

        Args:
            status_code: HTTP status code
            message: Error message
            url: The endpoint that answered
            headers: Response headers
            response_text: Response body text

        Returns:
            Appropriate HTTPError subclass
        """
        if status_code == 401:
            return AuthenticationError(
                f"Authentication required: {message}",
                status_code,
                url,
                headers,
                response_text,
            )

        elif status_code == 403:
            return AuthenticationError(
                f"Access forbidden: {message}", status_code, url, headers, response_text
            )

        elif 500 <= status_code < 600:
            return ServerError(
                f"Server error: {message}", status_code, url, headers, response_text
            )

        else:
            return HTTPError(message, status_code, url, headers, response_text)
