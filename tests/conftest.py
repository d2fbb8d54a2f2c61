"""
Shared test fixtures and configuration for the cloud_data test suite.
"""

from unittest.mock import MagicMock

import pytest

from cloud_data import (
    AuthenticatedUser,
    CloudDataConfig,
    CloudDataSource,
    CloudDataSourceParams,
    QueryRequest,
)

from helpers import USER_QUERY, RecordingFetch


@pytest.fixture
def user() -> AuthenticatedUser:
    return AuthenticatedUser(auth_token="test-token-123", name="Test User")


@pytest.fixture
def fetch() -> RecordingFetch:
    return RecordingFetch()


@pytest.fixture
def params(fetch: RecordingFetch, user: AuthenticatedUser) -> CloudDataSourceParams:
    return CloudDataSourceParams(
        fetch=fetch,
        get_user=MagicMock(return_value=user),
        logout=MagicMock(),
        invalidate_client_cache=MagicMock(),
        delegate_to_schema=MagicMock(),
    )


@pytest.fixture
def config() -> CloudDataConfig:
    return CloudDataConfig(client_version="1.2.3")


@pytest.fixture
def data_source(params: CloudDataSourceParams, config: CloudDataConfig) -> CloudDataSource:
    return CloudDataSource(params, config)


@pytest.fixture
def user_request() -> QueryRequest:
    return QueryRequest(
        document=USER_QUERY,
        variables={"id": "1"},
        operation_name="User",
        field_name="user",
    )
