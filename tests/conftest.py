"""Shared pytest fixtures for authflow tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from authflow.auth.iwa import IntegratedWindowsAuthentication
from authflow.models.token import TokenResult

# These ids were randomly generated and do not refer to a real resource,
# client or tenant.
RESOURCE_ID = "6e979987-a7c8-4604-9b37-e51f06f08f1a"
CLIENT_ID = "5af6def2-05ec-4cab-b9aa-323d75b5df40"
TENANT_ID = "8254f6f7-a09f-4752-8bd6-391adc3b912e"
SCOPES = (f"{RESOURCE_ID}/.default",)
TEST_USER = "user@contoso.com"

FAKE_TOKEN = "eyJhbGciOiJub25lIn0.eyJzdWIiOiJ0ZXN0In0."


@pytest.fixture
def token_result() -> TokenResult:
    return TokenResult(token=FAKE_TOKEN, is_silent=True)


@pytest.fixture
def account() -> dict:
    return {"username": TEST_USER, "home_account_id": "uid.utid"}


@pytest.fixture
def identity_client() -> MagicMock:
    """Identity provider client whose three capabilities are AsyncMocks."""
    client = MagicMock()
    client.try_get_cached_account = AsyncMock(return_value=None)
    client.acquire_token_silent = AsyncMock(return_value=None)
    client.acquire_token_integrated = AsyncMock(return_value=None)
    return client


@pytest.fixture
def make_flow(identity_client):
    """Factory for an IWA flow wired to the mock client."""

    def _make(timeout: float = 30.0) -> IntegratedWindowsAuthentication:
        return IntegratedWindowsAuthentication(
            CLIENT_ID,
            TENANT_ID,
            SCOPES,
            client=identity_client,
            timeout=timeout,
        )

    return _make
