"""Tests for the Integrated Windows Authentication flow."""

from __future__ import annotations

import asyncio

import pytest

from authflow.models.result import ErrorKind
from authflow.models.token import TokenResult
from authflow.utils.exceptions import (
    InteractionRequiredError,
    ProviderClientError,
    ProviderServiceError,
)

from conftest import SCOPES, TEST_USER

SERVICE_ERROR_CODE = "1"
SERVICE_ERROR_MESSAGE = "MSAL Service Exception: Something bad has happened!"
NO_ACCOUNT_MESSAGE = "Could not find a WAM account for the silent request."


def service_error() -> ProviderServiceError:
    return ProviderServiceError(SERVICE_ERROR_CODE, SERVICE_ERROR_MESSAGE)


class TestCachedAccount:
    """Flows where the lookup finds an account."""

    async def test_silent_success(self, make_flow, identity_client, account, token_result):
        """Silent token is returned without trying IWA."""
        identity_client.try_get_cached_account.return_value = account
        identity_client.acquire_token_silent.return_value = token_result

        result = await make_flow().get_token(hint=TEST_USER)

        assert result.token_result == token_result
        assert result.token_result.is_silent is True
        assert result.errors == ()
        assert result.auth_flow_name == "iwa"
        identity_client.try_get_cached_account.assert_awaited_once_with(TEST_USER)
        identity_client.acquire_token_silent.assert_awaited_once_with(SCOPES, account, None)
        identity_client.acquire_token_integrated.assert_not_awaited()

    async def test_silent_returns_none_falls_back_to_iwa(
        self, make_flow, identity_client, account, token_result
    ):
        """A silent miss is not an error and IWA is attempted."""
        identity_client.try_get_cached_account.return_value = account
        identity_client.acquire_token_silent.return_value = None
        identity_client.acquire_token_integrated.return_value = token_result

        result = await make_flow().get_token()

        assert result.token_result == token_result
        assert result.errors == ()
        assert result.auth_flow_name == "iwa"
        identity_client.acquire_token_integrated.assert_awaited_once_with(SCOPES, None)

    async def test_silent_service_error_then_iwa_success(
        self, make_flow, identity_client, account, token_result
    ):
        identity_client.try_get_cached_account.return_value = account
        identity_client.acquire_token_silent.side_effect = service_error()
        identity_client.acquire_token_integrated.return_value = token_result

        result = await make_flow().get_token()

        assert result.token_result == token_result
        assert len(result.errors) == 1
        assert result.errors[0].kind == ErrorKind.SERVICE
        assert result.errors[0].code == SERVICE_ERROR_CODE
        assert result.errors[0].message == SERVICE_ERROR_MESSAGE
        assert result.auth_flow_name == "iwa"

    async def test_silent_service_error_then_iwa_returns_none(
        self, make_flow, identity_client, account
    ):
        identity_client.try_get_cached_account.return_value = account
        identity_client.acquire_token_silent.side_effect = service_error()

        result = await make_flow().get_token()

        assert result.token_result is None
        assert len(result.errors) == 1
        assert result.errors[0].kind == ErrorKind.SERVICE

    async def test_silent_timeout_signal(self, make_flow, identity_client, account, token_result):
        """A timeout-class signal from the provider is classified, not raised."""
        identity_client.try_get_cached_account.return_value = account
        identity_client.acquire_token_silent.side_effect = asyncio.TimeoutError()
        identity_client.acquire_token_integrated.return_value = token_result

        result = await make_flow().get_token()

        assert result.token_result == token_result
        assert len(result.errors) == 1
        assert result.errors[0].kind == ErrorKind.TIMEOUT
        assert result.errors[0].message == "Get Token Silent timed out after 30 seconds"
        assert result.auth_flow_name == "iwa"

    async def test_silent_client_error(self, make_flow, identity_client, account):
        identity_client.try_get_cached_account.return_value = account
        identity_client.acquire_token_silent.side_effect = ProviderClientError(
            "1", NO_ACCOUNT_MESSAGE
        )

        result = await make_flow().get_token()

        assert result.token_result is None
        assert len(result.errors) == 1
        assert result.errors[0].kind == ErrorKind.CLIENT_CONFIGURATION
        assert result.errors[0].message == NO_ACCOUNT_MESSAGE

    async def test_both_attempts_fail_in_order(self, make_flow, identity_client, account):
        """Errors are recorded silent first, IWA second."""
        identity_client.try_get_cached_account.return_value = account
        identity_client.acquire_token_silent.side_effect = ProviderClientError(
            "1", NO_ACCOUNT_MESSAGE
        )
        identity_client.acquire_token_integrated.side_effect = InteractionRequiredError(
            "1", "AADSTS50076 MSAL UI Required Exception!"
        )

        result = await make_flow().get_token()

        assert result.token_result is None
        assert [e.kind for e in result.errors] == [
            ErrorKind.CLIENT_CONFIGURATION,
            ErrorKind.INTERACTION_REQUIRED,
        ]


class TestNoCachedAccount:
    """Flows where the lookup returns nothing."""

    async def test_iwa_success(self, make_flow, identity_client, token_result):
        identity_client.acquire_token_integrated.return_value = token_result

        result = await make_flow().get_token()

        assert result.token_result == token_result
        assert result.token_result.is_silent is True
        assert result.errors == ()
        assert result.auth_flow_name == "iwa"
        identity_client.acquire_token_silent.assert_not_awaited()

    async def test_iwa_returns_none_is_clean_miss(self, make_flow, identity_client):
        result = await make_flow().get_token()

        assert result.token_result is None
        assert result.errors == ()
        assert result.success is False
        assert result.auth_flow_name == "iwa"

    async def test_iwa_ui_required_for_mfa(self, make_flow, identity_client):
        message = "AADSTS50076 MSAL UI Required Exception!"
        identity_client.acquire_token_integrated.side_effect = InteractionRequiredError(
            "1", message
        )

        result = await make_flow().get_token()

        assert result.token_result is None
        assert len(result.errors) == 1
        assert result.errors[0].kind == ErrorKind.INTERACTION_REQUIRED
        assert result.errors[0].message == message
        assert result.errors[0].source == "InteractionRequiredError"

    async def test_iwa_generic_ui_required(self, make_flow, identity_client):
        identity_client.acquire_token_integrated.side_effect = InteractionRequiredError(
            "2", "MSAL UI Required Exception!"
        )

        result = await make_flow().get_token()

        assert result.token_result is None
        assert len(result.errors) == 1
        assert result.errors[0].kind == ErrorKind.INTERACTION_REQUIRED
        assert result.errors[0].code == "2"
        assert result.errors[0].message == "MSAL UI Required Exception!"

    async def test_iwa_service_error(self, make_flow, identity_client):
        identity_client.acquire_token_integrated.side_effect = service_error()

        result = await make_flow().get_token()

        assert result.token_result is None
        assert len(result.errors) == 1
        assert result.errors[0].kind == ErrorKind.SERVICE

    async def test_iwa_client_error(self, make_flow, identity_client):
        identity_client.acquire_token_integrated.side_effect = ProviderClientError(
            "1", NO_ACCOUNT_MESSAGE
        )

        result = await make_flow().get_token()

        assert result.token_result is None
        assert len(result.errors) == 1
        assert result.errors[0].kind == ErrorKind.CLIENT_CONFIGURATION

    async def test_iwa_timeout_message(self, make_flow, identity_client):
        identity_client.acquire_token_integrated.side_effect = TimeoutError()

        result = await make_flow(timeout=5).get_token()

        assert result.errors[0].kind == ErrorKind.TIMEOUT
        assert result.errors[0].message == "Get Token IWA timed out after 5 seconds"


class TestDefectsPropagate:
    """Unexpected failures are re-raised unchanged."""

    async def test_general_exception_from_silent_is_reraised(
        self, make_flow, identity_client, account
    ):
        message = "Something somewhere has gone terribly wrong!"
        identity_client.try_get_cached_account.return_value = account
        identity_client.acquire_token_silent.side_effect = Exception(message)

        with pytest.raises(Exception, match=message) as exc_info:
            await make_flow().get_token()

        assert type(exc_info.value) is Exception
        identity_client.acquire_token_integrated.assert_not_awaited()

    async def test_attribute_error_from_silent_is_reraised(
        self, make_flow, identity_client, account
    ):
        error = AttributeError("'NoneType' object has no attribute 'token'")
        identity_client.try_get_cached_account.return_value = account
        identity_client.acquire_token_silent.side_effect = error

        with pytest.raises(AttributeError) as exc_info:
            await make_flow().get_token()

        assert exc_info.value is error

    async def test_defect_from_iwa_is_reraised(self, make_flow, identity_client):
        identity_client.acquire_token_integrated.side_effect = KeyError("access_token")

        with pytest.raises(KeyError):
            await make_flow().get_token()

    async def test_lookup_failure_is_not_caught(self, make_flow, identity_client):
        identity_client.try_get_cached_account.side_effect = ProviderServiceError(
            "1", "lookup failed"
        )

        with pytest.raises(ProviderServiceError):
            await make_flow().get_token()

        identity_client.acquire_token_silent.assert_not_awaited()
        identity_client.acquire_token_integrated.assert_not_awaited()

    async def test_cancellation_during_lookup_propagates(self, make_flow, identity_client):
        identity_client.try_get_cached_account.side_effect = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await make_flow().get_token()


class TestTimeouts:
    """The bound and the cancel event end attempts as timeouts."""

    async def test_slow_silent_attempt_times_out(
        self, make_flow, identity_client, account, token_result
    ):
        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        identity_client.try_get_cached_account.return_value = account
        identity_client.acquire_token_silent.side_effect = hang
        identity_client.acquire_token_integrated.return_value = token_result

        result = await make_flow(timeout=0.05).get_token()

        assert result.token_result == token_result
        assert len(result.errors) == 1
        assert result.errors[0].kind == ErrorKind.TIMEOUT
        assert result.errors[0].message == "Get Token Silent timed out after 0.05 seconds"

    async def test_cancel_event_ends_attempt_as_timeout(
        self, make_flow, identity_client, account
    ):
        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        identity_client.try_get_cached_account.return_value = account
        identity_client.acquire_token_silent.side_effect = hang
        identity_client.acquire_token_integrated.side_effect = hang

        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.01, cancel.set)

        result = await make_flow(timeout=10).get_token(cancel=cancel)

        assert result.token_result is None
        assert [e.kind for e in result.errors] == [ErrorKind.TIMEOUT, ErrorKind.TIMEOUT]
        assert result.errors[0].message == "Get Token Silent timed out after 10 seconds"
        assert result.errors[1].message == "Get Token IWA timed out after 10 seconds"

    def test_timeout_must_be_positive(self, identity_client):
        from authflow.auth.iwa import IntegratedWindowsAuthentication

        with pytest.raises(ValueError):
            IntegratedWindowsAuthentication("c", "t", SCOPES, identity_client, timeout=0)


class TestConcurrency:
    async def test_concurrent_invocations_are_independent(self, make_flow, identity_client):
        """One instance serves parallel calls without sharing error state."""
        good = TokenResult(token="good-token", is_silent=True)

        async def lookup(hint):
            return {"username": hint} if hint == "ok@contoso.com" else None

        async def silent(scopes, account, cancel=None):
            await asyncio.sleep(0.01)
            return good

        async def integrated(scopes, cancel=None):
            await asyncio.sleep(0.01)
            raise InteractionRequiredError("interaction_required", "AADSTS50076 needs MFA")

        identity_client.try_get_cached_account.side_effect = lookup
        identity_client.acquire_token_silent.side_effect = silent
        identity_client.acquire_token_integrated.side_effect = integrated

        flow = make_flow()
        ok, failed = await asyncio.gather(
            flow.get_token(hint="ok@contoso.com"),
            flow.get_token(hint="other@contoso.com"),
        )

        assert ok.token_result == good
        assert ok.errors == ()
        assert failed.token_result is None
        assert len(failed.errors) == 1
        assert failed.errors[0].kind == ErrorKind.INTERACTION_REQUIRED
