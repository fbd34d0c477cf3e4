"""MSAL-backed identity provider client."""

import asyncio
import importlib.util
import logging
import sys
from typing import Any, Optional, Sequence

import msal
import requests

from ..models.token import TokenResult
from ..utils.date_utils import expires_on
from ..utils.exceptions import (
    InteractionRequiredError,
    ProviderClientError,
    ProviderServiceError,
)
from ..utils.timeout import run_in_daemon_thread
from .token_cache import TokenCacheManager

logger = logging.getLogger(__name__)

# OAuth errors that can only be resolved by the user
INTERACTION_ERRORS = frozenset(
    {"interaction_required", "login_required", "consent_required"}
)

# OAuth errors caused by the request or the app registration
CLIENT_ERRORS = frozenset(
    {
        "invalid_client",
        "unauthorized_client",
        "invalid_scope",
        "invalid_request",
        "no_account",
    }
)


def raise_for_msal_error(result: dict[str, Any]) -> None:
    """
    Raise the provider exception matching an MSAL error response.

    Args:
        result: Dictionary returned by an MSAL acquire_token_* call

    Raises:
        InteractionRequiredError: If the user must interact
        ProviderClientError: If the request or app registration is at fault
        ProviderServiceError: For any other error reported by the service
    """
    error = result.get("error")
    if not error:
        return

    message = result.get("error_description") or error
    if error in INTERACTION_ERRORS:
        raise InteractionRequiredError(error, message, suberror=result.get("suberror"))
    if error in CLIENT_ERRORS:
        raise ProviderClientError(error, message)
    raise ProviderServiceError(error, message)


def to_token_result(result: dict[str, Any], is_silent: bool) -> TokenResult:
    """Build a TokenResult from a successful MSAL response."""
    claims = result.get("id_token_claims") or {}
    fields: dict[str, Any] = {
        "token": result["access_token"],
        "is_silent": is_silent,
        "expires_on": expires_on(result.get("expires_in")),
        "account": claims.get("preferred_username"),
    }
    if result.get("correlation_id"):
        fields["correlation_id"] = result["correlation_id"]
    return TokenResult(**fields)


def broker_available(use_broker: bool) -> bool:
    """Whether MSAL can reach the OS broker (WAM) on this host."""
    if not use_broker or sys.platform != "win32":
        return False
    return importlib.util.find_spec("pymsalruntime") is not None


class MsalIdentityClient:
    """Identity provider client on top of msal.PublicClientApplication."""

    def __init__(
        self,
        client_id: str,
        tenant_id: str,
        cache_manager: TokenCacheManager,
        use_broker: bool = True,
        timeout: Optional[float] = None,
        app: Optional[msal.PublicClientApplication] = None,
    ):
        """
        Initialize the MSAL client.

        Args:
            client_id: Application (client) id
            tenant_id: Directory (tenant) id
            cache_manager: Token cache manager
            use_broker: Use the Windows broker (WAM) for the OS account
            timeout: Seconds MSAL may spend on one HTTP or broker call
            app: Pre-built application (mainly for tests)
        """
        self.client_id = client_id
        self.tenant_id = tenant_id
        self.cache_manager = cache_manager
        self.timeout = timeout
        self.authority = f"https://login.microsoftonline.com/{tenant_id}"
        self.broker_enabled = broker_available(use_broker)

        if app is None:
            logger.info(
                f"Initializing MSAL public client, broker={'on' if self.broker_enabled else 'off'}"
            )
            app = msal.PublicClientApplication(
                client_id=client_id,
                authority=self.authority,
                token_cache=cache_manager.get_cache(),
                enable_broker_on_windows=use_broker,
                timeout=timeout,
            )
        self.app = app

    async def try_get_cached_account(self, hint: Optional[str]) -> Optional[dict[str, Any]]:
        """
        Find a cached account matching the hint.

        Returns:
            First matching MSAL account, or None
        """
        accounts = await run_in_daemon_thread(self.app.get_accounts, username=hint)
        if not accounts:
            logger.debug("No cached accounts")
            return None
        if len(accounts) > 1:
            logger.debug(f"{len(accounts)} cached accounts match, using the first")
        return accounts[0]

    async def acquire_token_silent(
        self,
        scopes: Sequence[str],
        account: dict[str, Any],
        cancel: Optional[asyncio.Event] = None,
    ) -> Optional[TokenResult]:
        """
        Acquire a token for a cached account.

        Returns:
            Token result, or None if the cache cannot serve the request
        """
        result = await self._call(
            self.app.acquire_token_silent_with_error,
            list(scopes),
            account=account,
        )
        if result is None:
            return None
        raise_for_msal_error(result)
        return to_token_result(result, is_silent=True)

    async def acquire_token_integrated(
        self,
        scopes: Sequence[str],
        cancel: Optional[asyncio.Event] = None,
    ) -> Optional[TokenResult]:
        """
        Acquire a token for the account signed in to the operating system.

        Only the broker can do this without UI; without it this is a clean
        miss. With the broker, the service answers interaction_required when
        it would need to prompt.

        Returns:
            Token result, or None if no token was issued
        """
        if not self.broker_enabled:
            logger.info("OS broker unavailable, skipping integrated token acquisition")
            return None

        result = await self._call(
            self.app.acquire_token_interactive,
            list(scopes),
            prompt=msal.Prompt.NONE,
            parent_window_handle=msal.PublicClientApplication.CONSOLE_WINDOW_HANDLE,
            timeout=self.timeout,
        )
        if not result:
            return None
        raise_for_msal_error(result)
        return to_token_result(result, is_silent=True)

    def clear_cache(self) -> None:
        """Remove every cached account and drop the cache handle."""
        for account in self.app.get_accounts():
            self.app.remove_account(account)
        self.cache_manager.clear_cache()

    async def _call(self, func, *args, **kwargs) -> Optional[dict[str, Any]]:
        """Run a blocking MSAL call off the event loop, translating transport failures."""
        try:
            return await run_in_daemon_thread(func, *args, **kwargs)
        except requests.exceptions.RequestException as e:
            raise ProviderServiceError("network_error", str(e)) from e
        except ValueError as e:
            # MSAL validates its inputs locally with ValueError
            raise ProviderClientError("invalid_request", str(e)) from e
