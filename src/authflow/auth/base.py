"""Interfaces for identity provider clients and auth flows."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional, Protocol, Sequence

from ..models.result import FlowResult
from ..models.token import TokenResult

# Opaque reference to a previously authenticated identity
AccountHandle = Any


class IdentityClient(Protocol):
    """Capabilities an auth flow needs from the identity provider."""

    async def try_get_cached_account(self, hint: Optional[str]) -> Optional[AccountHandle]:
        """
        Look up a previously authenticated account.

        Args:
            hint: Username or other identifier to match (None for any account)

        Returns:
            Account handle, or None if no account is cached
        """
        ...

    async def acquire_token_silent(
        self,
        scopes: Sequence[str],
        account: AccountHandle,
        cancel: Optional[asyncio.Event] = None,
    ) -> Optional[TokenResult]:
        """
        Acquire a token for a known account without user interaction.

        Returns:
            Token result, or None if the provider has no usable token

        Raises:
            IdentityProviderError: If the provider rejects the request
        """
        ...

    async def acquire_token_integrated(
        self,
        scopes: Sequence[str],
        cancel: Optional[asyncio.Event] = None,
    ) -> Optional[TokenResult]:
        """
        Acquire a token from the operating system's signed-in identity.

        Returns:
            Token result, or None if the provider has no usable token

        Raises:
            IdentityProviderError: If the provider rejects the request
        """
        ...


class AuthFlow(ABC):
    """Abstract base class for auth flows."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier of the flow, reported in every FlowResult."""

    @abstractmethod
    async def get_token(
        self,
        hint: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> FlowResult:
        """
        Run the flow once.

        Args:
            hint: Optional account hint (e.g. a username)
            cancel: Optional cancellation event

        Returns:
            FlowResult carrying the token (if any) and classified errors
        """
