"""Integrated Windows Authentication flow."""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Optional

from ..models.result import AttemptOutcome, AttemptState, ClassifiedError, FlowResult
from ..models.token import TokenResult
from ..utils.timeout import bounded_wait
from .base import AuthFlow, IdentityClient
from .classifier import classify_error

logger = logging.getLogger(__name__)

AUTH_FLOW_NAME = "iwa"
DEFAULT_TIMEOUT = 30.0

GET_TOKEN_SILENT = "Get Token Silent"
GET_TOKEN_IWA = "Get Token IWA"


class IntegratedWindowsAuthentication(AuthFlow):
    """Acquire a token from the cache, falling back to the OS-integrated identity."""

    def __init__(
        self,
        client_id: str,
        tenant_id: str,
        scopes: Iterable[str],
        client: IdentityClient,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the flow.

        Args:
            client_id: Application (client) id
            tenant_id: Directory (tenant) id
            scopes: Scopes to request
            client: Identity provider client
            timeout: Bound in seconds for each token acquisition attempt
        """
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")

        self.client_id = client_id
        self.tenant_id = tenant_id
        self.scopes = tuple(scopes)
        self.client = client
        self.timeout = timeout

    @property
    def name(self) -> str:
        return AUTH_FLOW_NAME

    async def get_token(
        self,
        hint: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> FlowResult:
        """
        Acquire a token silently if an account is cached, then via IWA.

        Expected provider failures are classified into the result's errors.
        Anything else propagates unchanged.

        Args:
            hint: Optional account hint (e.g. a username)
            cancel: Optional cancellation event; setting it ends the
                in-flight attempt as a timeout

        Returns:
            FlowResult for this invocation
        """
        errors: list[ClassifiedError] = []

        account = await self.client.try_get_cached_account(hint)

        if account is not None:
            logger.debug("Cached account found, attempting silent token acquisition")
            outcome = await self._attempt(
                GET_TOKEN_SILENT,
                lambda: self.client.acquire_token_silent(self.scopes, account, cancel),
                cancel,
            )
            if outcome.state is AttemptState.TOKEN:
                return self._result(outcome.token_result, errors)
            if outcome.state is AttemptState.FAILED:
                errors.append(outcome.error)
        else:
            logger.debug("No cached account found")

        logger.debug("Attempting integrated windows authentication")
        outcome = await self._attempt(
            GET_TOKEN_IWA,
            lambda: self.client.acquire_token_integrated(self.scopes, cancel),
            cancel,
        )
        if outcome.state is AttemptState.FAILED:
            errors.append(outcome.error)

        return self._result(outcome.token_result, errors)

    async def _attempt(
        self,
        operation: str,
        call: Callable[[], Awaitable[Optional[TokenResult]]],
        cancel: Optional[asyncio.Event],
    ) -> AttemptOutcome:
        """Run one bounded provider call and turn it into an AttemptOutcome."""
        try:
            token_result = await bounded_wait(call(), self.timeout, cancel)
        except Exception as e:
            error = classify_error(e, operation=operation, timeout=self.timeout)
            if error is None:
                raise
            logger.warning(f"{operation} failed: {error}")
            return AttemptOutcome.failed(error)

        if token_result is None:
            logger.debug(f"{operation} returned no token")
            return AttemptOutcome.miss()

        logger.info(f"{operation} acquired a token")
        return AttemptOutcome.token(token_result)

    def _result(
        self,
        token_result: Optional[TokenResult],
        errors: list[ClassifiedError],
    ) -> FlowResult:
        return FlowResult(
            token_result=token_result,
            errors=tuple(errors),
            auth_flow_name=self.name,
        )
