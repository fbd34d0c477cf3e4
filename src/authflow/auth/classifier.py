"""Classification of identity provider failures."""

import asyncio
from typing import Optional

from ..models.result import ClassifiedError, ErrorKind
from ..utils.date_utils import format_duration
from ..utils.exceptions import (
    InteractionRequiredError,
    ProviderClientError,
    ProviderServiceError,
)


def classify_error(
    error: BaseException,
    *,
    operation: str,
    timeout: float,
) -> Optional[ClassifiedError]:
    """
    Map a failure raised by a provider call onto an error category.

    Checked in priority order: timeout, interaction required, client
    configuration, service. InteractionRequiredError is a ProviderServiceError,
    so it has to be matched first.

    Args:
        error: The raised failure
        operation: Label of the attempt, used in timeout messages
        timeout: Configured bound in seconds

    Returns:
        ClassifiedError, or None if the failure is not an expected provider
        condition and must be re-raised
    """
    source = type(error).__name__

    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return ClassifiedError(
            kind=ErrorKind.TIMEOUT,
            message=f"{operation} timed out after {format_duration(timeout)}",
            source=source,
        )

    if isinstance(error, InteractionRequiredError):
        return ClassifiedError(
            kind=ErrorKind.INTERACTION_REQUIRED,
            message=error.message,
            code=error.error_code,
            source=source,
        )

    if isinstance(error, ProviderClientError):
        return ClassifiedError(
            kind=ErrorKind.CLIENT_CONFIGURATION,
            message=error.message,
            code=error.error_code,
            source=source,
        )

    if isinstance(error, ProviderServiceError):
        return ClassifiedError(
            kind=ErrorKind.SERVICE,
            message=error.message,
            code=error.error_code,
            source=source,
        )

    return None
