"""Custom exceptions for authflow."""

from typing import Optional


class AuthFlowError(Exception):
    """Base exception for authflow errors."""


class ConfigurationError(AuthFlowError):
    """Raised when configuration is invalid."""


class TokenCacheError(AuthFlowError):
    """Raised when token cache operations fail."""


class IdentityProviderError(AuthFlowError):
    """Base exception for failures reported by the identity provider."""

    def __init__(self, error_code: Optional[str], message: str):
        self.error_code = error_code
        self.message = message
        super().__init__(message)


class ProviderClientError(IdentityProviderError):
    """Raised when the provider rejects the request due to client-side state or configuration."""


class ProviderServiceError(IdentityProviderError):
    """Raised when the identity service fails to process a request."""

    def __init__(
        self,
        error_code: Optional[str],
        message: str,
        status_code: Optional[int] = None,
    ):
        super().__init__(error_code, message)
        self.status_code = status_code


# AAD error codes raised when a second factor is required.
MFA_ERROR_CODES = ("AADSTS50076", "AADSTS50079")


class InteractionRequiredError(ProviderServiceError):
    """Raised when the user has to complete an interactive step before a token can be issued."""

    def __init__(
        self,
        error_code: Optional[str],
        message: str,
        suberror: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(error_code, message, status_code=status_code)
        self.suberror = suberror

    @property
    def is_mfa(self) -> bool:
        """Whether the interaction is a multi-factor challenge."""
        if self.suberror in ("basic_action", "additional_action"):
            return True
        return any(code in self.message for code in MFA_ERROR_CODES)
