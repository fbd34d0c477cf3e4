"""Flow result and classified error models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from .token import TokenResult


class ErrorKind(str, Enum):
    """Categories of expected token acquisition failures."""

    TIMEOUT = "timeout"
    INTERACTION_REQUIRED = "interaction_required"
    CLIENT_CONFIGURATION = "client_configuration"
    SERVICE = "service"


class ClassifiedError(BaseModel):
    """A provider failure normalized for callers."""

    kind: ErrorKind
    message: str
    code: Optional[str] = None
    source: Optional[str] = None  # type name of the original failure

    model_config = {"frozen": True}

    def __str__(self) -> str:
        if self.code:
            return f"{self.kind.value} ({self.code}): {self.message}"
        return f"{self.kind.value}: {self.message}"


class FlowResult(BaseModel):
    """Outcome of one auth flow invocation.

    A present ``token_result`` means the flow succeeded. ``errors`` is
    diagnostic and may be non-empty even on success.
    """

    token_result: Optional[TokenResult] = None
    errors: tuple[ClassifiedError, ...] = ()
    auth_flow_name: str

    model_config = {"frozen": True}

    @property
    def success(self) -> bool:
        return self.token_result is not None


class AttemptState(str, Enum):
    """State of a single token acquisition attempt."""

    TOKEN = "token"
    MISS = "miss"
    FAILED = "failed"


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of one provider call: a token, a clean miss, or a classified failure."""

    state: AttemptState
    token_result: Optional[TokenResult] = None
    error: Optional[ClassifiedError] = None

    @classmethod
    def token(cls, token_result: TokenResult) -> "AttemptOutcome":
        return cls(AttemptState.TOKEN, token_result=token_result)

    @classmethod
    def miss(cls) -> "AttemptOutcome":
        return cls(AttemptState.MISS)

    @classmethod
    def failed(cls, error: ClassifiedError) -> "AttemptOutcome":
        return cls(AttemptState.FAILED, error=error)
