"""Token result model."""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class TokenResult(BaseModel):
    """Token acquired from the identity provider."""

    token: str = Field(min_length=1, repr=False)
    correlation_id: UUID = Field(default_factory=uuid4)
    is_silent: bool = False

    # Reported by the provider when available
    expires_on: Optional[datetime] = None
    account: Optional[str] = None

    model_config = {"frozen": True}
