"""Configuration management for authflow."""

import json
from pathlib import Path
from typing import Annotated, Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .utils.exceptions import ConfigurationError

load_dotenv()


class AuthFlowConfig(BaseSettings):
    """Application configuration."""

    client_id: Optional[str] = Field(None, validation_alias="AUTHFLOW_CLIENT_ID")
    tenant_id: Optional[str] = Field(None, validation_alias="AUTHFLOW_TENANT_ID")
    scopes: Annotated[list[str], NoDecode] = Field(
        default_factory=list, validation_alias="AUTHFLOW_SCOPES"
    )
    timeout_seconds: float = Field(default=30.0, gt=0, validation_alias="AUTHFLOW_TIMEOUT")
    use_broker: bool = Field(default=True, validation_alias="AUTHFLOW_USE_BROKER")

    # Token cache
    token_cache_path: Path = Field(
        default=Path(".token_cache"), validation_alias="TOKEN_CACHE_PATH"
    )
    token_cache_encrypted: bool = Field(
        default=True, validation_alias="TOKEN_CACHE_ENCRYPTED"
    )

    # Logging
    log_level: str = Field(default="WARNING", validation_alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(default=None, validation_alias="LOG_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_parse_none_str="",  # Treat empty string as None
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def split_scopes(cls, value: Any) -> Any:
        """Accept a JSON list or a comma/space separated string."""
        if not isinstance(value, str):
            return value
        value = value.strip()
        if value.startswith("["):
            return json.loads(value)
        return [scope for scope in value.replace(",", " ").split() if scope]


class ProfileConfig:
    """Configuration for a single named auth profile."""

    def __init__(self, name: str, data: dict[str, Any]):
        self.name = name
        self.client_id: Optional[str] = data.get("client_id")
        self.tenant_id: Optional[str] = data.get("tenant_id")
        self.scopes: list[str] = list(data.get("scopes", []))
        self.timeout_seconds: Optional[float] = data.get("timeout_seconds")
        self.hint: Optional[str] = data.get("hint")


class ProfilesConfig:
    """Named auth profiles loaded from YAML."""

    def __init__(self, config_path: Path = Path("authflow.yaml")):
        self.profiles: dict[str, ProfileConfig] = {}

        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}

            for name, profile_data in data.get("profiles", {}).items():
                self.profiles[name] = ProfileConfig(name, profile_data or {})

    def get(self, name: str) -> ProfileConfig:
        """
        Look up a profile by name.

        Raises:
            ConfigurationError: If the profile does not exist
        """
        try:
            return self.profiles[name]
        except KeyError:
            known = ", ".join(sorted(self.profiles)) or "none"
            raise ConfigurationError(
                f"Unknown profile '{name}' (configured profiles: {known})"
            ) from None


class ResolvedSettings:
    """Final settings for one CLI run, after merging env, profile and flags."""

    def __init__(
        self,
        client_id: str,
        tenant_id: str,
        scopes: list[str],
        timeout_seconds: float,
        hint: Optional[str],
    ):
        self.client_id = client_id
        self.tenant_id = tenant_id
        self.scopes = scopes
        self.timeout_seconds = timeout_seconds
        self.hint = hint


def first_set(*values: Any) -> Any:
    """Return the first value that is not None."""
    return next((value for value in values if value is not None), None)


def resolve_settings(
    config: AuthFlowConfig,
    profile: Optional[ProfileConfig] = None,
    client_id: Optional[str] = None,
    tenant_id: Optional[str] = None,
    scopes: Optional[list[str]] = None,
    timeout_seconds: Optional[float] = None,
    hint: Optional[str] = None,
) -> ResolvedSettings:
    """
    Merge settings with precedence: explicit arguments, profile, environment.

    Raises:
        ConfigurationError: If client id, tenant id or scopes are missing,
            or the timeout is not positive
    """
    profile = profile or ProfileConfig("", {})

    resolved_client = first_set(client_id, profile.client_id, config.client_id)
    resolved_tenant = first_set(tenant_id, profile.tenant_id, config.tenant_id)
    resolved_scopes = scopes or profile.scopes or config.scopes
    resolved_timeout = first_set(timeout_seconds, profile.timeout_seconds, config.timeout_seconds)

    if not resolved_client:
        raise ConfigurationError(
            "A client id is required. Pass --client or set AUTHFLOW_CLIENT_ID."
        )
    if not resolved_tenant:
        raise ConfigurationError(
            "A tenant id is required. Pass --tenant or set AUTHFLOW_TENANT_ID."
        )
    if not resolved_scopes:
        raise ConfigurationError(
            "At least one scope is required. Pass --scope or set AUTHFLOW_SCOPES."
        )
    if resolved_timeout <= 0:
        raise ConfigurationError(f"Timeout must be positive, got {resolved_timeout}")

    return ResolvedSettings(
        client_id=resolved_client,
        tenant_id=resolved_tenant,
        scopes=list(resolved_scopes),
        timeout_seconds=float(resolved_timeout),
        hint=hint or profile.hint,
    )
