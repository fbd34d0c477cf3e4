"""CLI entry point for authflow."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

# Initialize SSL truststore early, before any HTTPS imports
from .utils.ssl_utils import init_ssl
init_ssl()

from pydantic import ValidationError
from pydantic_settings import SettingsError

from .auth.executor import AuthFlowExecutor
from .auth.iwa import IntegratedWindowsAuthentication
from .auth.msal_client import MsalIdentityClient
from .auth.token_cache import TokenCacheManager
from .config import AuthFlowConfig, ProfilesConfig, resolve_settings
from .models.result import FlowResult
from .utils.exceptions import AuthFlowError
from .utils.logging import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="authflow",
        description="Acquire a token via the cache or Integrated Windows Authentication",
    )
    parser.add_argument("--client", type=str, help="Application (client) id")
    parser.add_argument("--tenant", type=str, help="Directory (tenant) id")
    parser.add_argument(
        "--scope",
        action="append",
        dest="scopes",
        help="Scope to request (repeatable)",
    )
    parser.add_argument("--hint", type=str, help="Username of the cached account to prefer")
    parser.add_argument("--profile", type=str, help="Profile name from authflow.yaml")
    parser.add_argument(
        "--profiles-file",
        type=Path,
        default=Path("authflow.yaml"),
        help="Path to the profiles file (default: authflow.yaml)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for each token acquisition attempt",
    )
    parser.add_argument(
        "--output",
        choices=["token", "json", "status"],
        default="token",
        help="What to print on stdout",
    )
    parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Remove cached accounts and exit",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )
    return parser


def render(result: FlowResult, output: str) -> Optional[str]:
    """Format a FlowResult for stdout."""
    if output == "json":
        return result.model_dump_json(indent=2)
    if output == "status":
        state = "success" if result.success else "no token"
        return f"{result.auth_flow_name}: {state} ({len(result.errors)} error(s))"
    if result.token_result is not None:
        return result.token_result.token
    return None


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = AuthFlowConfig()
    except (ValidationError, SettingsError) as e:
        setup_logging().error(f"Invalid configuration: {e}")
        return 1

    log_level = "DEBUG" if args.verbose else config.log_level
    logger = setup_logging(level=log_level, log_file=config.log_file)

    try:
        profile = ProfilesConfig(args.profiles_file).get(args.profile) if args.profile else None
        settings = resolve_settings(
            config,
            profile=profile,
            client_id=args.client,
            tenant_id=args.tenant,
            scopes=args.scopes,
            timeout_seconds=args.timeout,
            hint=args.hint,
        )

        cache_manager = TokenCacheManager(
            cache_location=Path(config.token_cache_path),
            encrypted=config.token_cache_encrypted,
        )
        client = MsalIdentityClient(
            settings.client_id,
            settings.tenant_id,
            cache_manager,
            use_broker=config.use_broker,
            timeout=settings.timeout_seconds,
        )

        if args.clear_cache:
            client.clear_cache()
            return 0

        flow = IntegratedWindowsAuthentication(
            settings.client_id,
            settings.tenant_id,
            settings.scopes,
            client,
            timeout=settings.timeout_seconds,
        )
        outcome = asyncio.run(AuthFlowExecutor([flow]).get_token(hint=settings.hint))
        result = outcome.success or outcome.attempts[-1]

        for error in result.errors:
            print(f"{result.auth_flow_name}: {error}", file=sys.stderr)

        text = render(result, args.output)
        if text is not None:
            print(text)
        return 0 if result.success else 1

    except AuthFlowError as e:
        logger.error(f"authflow error: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
