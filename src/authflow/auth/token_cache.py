"""Token cache management using msal-extensions."""

import logging
import sys
from pathlib import Path
from typing import Optional

from msal_extensions import (
    FilePersistence,
    FilePersistenceWithDataProtection,
    KeychainPersistence,
    LibsecretPersistence,
    PersistedTokenCache,
)

from ..utils.exceptions import TokenCacheError

logger = logging.getLogger(__name__)


class TokenCacheManager:
    """Manages the persisted MSAL token cache shared by all flows."""

    def __init__(
        self,
        cache_location: Path,
        cache_name: str = "authflow_cache",
        encrypted: bool = True,
    ):
        """
        Initialize token cache manager.

        Args:
            cache_location: Directory for cache storage
            cache_name: Name of the cache file
            encrypted: Whether to encrypt the cache
        """
        self.cache_location = cache_location
        self.cache_name = cache_name
        self.encrypted = encrypted
        self._cache: Optional[PersistedTokenCache] = None

    def _persistence(self):
        if not self.encrypted:
            return FilePersistence(self.cache_location / f"{self.cache_name}.json")

        path = self.cache_location / f"{self.cache_name}.bin"
        if sys.platform == "win32":
            return FilePersistenceWithDataProtection(path)
        if sys.platform == "darwin":
            return KeychainPersistence(path, "authflow", self.cache_name)
        try:
            return LibsecretPersistence(
                path,
                schema_name="authflow",
                attributes={"app": self.cache_name},
            )
        except Exception as e:
            # Headless Linux without a secret service
            logger.warning(f"libsecret unavailable ({e}), using plain file cache")
            return FilePersistence(path)

    def get_cache(self) -> PersistedTokenCache:
        """
        Get or create the token cache.

        Returns:
            Configured PersistedTokenCache instance

        Raises:
            TokenCacheError: If cache initialization fails
        """
        if self._cache is not None:
            return self._cache

        try:
            self.cache_location.mkdir(parents=True, exist_ok=True)
            self._cache = PersistedTokenCache(self._persistence())
        except Exception as e:
            raise TokenCacheError(f"Failed to initialize token cache: {e}") from e

        logger.info(f"Token cache initialized at {self.cache_location}")
        return self._cache

    def clear_cache(self) -> None:
        """Forget the in-memory cache handle; accounts are removed by the client."""
        if self._cache:
            logger.info("Token cache cleared")
            self._cache = None
