"""SSL certificate handling utilities.

Corporate networks frequently terminate TLS with a private CA that is only
present in the operating system's certificate store. MSAL talks to the login
endpoint through requests, so the OS store is injected into Python's SSL
context before any client is created.
"""

import logging
import platform

import truststore

logger = logging.getLogger(__name__)

_ssl_initialized = False


def init_ssl() -> bool:
    """
    Configure SSL to use the OS native certificate store.

    This should be called early in application startup, before any
    HTTPS connections are made.

    Returns:
        True if truststore was injected, False otherwise.
    """
    global _ssl_initialized

    if _ssl_initialized:
        return True

    try:
        truststore.inject_into_ssl()
    except Exception as e:
        logger.warning(f"Failed to inject truststore: {e}")
        return False

    _ssl_initialized = True
    logger.debug(f"SSL truststore injected for {platform.system()}")
    return True
