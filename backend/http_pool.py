"""HTTP client pool management using httpx with connection pooling.

This module provides the shared httpx.AsyncClient used by outbound tool
calls (weather lookups and other third-party APIs reached from the
Consolidator stage). Connection pooling avoids a TCP/TLS handshake on every
tool invocation.

Usage:
    # In FastAPI startup event
    await init_http_client()

    # In application code
    client = get_http_client()
    response = await client.get(url, params=params)

    # In FastAPI shutdown event
    await close_http_client()

Environment Variables:
    HTTP_MAX_CONNECTIONS: Max connections (default: 100)
    HTTP_MAX_KEEPALIVE_CONNECTIONS: Max keepalive connections (default: 20)
    HTTP_KEEPALIVE_EXPIRY: Keepalive expiry in seconds (default: 5.0)
    HTTP_CONNECT_TIMEOUT: Connection timeout in seconds (default: 10.0)
    HTTP_READ_TIMEOUT: Read timeout in seconds (default: 15.0)
    HTTP_WRITE_TIMEOUT: Write timeout in seconds (default: 15.0)
    HTTP_POOL_TIMEOUT: Pool acquire timeout in seconds (default: 10.0)
    HTTP2_ENABLED: Enable HTTP/2 support (default: true)
"""

import os
import logging
from typing import Optional
import httpx
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


class HttpClientConfig:
    """Configuration for httpx.AsyncClient connection pooling.

    Loads settings from environment variables with sensible defaults.
    """

    def __init__(self):
        """Initialize HTTP client configuration from environment variables."""
        # Connection pool settings
        self.max_connections = int(os.getenv("HTTP_MAX_CONNECTIONS", "100"))
        self.max_keepalive_connections = int(
            os.getenv("HTTP_MAX_KEEPALIVE_CONNECTIONS", "20")
        )
        self.keepalive_expiry = float(os.getenv("HTTP_KEEPALIVE_EXPIRY", "5.0"))

        # Timeout settings (all in seconds); tool calls run inside a stage
        # deadline, so reads are kept shorter than the stage timeout
        self.connect_timeout = float(os.getenv("HTTP_CONNECT_TIMEOUT", "10.0"))
        self.read_timeout = float(os.getenv("HTTP_READ_TIMEOUT", "15.0"))
        self.write_timeout = float(os.getenv("HTTP_WRITE_TIMEOUT", "15.0"))
        self.pool_timeout = float(os.getenv("HTTP_POOL_TIMEOUT", "10.0"))

        # Protocol settings
        self.http2_enabled = os.getenv("HTTP2_ENABLED", "true").lower() == "true"

    def get_limits(self) -> dict:
        """Get httpx Limits configuration."""
        return {
            "max_connections": self.max_connections,
            "max_keepalive_connections": self.max_keepalive_connections,
            "keepalive_expiry": self.keepalive_expiry,
        }

    def get_timeout(self) -> dict:
        """Get httpx Timeout configuration."""
        return {
            "connect": self.connect_timeout,
            "read": self.read_timeout,
            "write": self.write_timeout,
            "pool": self.pool_timeout,
        }

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"HttpClientConfig("
            f"max_connections={self.max_connections}, "
            f"max_keepalive={self.max_keepalive_connections}, "
            f"connect_timeout={self.connect_timeout}s, "
            f"read_timeout={self.read_timeout}s, "
            f"http2={self.http2_enabled})"
        )


# Global HTTP client singleton
_http_client: Optional[httpx.AsyncClient] = None
_config: Optional[HttpClientConfig] = None


async def init_http_client() -> httpx.AsyncClient:
    """
    Initialize the global HTTP client.

    Should be called once during FastAPI startup. Safe to call multiple
    times (returns the existing client if already initialized).

    Returns:
        httpx.AsyncClient: The shared client
    """
    global _http_client, _config

    if _http_client is not None:
        logger.info("HTTP client already initialized, returning existing client")
        return _http_client

    _config = HttpClientConfig()
    logger.info(f"Initializing HTTP client with config: {_config}")

    try:
        _http_client = httpx.AsyncClient(
            limits=httpx.Limits(**_config.get_limits()),
            timeout=httpx.Timeout(**_config.get_timeout()),
            http2=_config.http2_enabled,
            follow_redirects=True,
        )
        logger.info("✓ HTTP client initialized successfully")
        return _http_client

    except Exception as e:
        logger.error(f"✗ Failed to initialize HTTP client: {e}", exc_info=True)
        _http_client = None
        _config = None
        raise


def get_http_client() -> httpx.AsyncClient:
    """
    Get the global HTTP client.

    Raises:
        RuntimeError: If the client has not been initialized
    """
    if _http_client is None:
        raise RuntimeError(
            "HTTP client not initialized. Call init_http_client() first "
            "(typically in FastAPI startup event)."
        )
    return _http_client


async def close_http_client() -> None:
    """Close the global HTTP client. Safe to call multiple times."""
    global _http_client, _config

    if _http_client is None:
        logger.info("HTTP client not initialized, nothing to close")
        return

    try:
        await _http_client.aclose()
        logger.info("✓ HTTP client closed successfully")
    except Exception as e:
        logger.error(f"✗ Error closing HTTP client: {e}", exc_info=True)
    finally:
        _http_client = None
        _config = None


async def check_http_client_health() -> dict:
    """
    Check the health of the shared HTTP client.

    Returns:
        dict with "status" ("healthy" or "unavailable") and pool details
    """
    if _http_client is None or _http_client.is_closed:
        return {
            "status": "unavailable",
            "error": "HTTP client not initialized",
        }

    return {
        "status": "healthy",
        "http2": _config.http2_enabled if _config else None,
        "max_connections": _config.max_connections if _config else None,
    }
