"""
Session utilities for dataset API and storage clients.

This module provides utilities for creating and configuring HTTP clients
with retry strategies and connection pooling.
"""

import importlib.util
import logging
from typing import Optional

import httpx
from httpx import HTTPTransport

from .constants import DEFAULT_TIMEOUT

# Retry configuration for connection failures
MAX_RETRIES = 3


def create_session_with_retry(
    auth: Optional[httpx.Auth] = None, timeout: float = DEFAULT_TIMEOUT, max_connections: int = 100
) -> httpx.Client:
    """
    Create an httpx client with retry strategy and connection pooling.

    Args:
        auth: Optional httpx.Auth used for every request (e.g. ProviderAuth)
        timeout: Total timeout in seconds
        max_connections: Maximum number of connections in the pool

    Returns:
        Configured httpx.Client object with:
        - Automatic retries of failed connection attempts
        - HTTP/2 support when the h2 package is installed
        - Connection pooling sized for concurrent downloads

    Example:
        >>> client = create_session_with_retry()
        >>> response = client.get("https://datasets.example.com/")
    """
    limits = httpx.Limits(
        max_connections=max_connections,
        max_keepalive_connections=max(20, max_connections // 5),
    )

    timeout_config = httpx.Timeout(timeout, connect=10.0)

    # httpx only retries connection errors, never responses
    transport = HTTPTransport(limits=limits, retries=MAX_RETRIES)

    use_http2 = importlib.util.find_spec("h2") is not None
    if not use_http2:
        logging.debug("HTTP/2 support not available (h2 package not installed)")

    return httpx.Client(
        transport=transport,
        timeout=timeout_config,
        follow_redirects=True,
        http2=use_http2,
        auth=auth,
    )


__all__ = ["create_session_with_retry"]
