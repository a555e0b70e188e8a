"""HTTP client utilities with consistent user agent."""

from typing import Optional

import httpx

from . import __version__

USER_AGENT = f"train-tracker/{__version__}"


def get_default_headers(accept: Optional[str] = None) -> dict:
    """
    Get default HTTP headers with user agent.

    Args:
        accept: Optional Accept header value (e.g., "application/vnd.github+json")

    Returns:
        Dictionary of HTTP headers
    """
    headers = {"User-Agent": USER_AGENT}
    if accept:
        headers["Accept"] = accept
    return headers


def create_client(timeout: Optional[float] = 30.0) -> httpx.AsyncClient:
    """
    Create an async HTTP client shared by all providers of one refresh cycle.

    Args:
        timeout: Transport timeout in seconds, or None to wait indefinitely

    Returns:
        Configured httpx.AsyncClient (caller is responsible for closing it)
    """
    return httpx.AsyncClient(
        headers=get_default_headers(),
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
    )
