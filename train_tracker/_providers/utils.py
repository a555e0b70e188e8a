"""Shared request helper for data providers."""

from typing import Optional

import httpx

from train_tracker.exceptions import UpstreamFetchError
from train_tracker.logging_config import logger


async def get_checked(
    client: httpx.AsyncClient,
    url: str,
    source: str,
    headers: Optional[dict] = None,
) -> httpx.Response:
    """
    GET ``url`` and translate every failure into UpstreamFetchError.

    Args:
        client: Async HTTP client
        url: Endpoint URL
        source: Provider name for error messages
        headers: Extra request headers

    Returns:
        The successful (2xx) response

    Raises:
        UpstreamFetchError: On transport errors, timeouts or non-2xx responses
    """
    logger.debug(f"Fetching {source}: {url}")
    try:
        response = await client.get(url, headers=headers)
    except httpx.TimeoutException as e:
        raise UpstreamFetchError(source, f"Timeout fetching {url}") from e
    except httpx.HTTPError as e:
        raise UpstreamFetchError(source, f"Error fetching {url}: {e}") from e

    if not response.is_success:
        raise UpstreamFetchError(source, f"HTTP {response.status_code}", status_code=response.status_code)
    return response
