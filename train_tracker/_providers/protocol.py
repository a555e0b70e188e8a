"""DataProvider protocol for upstream release data."""

from typing import Any, Protocol

import httpx


class DataProvider(Protocol):
    """
    Protocol defining the interface for upstream data providers.

    Each provider wraps one upstream endpoint and returns its data in
    normalized form. Providers raise UpstreamFetchError on failure and leave
    the decision whether to degrade or abort to the caller.

    Example:
        class CalendarFeedProvider:
            name = "calendar"

            async def fetch(self, client: httpx.AsyncClient) -> str:
                # Download the feed and return its text
                ...
    """

    @property
    def name(self) -> str:
        """
        Human-readable name of this provider.

        Used in logs and in UpstreamFetchError messages.
        Examples: "product-details", "calendar", "mobile-tags"
        """
        ...

    async def fetch(self, client: httpx.AsyncClient) -> Any:
        """
        Fetch and normalize data from the upstream endpoint.

        Args:
            client: httpx.AsyncClient with configured headers (User-Agent, timeout)

        Returns:
            Provider-specific normalized data

        Raises:
            UpstreamFetchError: If the request fails or returns a non-success status
        """
        ...
