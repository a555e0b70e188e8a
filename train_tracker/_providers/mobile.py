"""Mobile versions from the nightly build listing and the repository tags."""

import json
from typing import List, Optional

import httpx

from train_tracker.exceptions import UpstreamFetchError
from train_tracker.http_client import get_default_headers
from train_tracker.logging_config import logger
from train_tracker.versions import DEFAULT_NIGHTLY_PATTERN, extract_listing_version

from .utils import get_checked

GITHUB_ACCEPT = "application/vnd.github+json"


class NightlyListingProvider:
    """
    Provider for the mobile nightly version.

    Scrapes a directory listing page for a build filename such as
    ``thunderbird-146.0a1.apk``.
    """

    def __init__(self, url: str, pattern: str = DEFAULT_NIGHTLY_PATTERN) -> None:
        self.url = url
        self.pattern = pattern

    @property
    def name(self) -> str:
        return "mobile-nightly"

    async def fetch(self, client: httpx.AsyncClient) -> Optional[str]:
        """
        Fetch the nightly version.

        Returns:
            Version string, or None if the listing contains no matching build

        Raises:
            UpstreamFetchError: If the listing cannot be retrieved
        """
        response = await get_checked(client, self.url, self.name)
        version = extract_listing_version(response.text, self.pattern)
        if version is None:
            logger.debug(f"No nightly build found in listing at {self.url}")
        return version


class TagListProvider:
    """
    Provider for the mobile repository tag names.

    The upstream returns a JSON array of ``{"name": ...}`` records, newest
    first. Classification into beta/release happens in
    ``train_tracker.versions.classify_tags``.
    """

    def __init__(self, url: str) -> None:
        self.url = url

    @property
    def name(self) -> str:
        return "mobile-tags"

    async def fetch(self, client: httpx.AsyncClient) -> List[str]:
        """
        Fetch tag names in provider order.

        Raises:
            UpstreamFetchError: If the request fails or the body is not a JSON array
        """
        response = await get_checked(client, self.url, self.name, headers=get_default_headers(accept=GITHUB_ACCEPT))
        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise UpstreamFetchError(self.name, f"Invalid JSON: {e}") from e
        if not isinstance(data, list):
            raise UpstreamFetchError(self.name, "Expected a JSON array of tags")

        names = [item.get("name") for item in data if isinstance(item, dict)]
        return [name for name in names if isinstance(name, str) and name]
