"""Desktop versions from the product-details JSON API."""

import json
from typing import Dict, Mapping, Optional

import httpx

from train_tracker.exceptions import UpstreamFetchError
from train_tracker.logging_config import logger

from .utils import get_checked


class ProductDetailsProvider:
    """
    Provider for desktop channel versions.

    The upstream document is a flat JSON object of named version fields,
    e.g. {"LATEST_THUNDERBIRD_VERSION": "144.0.1", ...}. ``fields`` maps each
    desktop track to the field holding its version.
    """

    def __init__(self, url: str, fields: Mapping[str, str]) -> None:
        self.url = url
        self.fields = dict(fields)

    @property
    def name(self) -> str:
        return "product-details"

    async def fetch(self, client: httpx.AsyncClient) -> Dict[str, Optional[str]]:
        """
        Fetch desktop versions.

        Returns:
            Mapping of track name to version (None for missing or empty fields)

        Raises:
            UpstreamFetchError: If the request fails or the body is not a JSON object
        """
        response = await get_checked(client, self.url, self.name)
        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise UpstreamFetchError(self.name, f"Invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise UpstreamFetchError(self.name, "Expected a JSON object")

        versions = {track: data.get(field) or None for track, field in self.fields.items()}
        logger.debug(f"Desktop versions: {versions}")
        return versions
