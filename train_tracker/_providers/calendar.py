"""Release calendar feed."""

import httpx

from .utils import get_checked


class CalendarFeedProvider:
    """Provider for the raw iCalendar feed text."""

    def __init__(self, url: str) -> None:
        self.url = url

    @property
    def name(self) -> str:
        return "calendar"

    async def fetch(self, client: httpx.AsyncClient) -> str:
        response = await get_checked(client, self.url, self.name)
        return response.text
