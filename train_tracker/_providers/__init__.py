"""Upstream data providers for release-train status."""

from .calendar import CalendarFeedProvider
from .mobile import NightlyListingProvider, TagListProvider
from .product_details import ProductDetailsProvider
from .protocol import DataProvider

__all__ = [
    "CalendarFeedProvider",
    "DataProvider",
    "NightlyListingProvider",
    "ProductDetailsProvider",
    "TagListProvider",
]
