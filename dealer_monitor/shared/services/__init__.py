"""Shared external API clients."""

from .marketcheck_client import MarketCheckAPIError, MarketCheckClient, get_marketcheck_client
from .marketplace_client import (
    MarketplaceAPIError,
    MarketplaceAuthError,
    MarketplaceClient,
    MarketplaceConfigError,
    close_marketplace_client,
    get_marketplace_client,
)

__all__ = [
    "MarketCheckAPIError",
    "MarketCheckClient",
    "MarketplaceAPIError",
    "MarketplaceAuthError",
    "MarketplaceClient",
    "MarketplaceConfigError",
    "close_marketplace_client",
    "get_marketcheck_client",
    "get_marketplace_client",
]
