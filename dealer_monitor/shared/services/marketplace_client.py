# dealer_monitor/shared/services/marketplace_client.py
"""Async client for the dealer marketplace API."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from dealer_monitor.config.settings import Settings, settings as default_settings
from dealer_monitor.shared.schemas.marketplace import (
    DealerReportsResponse,
    DealersPage,
    DealerWithStats,
    ListingByDealer,
    ListingOverview,
)
from .cache import TTLCache

logger = logging.getLogger(__name__)

EXPORT_PATHS = {
    "all-dealers": "/organizations/export/{org}/dealers",
    "all-vehicles": "/organizations/export/{org}/dealers/vehicles",
    "dealer-vehicles": "/organizations/export/{org}/dealers/{dealer_id}/vehicles",
}


class MarketplaceAPIError(RuntimeError):
    """Raised for marketplace request/config errors with structured metadata."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        status: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status = status
        self.details = details or {}


class MarketplaceAuthError(MarketplaceAPIError):
    """Token exchange failed or the marketplace rejected our token."""


class MarketplaceConfigError(MarketplaceAPIError):
    """Client credentials are not configured."""


class MarketplaceClient:
    """
    Client for the marketplace backend.

    Holds a bearer token and the organization id for the process lifetime;
    both are fetched lazily on first use.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        config = config or default_settings
        self.base_url = config.marketplace_api_url
        self.client_id = config.marketplace_client_id
        self.client_secret = config.marketplace_client_secret
        self.timeout = config.marketplace_timeout
        self.stats_mode = config.stats_mode
        self.stats_concurrency = max(1, config.stats_concurrency)

        self.access_token: Optional[str] = None
        self.organization_id: Optional[str] = None

        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None
        self._auth_lock = asyncio.Lock()
        self._stats_cache = TTLCache(config.stats_cache_ttl)

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    # ==================== AUTH ====================

    async def authenticate(self) -> str:
        """Exchange client credentials for a bearer token"""
        if not self.client_id or not self.client_secret:
            raise MarketplaceConfigError(
                "Missing marketplace API credentials",
                code="MISSING_CREDENTIALS",
            )

        logger.info("Authenticating against marketplace %s", self.base_url)
        try:
            response = await self.http.post(
                "/auth/token",
                json={"client_id": self.client_id, "client_secret": self.client_secret},
            )
        except httpx.HTTPError as exc:
            logger.error("Marketplace authentication request failed: %s", exc)
            raise MarketplaceAuthError(
                f"Authentication failed: {exc}",
                code="NETWORK_ERROR",
            ) from exc

        if response.is_error:
            logger.error(
                "Marketplace authentication failed: %s - %s",
                response.status_code,
                response.text,
            )
            raise MarketplaceAuthError(
                f"Authentication failed: {response.status_code} - {response.text}",
                code="AUTH_FAILED",
                status=response.status_code,
            )

        data = self._parse_json(response, "/auth/token")
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise MarketplaceAuthError(
                "Authentication failed: No access token received",
                code="NO_ACCESS_TOKEN",
                status=response.status_code,
            )

        self.access_token = token
        logger.info("Marketplace authentication successful")
        return token

    async def get_headers(self) -> Dict[str, str]:
        if not self.access_token:
            async with self._auth_lock:
                # Another caller may have authenticated while we waited
                if not self.access_token:
                    await self.authenticate()

        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    # ==================== TRANSPORT ====================

    @staticmethod
    def _parse_json(response: httpx.Response, path: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise MarketplaceAPIError(
                f"Invalid JSON from marketplace ({path})",
                code="INVALID_RESPONSE",
                status=response.status_code,
                details={"path": path, "body": response.text[:500]},
            ) from exc

    async def _send(
        self,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        error_message: str,
    ) -> httpx.Response:
        headers = await self.get_headers()
        try:
            response = await self.http.get(path, params=params, headers=headers)
        except httpx.TimeoutException as exc:
            raise MarketplaceAPIError(
                "Marketplace request timed out.",
                code="TIMEOUT",
                details={"path": path, "params": params or {}},
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Marketplace client error (%s): %s", path, exc)
            raise MarketplaceAPIError(
                "Marketplace request failed due to a network/client error.",
                code="NETWORK_ERROR",
                details={"path": path, "params": params or {}, "error": str(exc)},
            ) from exc

        if response.status_code == 401:
            # Token expired or revoked; the next call authenticates again
            self.access_token = None
            raise MarketplaceAuthError(
                f"{error_message}: marketplace rejected the access token",
                code="TOKEN_REJECTED",
                status=401,
                details={"path": path},
            )

        if response.is_error:
            logger.error(
                "Marketplace error %s on %s: %s",
                response.status_code,
                path,
                response.text,
            )
            raise MarketplaceAPIError(
                f"{error_message}: {response.status_code}",
                code="MARKETPLACE_HTTP_ERROR",
                status=response.status_code,
                details={"path": path, "body": response.text[:500]},
            )

        return response

    async def _get_json(
        self,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        error_message: str,
    ) -> Any:
        response = await self._send(path, params=params, error_message=error_message)
        return self._parse_json(response, path)

    # ==================== ORGANIZATION / DEALERS ====================

    async def get_organization_id(self) -> str:
        if self.organization_id:
            return self.organization_id

        data = await self._get_json("/organizations", error_message="Failed to fetch organization")
        organizations = data.get("data") if isinstance(data, dict) else None
        if not organizations:
            raise MarketplaceAPIError("No organizations found", code="NO_ORGANIZATION")

        self.organization_id = str(organizations[0]["id"])
        logger.info("Using marketplace organization %s", self.organization_id)
        return self.organization_id

    async def get_dealers(self, page: int = 1, page_size: int = 100) -> DealersPage:
        organization_id = await self.get_organization_id()
        data = await self._get_json(
            f"/Organizations/{organization_id}/dealers",
            params={"page": page, "pageSize": page_size},
            error_message="Failed to fetch dealers",
        )
        dealers = DealersPage.model_validate(data)
        logger.debug("Fetched %d dealers (page %d)", len(dealers.data), page)
        return dealers

    async def get_listing_overview(self, marketcheck_dealer_id: str) -> ListingOverview:
        data = await self._get_json(
            f"/listingOverview/listing_overview/dealer/{marketcheck_dealer_id}",
            error_message="Failed to fetch listing overview",
        )
        try:
            dealer_id: Optional[int] = int(marketcheck_dealer_id)
        except ValueError:
            dealer_id = None
        if not isinstance(data, dict):
            raise MarketplaceAPIError(
                f"Unexpected listing overview payload for dealer {marketcheck_dealer_id}",
                code="INVALID_RESPONSE",
                details={"dealer_id": marketcheck_dealer_id, "type": type(data).__name__},
            )
        return ListingOverview.from_overview_payload(data, dealer_id=dealer_id)

    async def get_listing_by_dealer(self) -> ListingByDealer:
        data = await self._get_json(
            "/listingOverview/listing_by_dealer",
            error_message="Failed to fetch listing overview",
        )
        return ListingByDealer.model_validate(data)

    async def get_dealers_with_stats(
        self,
        page: int = 1,
        page_size: int = 100,
        *,
        refresh: bool = False,
    ) -> List[DealerWithStats]:
        page_result = await self.get_dealers_page_with_stats(page, page_size, refresh=refresh)
        return page_result.data

    async def get_dealers_page_with_stats(
        self,
        page: int = 1,
        page_size: int = 100,
        *,
        refresh: bool = False,
    ) -> DealersPage:
        """One page of dealers with their listing overview merged in"""
        cache_key = (page, page_size, self.stats_mode)
        if not refresh:
            cached = self._stats_cache.get(cache_key)
            if cached is not None:
                return cached

        degraded = False
        if self.stats_mode == "aggregate":
            result = await self._merge_aggregate_stats(page, page_size)
        else:
            result, degraded = await self._merge_per_dealer_stats(page, page_size)

        # pages with missing stats are refetched on the next call
        if not degraded:
            self._stats_cache.set(cache_key, result)
        return result

    async def _merge_per_dealer_stats(self, page: int, page_size: int) -> Tuple[DealersPage, bool]:
        """Merged page, and whether any dealer's stats could not be fetched"""
        dealers = await self.get_dealers(page, page_size)
        semaphore = asyncio.Semaphore(self.stats_concurrency)

        async def attach(dealer: DealerWithStats) -> DealerWithStats:
            async with semaphore:
                try:
                    overview = await self.get_listing_overview(dealer.marketcheck_dealer_id)
                except (MarketplaceAPIError, httpx.HTTPError, ValueError) as exc:
                    logger.warning(
                        "Failed to fetch listing overview for dealer %s: %s",
                        dealer.marketcheck_dealer_id,
                        exc,
                    )
                    overview = None
            return dealer.model_copy(update={"listing_overview": overview})

        merged = await asyncio.gather(*(attach(dealer) for dealer in dealers.data))
        failed = sum(1 for dealer in merged if dealer.listing_overview is None)
        logger.info("Fetched stats for %d dealers (%d failed)", len(merged), failed)
        return dealers.model_copy(update={"data": list(merged)}), failed > 0

    async def _merge_aggregate_stats(self, page: int, page_size: int) -> DealersPage:
        dealers, listing = await asyncio.gather(
            self.get_dealers(page, page_size),
            self.get_listing_by_dealer(),
        )
        stats_by_dealer = {stats.dealer_id: stats for stats in listing.dealers}

        merged = []
        for dealer in dealers.data:
            dealer_id = dealer.numeric_dealer_id
            overview = ListingOverview.from_dealer_stats(stats_by_dealer.get(dealer_id), dealer_id)
            overview.last_data_sync_time = listing.last_data_sync_time
            merged.append(dealer.model_copy(update={"listing_overview": overview}))

        return dealers.model_copy(update={"data": merged})

    async def get_all_dealers_with_stats(self, page_size: int = 100, *, refresh: bool = False) -> List[DealerWithStats]:
        first = await self.get_dealers_page_with_stats(1, page_size, refresh=refresh)
        dealers = list(first.data)
        for page in range(2, first.total_pages + 1):
            next_page = await self.get_dealers_page_with_stats(page, page_size, refresh=refresh)
            dealers.extend(next_page.data)
        return dealers

    def clear_cache(self) -> None:
        self._stats_cache.clear()

    # ==================== VEHICLES / REPORTS / EXPORT ====================

    async def get_dealer_vehicles(self, dealer_id: str, page: int = 1, page_size: int = 100) -> Any:
        organization_id = await self.get_organization_id()
        return await self._get_json(
            f"/organizations/{organization_id}/dealers/{dealer_id}/vehicles",
            params={"page": page, "pageSize": page_size},
            error_message="Failed to fetch dealer vehicles",
        )

    async def get_dealer_reports(self) -> DealerReportsResponse:
        organization_id = await self.get_organization_id()
        data = await self._get_json(
            f"/organizations/{organization_id}/dealers/reports",
            error_message="Failed to fetch dealer reports",
        )
        return DealerReportsResponse.model_validate(data)

    async def export_csv(self, kind: str, dealer_id: Optional[str] = None) -> str:
        """Raw CSV for one of the marketplace export endpoints"""
        if kind not in EXPORT_PATHS:
            raise ValueError(f"Unknown export type: {kind}")
        if "{dealer_id}" in EXPORT_PATHS[kind] and not dealer_id:
            raise ValueError("Dealer ID is required")

        organization_id = await self.get_organization_id()
        path = EXPORT_PATHS[kind].format(org=organization_id, dealer_id=dealer_id)
        response = await self._send(path, error_message="Export failed")
        return response.text


_client: Optional[MarketplaceClient] = None


def get_marketplace_client() -> MarketplaceClient:
    """FastAPI dependency returning the process-wide client"""
    global _client
    if _client is None:
        _client = MarketplaceClient()
    return _client


async def close_marketplace_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
