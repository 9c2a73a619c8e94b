# dealer_monitor/shared/services/marketcheck_client.py
import logging
from typing import Any, Dict, Optional

import httpx

from dealer_monitor.config.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class MarketCheckAPIError(RuntimeError):
    """Raised for MarketCheck request/config errors."""

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


class MarketCheckClient:
    """Client for the MarketCheck UK active listings search"""

    def __init__(
        self,
        config: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        config = config or default_settings
        self.base_url = config.marketcheck_api_url
        self.api_key = (config.marketcheck_api_key or "").strip()
        self.timeout = config.marketplace_timeout
        self._transport = transport

    async def get_vehicle_link(self, vrm: str) -> Optional[str]:
        """Vehicle detail page URL of the first active listing for a registration mark"""
        if not self.api_key:
            raise MarketCheckAPIError(
                "MARKETCHECK_API_KEY is not configured.",
                code="MISSING_API_KEY",
            )

        params = {"api_key": self.api_key, "vrm": vrm.strip().upper()}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.get("/search/car/uk/active", params=params)
        except httpx.HTTPError as exc:
            logger.error("MarketCheck request failed for %s: %s", params["vrm"], exc)
            raise MarketCheckAPIError(
                "Failed to fetch vehicle link",
                code="NETWORK_ERROR",
                details={"vrm": params["vrm"], "error": str(exc)},
            ) from exc

        if response.is_error:
            logger.error("MarketCheck error %s: %s", response.status_code, response.text)
            raise MarketCheckAPIError(
                "Failed to fetch vehicle link",
                code="MARKETCHECK_HTTP_ERROR",
                status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.error("Unexpected MarketCheck response for %s: %s", params["vrm"], response.text[:200])
            raise MarketCheckAPIError(
                "Invalid response from MarketCheck",
                code="INVALID_RESPONSE",
                status=response.status_code,
                details={"vrm": params["vrm"], "body": response.text[:500]},
            )

        listings = data.get("listings")
        if not isinstance(listings, list) or not listings or not isinstance(listings[0], dict):
            return None
        return listings[0].get("vdp_url") or None


def get_marketcheck_client() -> MarketCheckClient:
    return MarketCheckClient()
