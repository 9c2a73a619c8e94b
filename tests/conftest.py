"""Shared test fixtures: fake marketplace upstream, configured clients, API test client."""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from dealer_monitor.config.settings import Settings, settings
from dealer_monitor.core.auth.service import AuthService
from dealer_monitor.main import app
from dealer_monitor.shared.services.marketcheck_client import MarketCheckClient, get_marketcheck_client
from dealer_monitor.shared.services.marketplace_client import MarketplaceClient, get_marketplace_client

MARKETPLACE_URL = "http://marketplace.test"
MARKETCHECK_URL = "http://marketcheck.test"
ORG_ID = "org-1"


def make_dealer(internal_id: str, marketcheck_id: str, name: str, city: str = "Leeds") -> dict[str, Any]:
    return {
        "id": internal_id,
        "marketcheckDealerId": marketcheck_id,
        "organizationId": ORG_ID,
        "dealer": {
            "id": int(marketcheck_id),
            "name": name,
            "website": f"https://{name.lower().replace(' ', '')}.example",
            "fcaStatus": "Authorised",
            "fcaReferenceNumber": "123456",
            "street": "1 High Street",
            "city": city,
            "country": "UK",
            "county": None,
            "zipcode": "LS1 1AA",
            "latitude": 53.8,
            "longitude": -1.55,
            "phoneNumber": "0113 000000",
        },
        "metadata": {"freeDeliveryRadiusInMiles": 20},
        "services": {"finance": {"isActive": False}},
        "status": "active",
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-06-01T00:00:00Z",
    }


def overview_payload(total: int, advertised: int, criteria: list, expired: list) -> dict[str, Any]:
    """Per-dealer overview in the descriptive-key format of the marketplace"""
    return {
        "Total number of stocks in marketcheck": total,
        "Total number of vehicles currently advertised": advertised,
        "Last data sync time": "2024-06-01T08:00:00Z",
        "Vehicles not advertised due to specific criteria": {
            "count": len(criteria),
            "warnings": criteria,
        },
        "Vehicles not advertised due to last seen time more than 48 hours": {
            "count": len(expired),
            "details": expired,
        },
        "Vehicles not advertised for other reasons": 1,
        "Vehicles that have been in stock for over 30 days": {"numberOfAllStock": 4, "numberOfActiveStock": 3},
        "Vehicles that have been in stock for over 45 days": {"numberOfAllStock": 2, "numberOfActiveStock": 1},
    }


class FakeMarketplace:
    """Callable handler for httpx.MockTransport imitating the marketplace API."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token = "token-1"
        self.auth_status = 200
        self.dealers = [
            make_dealer("d-1", "1001", "Alpha Motors", city="Leeds"),
            make_dealer("d-2", "1002", "Beta Cars", city="York"),
            make_dealer("d-3", "1003", "Gamma Autos", city="Hull"),
        ]
        self.overviews: dict[str, Any] = {
            "1001": overview_payload(
                total=20,
                advertised=15,
                criteria=[{"vehicleId": "v-1", "warningMsg": ["No price", "No photos"]}],
                expired=[{"vehicleId": "v-2", "lastSeen": "2024-05-28T10:00:00Z"}],
            ),
            "1002": 500,
            "1003": overview_payload(total=8, advertised=8, criteria=[], expired=[]),
        }
        self.listing_by_dealer: dict[str, Any] = {
            "lastDataSyncTime": "2024-06-01T08:00:00Z",
            "totalAdvertisedStockQty": 12,
            "totalMarketcheckStock": 30,
            "dealers": [
                {
                    "dealerId": 1001,
                    "advertisedStockQty": 12,
                    "notAdvertisedCriteria": {
                        "count": 1,
                        "warnings": [{"vehicleId": "v-1", "warningMsg": ["No price"]}],
                    },
                    "notAdvertisedExpired": {"count": 0, "details": []},
                    "categorizedVehicles": [{"vehicleId": "v-9", "writeOffCategory": "S"}],
                    "notAdvertisedOther": 0,
                    "stockOver30Days": {"numberOfAllStock": 5, "numberOfActiveStock": 4},
                    "stockOver45Days": {"numberOfAllStock": 1, "numberOfActiveStock": 1},
                    "marketcheckTotalStock": 30,
                    "DatabaseStock": 28,
                }
            ],
        }
        self.reports = {
            "reports": [
                {
                    "dealerId": "1001",
                    "weeklyTarget": 10,
                    "monthlyTarget": 40,
                    "weeklyLeadsSoFar": 3,
                    "monthlyLeadsSoFar": 12,
                    "rollingWeeklyLeads": 4,
                    "rollingMonthlyLeads": 15,
                    "weeklyLeadsRemaining": 7,
                    "monthlyLeadsRemaining": 28,
                    "activeVehicleCount": 15,
                    "lastWeeklyReset": "2024-05-27T00:00:00Z",
                    "lastMonthlyReset": "2024-06-01T00:00:00Z",
                    "status": "active",
                }
            ],
            "timestamp": "2024-06-01T09:00:00Z",
        }
        self.vehicles: dict[str, Any] = {
            "data": [
                {
                    "_id": "veh-1",
                    "marketcheckDealerId": "1001",
                    "status": "active",
                    "vehicle": {"id": "v-1", "heading": "Ford Fiesta", "lastSeenAtDate": "2024-06-01T06:00:00Z"},
                },
                {
                    "_id": "veh-2",
                    "marketcheckDealerId": "1001",
                    "status": "expired",
                    "vehicle": {"id": "v-2", "heading": "VW Golf", "lastSeenAtDate": "2024-05-28T10:00:00Z"},
                },
            ],
            "page": 1,
            "pageSize": 100,
            "totalCount": 2,
            "totalPages": 1,
        }

    def count(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)

    def _json(self, payload: Any, status_code: int = 200) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/auth/token":
            if self.auth_status != 200:
                return httpx.Response(self.auth_status, text="invalid client")
            body = json.loads(request.content)
            assert body == {"client_id": "client-id", "client_secret": "client-secret"}
            return self._json({"access_token": self.token})

        if request.headers.get("Authorization") != f"Bearer {self.token}":
            return httpx.Response(401, text="unauthorized")

        if path == "/organizations":
            return self._json({"data": [{"id": ORG_ID, "name": "Org"}], "page": 1, "totalCount": 1})

        if path == f"/Organizations/{ORG_ID}/dealers":
            page = int(request.url.params.get("page", 1))
            page_size = int(request.url.params.get("pageSize", 100))
            start = (page - 1) * page_size
            total_pages = -(-len(self.dealers) // page_size)
            return self._json({
                "data": self.dealers[start:start + page_size],
                "page": page,
                "pageSize": page_size,
                "totalCount": len(self.dealers),
                "totalPages": total_pages,
            })

        prefix = "/listingOverview/listing_overview/dealer/"
        if path.startswith(prefix):
            overview = self.overviews.get(path[len(prefix):], 404)
            if isinstance(overview, int):
                return httpx.Response(overview, text="boom")
            return self._json(overview)

        if path == "/listingOverview/listing_by_dealer":
            return self._json(self.listing_by_dealer)

        if path == f"/organizations/{ORG_ID}/dealers/reports":
            return self._json(self.reports)

        if path.startswith(f"/organizations/{ORG_ID}/dealers/") and path.endswith("/vehicles"):
            return self._json(self.vehicles)

        if path.startswith(f"/organizations/export/{ORG_ID}/dealers"):
            return httpx.Response(200, text=f"export for {path}\n", headers={"Content-Type": "text/csv"})

        return httpx.Response(404, text="not found")


@pytest.fixture()
def fake_marketplace() -> FakeMarketplace:
    return FakeMarketplace()


@pytest.fixture()
def make_settings() -> Callable[..., Settings]:
    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "marketplace_api_url": MARKETPLACE_URL,
            "marketplace_client_id": "client-id",
            "marketplace_client_secret": "client-secret",
            "marketcheck_api_url": MARKETCHECK_URL,
            "marketcheck_api_key": "mc-key",
            "stats_cache_ttl": 0,
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture()
def marketplace_client(fake_marketplace: FakeMarketplace, make_settings) -> MarketplaceClient:
    return MarketplaceClient(make_settings(), transport=httpx.MockTransport(fake_marketplace))


@pytest.fixture()
def marketcheck_handler() -> dict[str, Any]:
    """Mutable response for the fake MarketCheck search endpoint"""
    return {"status": 200, "json": {"num_found": 1, "listings": [{"vdp_url": "https://cars.example/ab12cde"}]}}


@pytest.fixture()
def marketcheck_client(marketcheck_handler: dict[str, Any], make_settings) -> MarketCheckClient:
    def handler(request: httpx.Request) -> httpx.Response:
        marketcheck_handler["last_request"] = request
        return httpx.Response(marketcheck_handler["status"], json=marketcheck_handler["json"])

    return MarketCheckClient(make_settings(), transport=httpx.MockTransport(handler))


@pytest.fixture()
def auth_password(monkeypatch) -> str:
    monkeypatch.setattr(settings, "auth_password", "s3cret, backup-pass")
    return "s3cret"


@pytest.fixture()
def api_client(marketplace_client: MarketplaceClient, marketcheck_client: MarketCheckClient):
    """TestClient with upstream clients swapped for the fakes"""
    app.dependency_overrides[get_marketplace_client] = lambda: marketplace_client
    app.dependency_overrides[get_marketcheck_client] = lambda: marketcheck_client
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture()
def signed_in_client(api_client: TestClient) -> TestClient:
    api_client.cookies.set(settings.session_cookie_name, AuthService.create_session_token())
    return api_client
