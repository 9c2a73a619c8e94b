# dealer_monitor/modules/dealers/service.py
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from dateutil import parser as date_parser
from fastapi import HTTPException

from dealer_monitor.shared.schemas.marketplace import (
    DealerReport,
    DealerReportsResponse,
    DealerWithStats,
    ListingOverview,
)
from dealer_monitor.shared.services.marketplace_client import MarketplaceAPIError, MarketplaceClient
from .schemas import (
    DealerDetailResponse,
    DealerIssue,
    DealerIssuesResponse,
    DealerSummaryResponse,
)

logger = logging.getLogger(__name__)

# Vehicles not seen for longer than this are flagged as stale
STALE_AFTER_DAYS = 2

SORT_ACCESSORS: Dict[str, Callable[[ListingOverview], int]] = {
    "totalStock": lambda o: o.marketcheck_total_stock,
    "databaseStock": lambda o: o.total_database_stock,
    "advertised": lambda o: o.advertised_stock_qty,
    "notAdvertised": lambda o: o.not_advertised_criteria.count,
    "expired": lambda o: o.not_advertised_expired.count,
    "stockOver30Days": lambda o: o.stock_over_30_days.number_of_all_stock,
    "stockOver45Days": lambda o: o.stock_over_45_days.number_of_all_stock,
}


def dealer_name(dealer: DealerWithStats) -> str:
    if dealer.dealer.name:
        return dealer.dealer.name
    return str((dealer.model_extra or {}).get("name") or "")


def filter_dealers(dealers: List[DealerWithStats], search: Optional[str]) -> List[DealerWithStats]:
    """Case-insensitive match on name, location, website and ids"""
    if not search or not search.strip():
        return list(dealers)

    needle = search.strip().lower()

    def haystack(dealer: DealerWithStats) -> str:
        info = dealer.dealer
        fields = [
            dealer_name(dealer),
            info.city,
            info.zipcode,
            info.website,
            dealer.marketcheck_dealer_id,
            str(dealer.id),
        ]
        return " ".join(str(f) for f in fields if f).lower()

    return [d for d in dealers if needle in haystack(d)]


def sort_dealers(dealers: List[DealerWithStats], sort: Optional[str], order: str = "asc") -> List[DealerWithStats]:
    """Sort by a column; dealers without stats always go last"""
    if not sort:
        return list(dealers)

    reverse = order == "desc"
    if sort == "name":
        return sorted(dealers, key=lambda d: dealer_name(d).lower(), reverse=reverse)

    accessor = SORT_ACCESSORS.get(sort)
    if accessor is None:
        raise HTTPException(status_code=400, detail=f"Invalid sort column: {sort}")

    with_stats = [d for d in dealers if d.listing_overview is not None]
    without_stats = [d for d in dealers if d.listing_overview is None]
    with_stats.sort(key=lambda d: accessor(d.listing_overview), reverse=reverse)
    return with_stats + without_stats


def summarize(dealers: List[DealerWithStats]) -> DealerSummaryResponse:
    summary = DealerSummaryResponse(total_dealers=len(dealers))
    for dealer in dealers:
        overview = dealer.listing_overview
        if overview is None:
            summary.dealers_without_stats += 1
            continue
        summary.total_vehicles += overview.marketcheck_total_stock
        summary.total_database_stock += overview.total_database_stock
        summary.advertised_vehicles += overview.advertised_stock_qty
        summary.not_advertised_vehicles += overview.not_advertised_criteria.count
        summary.not_advertised_due_to_last_seen += overview.not_advertised_expired.count
    return summary


def build_issue_rows(overview: ListingOverview) -> List[DealerIssue]:
    """Flatten criteria warnings, staleness and write-off categories into rows"""
    rows = [
        DealerIssue(
            vehicle_id=warning.vehicle_id,
            issue_type="criteria",
            issue="; ".join(warning.warning_msg),
        )
        for warning in overview.not_advertised_criteria.warnings
    ]
    rows.extend(
        DealerIssue(
            vehicle_id=detail.vehicle_id,
            issue_type="last_seen",
            issue=f"Last seen: {detail.last_seen}",
            last_seen=detail.last_seen,
        )
        for detail in overview.not_advertised_expired.details
    )
    rows.extend(
        DealerIssue(
            vehicle_id=vehicle.vehicle_id,
            issue_type="writeoff",
            issue=f"Write-off category: {vehicle.write_off_category}",
            write_off_category=vehicle.write_off_category,
        )
        for vehicle in overview.categorized_vehicles
    )
    return rows


def filter_issue_rows(
    rows: List[DealerIssue],
    issue_type: Optional[str] = None,
    search: Optional[str] = None,
) -> List[DealerIssue]:
    if issue_type:
        rows = [r for r in rows if r.issue_type == issue_type]
    if search and search.strip():
        needle = search.strip().lower()
        rows = [r for r in rows if needle in r.vehicle_id.lower() or needle in r.issue.lower()]
    return rows


def days_since(value: Optional[str], now: Optional[datetime] = None) -> Optional[int]:
    """Whole days elapsed since a timestamp string, None if it cannot be parsed"""
    if not value:
        return None
    try:
        seen = date_parser.parse(value)
    except (ValueError, OverflowError):
        return None
    if seen.tzinfo is None:
        seen = seen.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return int((now - seen).total_seconds() // 86400)


def annotate_vehicles(payload: Any, now: Optional[datetime] = None) -> Any:
    """Add lastSeenDays / isStale to every vehicle record of an upstream payload"""
    items = payload.get("data") if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        return payload

    for item in items:
        if not isinstance(item, dict):
            continue
        vehicle = item.get("vehicle") or {}
        days = days_since(vehicle.get("lastSeenAtDate"), now)
        item["lastSeenDays"] = days
        item["isStale"] = days is not None and days > STALE_AFTER_DAYS
    return payload


class DealersService:
    def __init__(self, client: MarketplaceClient):
        self.client = client

    async def list_dealers(
        self,
        page: int = 1,
        page_size: int = 100,
        search: Optional[str] = None,
        sort: Optional[str] = None,
        order: str = "asc",
        refresh: bool = False,
    ) -> List[DealerWithStats]:
        dealers = await self.client.get_dealers_with_stats(page, page_size, refresh=refresh)
        return sort_dealers(filter_dealers(dealers, search), sort, order)

    async def get_summary(self, refresh: bool = False) -> DealerSummaryResponse:
        dealers = await self.client.get_all_dealers_with_stats(refresh=refresh)
        return summarize(dealers)

    async def get_reports(self) -> DealerReportsResponse:
        return await self.client.get_dealer_reports()

    async def find_dealer(self, marketcheck_dealer_id: str) -> DealerWithStats:
        dealers = await self.client.get_all_dealers_with_stats()
        for dealer in dealers:
            if dealer.marketcheck_dealer_id == marketcheck_dealer_id:
                return dealer
        raise HTTPException(status_code=404, detail=f"Dealer {marketcheck_dealer_id} not found")

    async def get_dealer(self, marketcheck_dealer_id: str) -> DealerDetailResponse:
        dealer = await self.find_dealer(marketcheck_dealer_id)

        report: Optional[DealerReport] = None
        try:
            reports = await self.client.get_dealer_reports()
        except MarketplaceAPIError as e:
            logger.warning("Dealer reports unavailable for %s: %s", marketcheck_dealer_id, e)
        else:
            report = next((r for r in reports.reports if r.dealer_id == marketcheck_dealer_id), None)

        return DealerDetailResponse(**dict(dealer), report=report)

    async def get_dealer_issues(
        self,
        marketcheck_dealer_id: str,
        issue_type: Optional[str] = None,
        search: Optional[str] = None,
    ) -> DealerIssuesResponse:
        dealer = await self.find_dealer(marketcheck_dealer_id)
        if dealer.listing_overview is None:
            raise HTTPException(status_code=404, detail="Dealer not found or no data available")

        rows = filter_issue_rows(build_issue_rows(dealer.listing_overview), issue_type, search)
        return DealerIssuesResponse(
            dealer_id=dealer.marketcheck_dealer_id,
            dealer_name=dealer_name(dealer),
            total=len(rows),
            issues=rows,
        )

    async def get_dealer_vehicles(self, dealer_id: str, page: int = 1, page_size: int = 100) -> Any:
        payload = await self.client.get_dealer_vehicles(dealer_id, page, page_size)
        return annotate_vehicles(payload)
