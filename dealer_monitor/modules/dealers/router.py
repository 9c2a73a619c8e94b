# dealer_monitor/modules/dealers/router.py
from fastapi import APIRouter, Depends, Query
from typing import Any, List, Literal, Optional

from dealer_monitor.shared.schemas.marketplace import DealerReportsResponse, DealerWithStats
from dealer_monitor.shared.services.marketplace_client import MarketplaceClient, get_marketplace_client
from .schemas import (
    DealerDetailResponse,
    DealerIssuesResponse,
    DealerSummaryResponse,
    IssueType,
    SortKey,
)
from .service import DealersService

router = APIRouter()


def get_dealers_service(client: MarketplaceClient = Depends(get_marketplace_client)) -> DealersService:
    return DealersService(client)


@router.get("", response_model=List[DealerWithStats])
async def list_dealers(
    page: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=500, alias="pageSize"),
    search: Optional[str] = Query(None, description="Matches name, city, postcode, website and ids"),
    sort: Optional[SortKey] = Query(None),
    order: Literal["asc", "desc"] = Query("asc"),
    refresh: bool = Query(False, description="Bypass the short-lived stats cache"),
    service: DealersService = Depends(get_dealers_service),
):
    """
    Dealers of one page with their listing overview merged in

    **Includes per dealer:**
    - MarketCheck and database stock
    - Advertised vs. not advertised (criteria / last seen 48h+)
    - Stock older than 30 and 45 days

    Dealers whose stats could not be fetched come back with `listingOverview: null`.
    """
    return await service.list_dealers(page, page_size, search, sort, order, refresh)


@router.get("/summary", response_model=DealerSummaryResponse)
async def get_dealers_summary(
    refresh: bool = Query(False),
    service: DealersService = Depends(get_dealers_service),
):
    """Totals across every dealer page"""
    return await service.get_summary(refresh)


@router.get("/reports", response_model=DealerReportsResponse)
async def get_dealer_reports(service: DealersService = Depends(get_dealers_service)):
    """Lead targets and progress per dealer"""
    return await service.get_reports()


@router.get("/{marketcheck_dealer_id}", response_model=DealerDetailResponse)
async def get_dealer(
    marketcheck_dealer_id: str,
    service: DealersService = Depends(get_dealers_service),
):
    return await service.get_dealer(marketcheck_dealer_id)


@router.get("/{marketcheck_dealer_id}/issues", response_model=DealerIssuesResponse)
async def get_dealer_issues(
    marketcheck_dealer_id: str,
    type: Optional[IssueType] = Query(None),
    search: Optional[str] = Query(None),
    service: DealersService = Depends(get_dealers_service),
):
    """Vehicles not advertised, with the reason for each one"""
    return await service.get_dealer_issues(marketcheck_dealer_id, type, search)


@router.get("/{dealer_id}/vehicles")
async def get_dealer_vehicles(
    dealer_id: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=500, alias="pageSize"),
    service: DealersService = Depends(get_dealers_service),
) -> Any:
    """Vehicles of a dealer as returned by the marketplace, flagged when not seen for 2+ days"""
    return await service.get_dealer_vehicles(dealer_id, page, page_size)
