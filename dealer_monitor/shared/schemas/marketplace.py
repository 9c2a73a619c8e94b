# dealer_monitor/shared/schemas/marketplace.py
"""
Marketplace response models.

The marketplace speaks camelCase; fields here are snake_case with camelCase
aliases so the API can relay them unchanged to the dashboard.
"""

from pydantic import Field, validator
from typing import Any, Dict, List, Optional, Union

from .common import CamelModel

# Keys used by the per-dealer listing overview endpoint
OVERVIEW_TOTAL_STOCK = "Total number of stocks in marketcheck"
OVERVIEW_ADVERTISED = "Total number of vehicles currently advertised"
OVERVIEW_LAST_SYNC = "Last data sync time"
OVERVIEW_CRITERIA = "Vehicles not advertised due to specific criteria"
OVERVIEW_EXPIRED = "Vehicles not advertised due to last seen time more than 48 hours"
OVERVIEW_OTHER = "Vehicles not advertised for other reasons"
OVERVIEW_OVER_30 = "Vehicles that have been in stock for over 30 days"
OVERVIEW_OVER_45 = "Vehicles that have been in stock for over 45 days"


class StockCount(CamelModel):
    number_of_all_stock: int = 0
    number_of_active_stock: int = 0


class VehicleWarning(CamelModel):
    vehicle_id: str
    warning_msg: List[str] = []


class VehicleLastSeen(CamelModel):
    vehicle_id: str
    last_seen: Optional[str] = None


class CategorizedVehicle(CamelModel):
    vehicle_id: str
    write_off_category: Optional[str] = None


class NotAdvertisedCriteria(CamelModel):
    count: int = 0
    warnings: List[VehicleWarning] = []


class NotAdvertisedExpired(CamelModel):
    count: int = 0
    details: List[VehicleLastSeen] = []


class DealerListingStats(CamelModel):
    """One entry of the aggregate listing-by-dealer response"""
    dealer_id: int
    advertised_stock_qty: int = 0
    not_advertised_criteria: NotAdvertisedCriteria = Field(default_factory=NotAdvertisedCriteria)
    not_advertised_expired: NotAdvertisedExpired = Field(default_factory=NotAdvertisedExpired)
    categorized_vehicles: List[CategorizedVehicle] = []
    not_advertised_other: int = 0
    stock_over_30_days: StockCount = Field(default_factory=StockCount)
    stock_over_45_days: StockCount = Field(default_factory=StockCount)
    marketcheck_total_stock: int = 0
    database_stock: int = Field(0, alias="DatabaseStock")


class ListingByDealer(CamelModel):
    last_data_sync_time: Optional[str] = None
    total_advertised_stock_qty: int = 0
    total_not_advertised_criteria: int = 0
    total_not_advertised_expired: int = 0
    total_not_advertised_other: int = 0
    total_stock_over_30_days: StockCount = Field(default_factory=StockCount)
    total_stock_over_45_days: StockCount = Field(default_factory=StockCount)
    total_marketcheck_stock: int = 0
    total_database_stock: int = 0
    dealers: List[DealerListingStats] = []


class ListingOverview(CamelModel):
    """Per-dealer stock and advertising counts"""
    dealer_id: Optional[int] = None
    total_database_stock: int = 0
    advertised_stock_qty: int = 0
    not_advertised_criteria: NotAdvertisedCriteria = Field(default_factory=NotAdvertisedCriteria)
    not_advertised_expired: NotAdvertisedExpired = Field(default_factory=NotAdvertisedExpired)
    not_advertised_other: int = 0
    stock_over_30_days: StockCount = Field(default_factory=StockCount)
    stock_over_45_days: StockCount = Field(default_factory=StockCount)
    marketcheck_total_stock: int = 0
    categorized_vehicles: List[CategorizedVehicle] = []
    last_data_sync_time: Optional[str] = None

    @classmethod
    def from_overview_payload(cls, payload: Dict[str, Any], dealer_id: Optional[int] = None) -> "ListingOverview":
        """Build from the per-dealer endpoint, which uses descriptive keys"""
        if OVERVIEW_TOTAL_STOCK not in payload and OVERVIEW_ADVERTISED not in payload:
            overview = cls.model_validate(payload)
            if overview.dealer_id is None:
                overview.dealer_id = dealer_id
            return overview

        return cls(
            dealer_id=dealer_id,
            marketcheck_total_stock=payload.get(OVERVIEW_TOTAL_STOCK) or 0,
            advertised_stock_qty=payload.get(OVERVIEW_ADVERTISED) or 0,
            last_data_sync_time=payload.get(OVERVIEW_LAST_SYNC),
            not_advertised_criteria=NotAdvertisedCriteria.model_validate(
                payload.get(OVERVIEW_CRITERIA) or {}
            ),
            not_advertised_expired=NotAdvertisedExpired.model_validate(
                payload.get(OVERVIEW_EXPIRED) or {}
            ),
            not_advertised_other=payload.get(OVERVIEW_OTHER) or 0,
            stock_over_30_days=StockCount.model_validate(payload.get(OVERVIEW_OVER_30) or {}),
            stock_over_45_days=StockCount.model_validate(payload.get(OVERVIEW_OVER_45) or {}),
            categorized_vehicles=payload.get("categorizedVehicles") or [],
        )

    @classmethod
    def from_dealer_stats(cls, stats: Optional[DealerListingStats], dealer_id: Optional[int]) -> "ListingOverview":
        """Zero-filled overview when the aggregate has no entry for the dealer"""
        if stats is None:
            return cls(dealer_id=dealer_id)

        return cls(
            dealer_id=dealer_id,
            total_database_stock=stats.database_stock,
            advertised_stock_qty=stats.advertised_stock_qty,
            not_advertised_criteria=stats.not_advertised_criteria,
            not_advertised_expired=stats.not_advertised_expired,
            not_advertised_other=stats.not_advertised_other,
            stock_over_30_days=stats.stock_over_30_days,
            stock_over_45_days=stats.stock_over_45_days,
            marketcheck_total_stock=stats.marketcheck_total_stock,
            categorized_vehicles=stats.categorized_vehicles,
        )


class DealerInfo(CamelModel):
    id: Optional[Union[int, str]] = None
    name: str = ""
    website: Optional[str] = None
    fca_status: Optional[str] = None
    fca_reference_number: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    county: Optional[str] = None
    zipcode: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    phone_number: Optional[str] = None

    class Config:
        extra = "allow"


class Dealer(CamelModel):
    id: Union[str, int]
    marketcheck_dealer_id: str
    organization_id: Optional[str] = None
    dealer: DealerInfo = Field(default_factory=DealerInfo)
    metadata: Dict[str, Any] = {}
    services: Dict[str, Any] = {}
    status: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    class Config:
        extra = "allow"

    @validator("marketcheck_dealer_id", pre=True)
    def coerce_marketcheck_id(cls, v):
        return str(v) if v is not None else v

    @property
    def numeric_dealer_id(self) -> Optional[int]:
        try:
            return int(self.marketcheck_dealer_id)
        except (TypeError, ValueError):
            return None


class DealerWithStats(Dealer):
    listing_overview: Optional[ListingOverview] = None


class DealersPage(CamelModel):
    data: List[DealerWithStats] = []
    page: int = 1
    page_size: int = 100
    total_count: int = 0
    total_pages: int = 0


class DealerReport(CamelModel):
    dealer_id: str
    weekly_target: int = 0
    monthly_target: int = 0
    weekly_leads_so_far: int = 0
    monthly_leads_so_far: int = 0
    rolling_weekly_leads: int = 0
    rolling_monthly_leads: int = 0
    weekly_leads_remaining: int = 0
    monthly_leads_remaining: int = 0
    active_vehicle_count: int = 0
    last_weekly_reset: Optional[str] = None
    last_monthly_reset: Optional[str] = None
    status: Optional[str] = None

    @validator("dealer_id", pre=True)
    def coerce_dealer_id(cls, v):
        return str(v)


class DealerReportsResponse(CamelModel):
    reports: List[DealerReport] = []
    timestamp: Optional[str] = None
