# dealer_monitor/modules/dealers/schemas.py
from typing import List, Literal, Optional

from dealer_monitor.shared.schemas.common import CamelModel
from dealer_monitor.shared.schemas.marketplace import DealerReport, DealerWithStats

IssueType = Literal["criteria", "last_seen", "writeoff"]

SortKey = Literal[
    "name",
    "totalStock",
    "databaseStock",
    "advertised",
    "notAdvertised",
    "expired",
    "stockOver30Days",
    "stockOver45Days",
]


class DealerSummaryResponse(CamelModel):
    """Totals shown on the dashboard cards"""
    total_dealers: int = 0
    total_vehicles: int = 0
    total_database_stock: int = 0
    advertised_vehicles: int = 0
    not_advertised_vehicles: int = 0
    not_advertised_due_to_last_seen: int = 0
    dealers_without_stats: int = 0


class DealerDetailResponse(DealerWithStats):
    report: Optional[DealerReport] = None


class DealerIssue(CamelModel):
    vehicle_id: str
    issue_type: IssueType
    issue: str
    last_seen: Optional[str] = None
    write_off_category: Optional[str] = None


class DealerIssuesResponse(CamelModel):
    dealer_id: str
    dealer_name: str
    total: int
    issues: List[DealerIssue] = []
