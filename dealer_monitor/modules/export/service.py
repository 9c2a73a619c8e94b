# dealer_monitor/modules/export/service.py
import csv
import io
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from fastapi import HTTPException

from dealer_monitor.modules.dealers.service import DealersService, build_issue_rows, dealer_name
from dealer_monitor.shared.schemas.marketplace import DealerWithStats
from dealer_monitor.shared.services.marketplace_client import EXPORT_PATHS, MarketplaceClient

logger = logging.getLogger(__name__)

LOCAL_EXPORTS = ("vehicles-with-issues", "dealer-issues")
EXPORT_TYPES = tuple(EXPORT_PATHS) + LOCAL_EXPORTS

# Staleness and criteria issues only; write-off categories are not issues
EXPORTED_ISSUE_TYPES = ("criteria", "last_seen")


def to_csv(header: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def vehicles_with_issues_csv(dealers: List[DealerWithStats]) -> str:
    rows = []
    for dealer in dealers:
        if dealer.listing_overview is None:
            continue
        for issue in build_issue_rows(dealer.listing_overview):
            if issue.issue_type not in EXPORTED_ISSUE_TYPES:
                continue
            rows.append([
                dealer_name(dealer),
                dealer.marketcheck_dealer_id,
                issue.vehicle_id,
                issue.issue_type,
                issue.issue,
            ])
    return to_csv(["Dealer Name", "Dealer ID", "Vehicle ID", "Issue Type", "Issue"], rows)


def dealer_issues_csv(dealer: DealerWithStats) -> str:
    rows = [
        [issue.vehicle_id, issue.issue_type, issue.issue]
        for issue in build_issue_rows(dealer.listing_overview)
        if issue.issue_type in EXPORTED_ISSUE_TYPES
    ]
    return to_csv(["Vehicle ID", "Issue Type", "Issue"], rows)


class ExportService:
    def __init__(self, client: MarketplaceClient):
        self.client = client
        self.dealers = DealersService(client)

    async def export(self, export_type: Optional[str], dealer_id: Optional[str] = None) -> Tuple[str, str]:
        """Return (filename, csv content) for an export type"""
        if not export_type:
            raise HTTPException(status_code=400, detail="Type is required")
        if export_type not in EXPORT_TYPES:
            raise HTTPException(status_code=400, detail="Invalid export type")
        if export_type in ("dealer-vehicles", "dealer-issues") and not dealer_id:
            raise HTTPException(status_code=400, detail="Dealer ID is required")

        logger.info("Exporting %s%s", export_type, f" for dealer {dealer_id}" if dealer_id else "")

        if export_type == "vehicles-with-issues":
            dealers = await self.client.get_all_dealers_with_stats()
            return "vehicles-with-issues.csv", vehicles_with_issues_csv(dealers)

        if export_type == "dealer-issues":
            dealer = await self.dealers.find_dealer(dealer_id)
            if dealer.listing_overview is None:
                raise HTTPException(status_code=404, detail="Dealer not found or no data available")
            return f"dealer-{dealer_id}-issues.csv", dealer_issues_csv(dealer)

        content = await self.client.export_csv(export_type, dealer_id)
        if export_type == "dealer-vehicles":
            return f"dealer-{dealer_id}-vehicles.csv", content
        return f"{export_type}.csv", content
