# dealer_monitor/modules/export/router.py
from fastapi import APIRouter, Depends, Query, Response
from typing import Optional

from dealer_monitor.shared.services.marketplace_client import MarketplaceClient, get_marketplace_client
from .service import ExportService

router = APIRouter()


def get_export_service(client: MarketplaceClient = Depends(get_marketplace_client)) -> ExportService:
    return ExportService(client)


@router.get("", response_class=Response)
async def export_csv(
    type: Optional[str] = Query(None, description="all-vehicles, all-dealers, dealer-vehicles, vehicles-with-issues, dealer-issues"),
    dealer_id: Optional[str] = Query(None, alias="dealerId"),
    service: ExportService = Depends(get_export_service),
):
    """
    Download a CSV export

    **Types:**
    - all-vehicles / all-dealers / dealer-vehicles: relayed from the marketplace
    - vehicles-with-issues: every not-advertised vehicle across dealers
    - dealer-issues: not-advertised vehicles of one dealer
    """
    filename, content = await service.export(type, dealer_id)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
