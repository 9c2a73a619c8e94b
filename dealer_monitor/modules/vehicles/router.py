# dealer_monitor/modules/vehicles/router.py
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from dealer_monitor.shared.services.marketcheck_client import MarketCheckClient, get_marketcheck_client
from .schemas import VehicleLinkResponse

router = APIRouter()


@router.get("/link", response_model=VehicleLinkResponse)
async def get_vehicle_link(
    vrm: Optional[str] = Query(None, description="Vehicle registration mark"),
    client: MarketCheckClient = Depends(get_marketcheck_client),
):
    """Public listing page for a registration mark, null when no active listing"""
    if not vrm or not vrm.strip():
        raise HTTPException(status_code=400, detail="VRM is required")

    link = await client.get_vehicle_link(vrm)
    return VehicleLinkResponse(vrm=vrm.strip().upper(), link=link)
