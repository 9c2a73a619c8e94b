# dealer_monitor/api/v1/router.py
from fastapi import APIRouter, Depends

from dealer_monitor.api.v1.auth import router as auth_router
from dealer_monitor.core.auth.dependencies import require_session
from dealer_monitor.modules.dealers import router as dealers_router
from dealer_monitor.modules.export import router as export_router
from dealer_monitor.modules.vehicles import router as vehicles_router

# Main v1 router
api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["authentication"])

# ==================== DASHBOARD (session required) ====================

api_router.include_router(
    dealers_router,
    prefix="/dealers",
    tags=["Dealers"],
    dependencies=[Depends(require_session)],
)

api_router.include_router(
    export_router,
    prefix="/export",
    tags=["Export"],
    dependencies=[Depends(require_session)],
)

api_router.include_router(
    vehicles_router,
    prefix="/vehicles",
    tags=["Vehicles"],
    dependencies=[Depends(require_session)],
)
