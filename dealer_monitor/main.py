# dealer_monitor/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from dealer_monitor.config.settings import settings
from dealer_monitor.core.exceptions import setup_exception_handlers
from dealer_monitor.core.middleware import setup_middleware
from dealer_monitor.api.v1.router import api_router
from dealer_monitor.shared.services.marketplace_client import close_marketplace_client

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"🚀 {settings.app_name} starting")
    logger.info(f"📍 Version: {settings.version}")
    logger.info(f"🌍 Environment: {'Development' if settings.debug else 'Production'}")
    logger.info(f"🏪 Marketplace: {settings.marketplace_api_url} (stats mode: {settings.stats_mode})")

    yield

    # Shutdown
    await close_marketplace_client()
    logger.info(f"🛑 {settings.app_name} shutting down")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Dealer inventory monitoring: listing stats, issues and CSV exports",
    docs_url="/docs",
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Setup middleware
setup_middleware(app)
setup_exception_handlers(app)

# Include routers
app.include_router(api_router, prefix="/api/v1")


@app.get("/")
async def root():
    return {
        "service": settings.app_name,
        "version": settings.version,
        "status": "running",
        "api": "/api/v1",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Liveness plus which upstreams are configured; does not call them"""
    return {
        "status": "healthy",
        "version": settings.version,
        "stats_mode": settings.stats_mode,
        "marketplace_configured": bool(settings.marketplace_client_id and settings.marketplace_client_secret),
        "marketcheck_configured": bool(settings.marketcheck_api_key),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "dealer_monitor.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
