from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import time
import logging

from dealer_monitor.config.settings import settings

logger = logging.getLogger(__name__)


def setup_middleware(app: FastAPI):
    """Configure all middleware for the application"""

    # CORS; credentials are needed for the session cookie
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        log = logger.warning if response.status_code >= 500 else logger.info
        log("%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
        response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.1f}"
        return response
