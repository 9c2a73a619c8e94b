import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from dealer_monitor.shared.schemas.common import ErrorResponse
from dealer_monitor.shared.services.marketcheck_client import MarketCheckAPIError
from dealer_monitor.shared.services.marketplace_client import (
    MarketplaceAPIError,
    MarketplaceAuthError,
    MarketplaceConfigError,
)

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str, error_code: str, details: dict) -> JSONResponse:
    body = ErrorResponse(message=message, error_code=error_code, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def marketplace_status(exc: MarketplaceAPIError) -> int:
    if isinstance(exc, MarketplaceConfigError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(exc, MarketplaceAuthError):
        return status.HTTP_401_UNAUTHORIZED
    return status.HTTP_502_BAD_GATEWAY


def setup_exception_handlers(app: FastAPI):
    """Map upstream client errors to HTTP responses"""

    @app.exception_handler(MarketplaceAPIError)
    async def marketplace_error_handler(request: Request, exc: MarketplaceAPIError):
        status_code = marketplace_status(exc)
        logger.error(f"Marketplace error on {request.url.path}: [{exc.code}] {exc}")
        message = "Authentication failed" if status_code == 401 else "Marketplace request failed"
        return _error_response(
            status_code,
            message,
            exc.code,
            {"reason": str(exc), "upstream_status": exc.status, **exc.details},
        )

    @app.exception_handler(MarketCheckAPIError)
    async def marketcheck_error_handler(request: Request, exc: MarketCheckAPIError):
        logger.error(f"MarketCheck error on {request.url.path}: [{exc.code}] {exc}")
        status_code = (
            status.HTTP_503_SERVICE_UNAVAILABLE
            if exc.code == "MISSING_API_KEY"
            else status.HTTP_502_BAD_GATEWAY
        )
        return _error_response(status_code, str(exc), exc.code, {"upstream_status": exc.status, **exc.details})
