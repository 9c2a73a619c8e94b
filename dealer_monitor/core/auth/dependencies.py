from fastapi import HTTPException, Request, status

from dealer_monitor.config.settings import settings
from dealer_monitor.core.auth.service import AuthService


class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Not signed in"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        )


def get_session_token(request: Request) -> str:
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise AuthenticationError()
    return token


async def require_session(request: Request) -> dict:
    """Reject requests without a valid operator session cookie"""
    payload = AuthService.verify_session_token(get_session_token(request))
    if payload is None:
        raise AuthenticationError("Session invalid or expired")
    return payload
