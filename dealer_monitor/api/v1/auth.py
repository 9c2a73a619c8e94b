import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Form, HTTPException, Response, status

from dealer_monitor.config.settings import settings
from dealer_monitor.core.auth.dependencies import require_session
from dealer_monitor.core.auth.schemas import SessionResponse, SignInRequest
from dealer_monitor.core.auth.service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter()


def _start_session(response: Response, password: str) -> SessionResponse:
    if not AuthService.validate_password(password):
        logger.warning("Rejected dashboard sign-in attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid password",
        )

    token = AuthService.create_session_token()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_max_age,
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
        path="/",
    )
    payload = AuthService.verify_session_token(token)
    return SessionResponse(
        authenticated=True,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


@router.post("/sign-in", response_model=SessionResponse)
async def sign_in(response: Response, password: str = Form(...)):
    """
    Sign in with the shared dashboard password (form post)

    Sets the httpOnly session cookie for 24 hours.
    """
    return _start_session(response, password)


@router.post("/sign-in-json", response_model=SessionResponse)
async def sign_in_json(body: SignInRequest, response: Response):
    """Same as /sign-in but accepts JSON"""
    return _start_session(response, body.password)


@router.post("/sign-out", response_model=SessionResponse)
async def sign_out(response: Response):
    response.delete_cookie(settings.session_cookie_name, path="/")
    return SessionResponse(authenticated=False)


@router.get("/session", response_model=SessionResponse)
async def get_session(session: dict = Depends(require_session)):
    return SessionResponse(
        authenticated=True,
        expires_at=datetime.fromtimestamp(session["exp"], tz=timezone.utc),
    )
