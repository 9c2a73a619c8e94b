import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from dealer_monitor.config.settings import settings

SESSION_SUBJECT = "operator"


class AuthService:
    """Shared-password operator sessions"""

    @staticmethod
    def validate_password(password: str) -> bool:
        """Check a password against the configured list"""
        if not password:
            return False
        candidate = password.encode("utf-8")
        # no early exit: every entry is compared
        matches = [secrets.compare_digest(candidate, p.encode("utf-8")) for p in settings.passwords]
        return any(matches)

    @staticmethod
    def create_session_token(expires_delta: Optional[timedelta] = None) -> str:
        """Create a signed session token"""
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(seconds=settings.session_max_age))
        to_encode = {"sub": SESSION_SUBJECT, "exp": expire}
        return jwt.encode(to_encode, settings.secret_key, algorithm=settings.session_algorithm)

    @staticmethod
    def verify_session_token(token: str) -> Optional[dict]:
        """Verify and decode a session token"""
        try:
            payload = jwt.decode(token, settings.secret_key, algorithms=[settings.session_algorithm])
        except JWTError:
            return None
        if payload.get("sub") != SESSION_SUBJECT:
            return None
        return payload
