from .dependencies import AuthenticationError, require_session
from .service import AuthService

__all__ = ["AuthService", "AuthenticationError", "require_session"]
