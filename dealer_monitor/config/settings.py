# dealer_monitor/config/settings.py
from pydantic import validator
from pydantic_settings import BaseSettings
from typing import List, Literal, Optional


class Settings(BaseSettings):
    # App Info
    app_name: str = "Dealer Inventory Monitor"
    version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: List[str] = ["http://localhost:3000"]

    # Marketplace API
    marketplace_api_url: str = "http://localhost:3001"
    marketplace_client_id: str = ""
    marketplace_client_secret: str = ""
    marketplace_timeout: float = 30.0

    # Dealer stats
    stats_mode: Literal["per_dealer", "aggregate"] = "per_dealer"
    stats_concurrency: int = 10
    stats_cache_ttl: int = 300

    # MarketCheck
    marketcheck_api_url: str = "https://mc-api.marketcheck.com/v2"
    marketcheck_api_key: Optional[str] = None

    # Operator session
    auth_password: str = ""
    secret_key: str = "change-in-production"
    session_algorithm: str = "HS256"
    session_cookie_name: str = "auth_session"
    session_max_age: int = 60 * 60 * 24

    @validator("auth_password")
    def validate_auth_password(cls, v):
        if v and not all(p.strip() for p in v.split(",")):
            raise ValueError("Each password must be at least 1 character long")
        return v

    @validator("marketplace_api_url", "marketcheck_api_url")
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    @property
    def passwords(self) -> List[str]:
        """Accepted operator passwords"""
        return [p.strip() for p in self.auth_password.split(",") if p.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
