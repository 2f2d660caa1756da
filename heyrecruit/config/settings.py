from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path

# Project root (config/settings.py -> heyrecruit/ -> root)
_root_dir = Path(__file__).parent.parent.parent
_env_local = _root_dir / '.env.local'
_env_file = _root_dir / '.env'


class Settings(BaseSettings):
    """SDK settings"""

    # Upstream API - empty values are rejected when a client is built from these
    HEYRECRUIT_URL: str = ""
    HEYRECRUIT_CLIENT_ID: str = ""
    HEYRECRUIT_CLIENT_SECRET: str = ""

    # heyrecruit | scope | jwt
    HEYRECRUIT_AUTH_FORMAT: str = "heyrecruit"

    # Token lifecycle
    TOKEN_EXPIRY_MARGIN_SECONDS: int = 60  # Treat tokens as expired this early
    MAX_AUTH_ATTEMPTS: int = 3  # Total attempts per request on expired-token 401s

    # HTTP
    REQUEST_TIMEOUT_SECONDS: float = 10.0
    DEFAULT_LANGUAGE: str = "de"

    # Comma-separated; empty = built-in markers
    EXPIRED_TOKEN_MARKERS: str = ""

    class Config:
        # Prioritize .env.local for local development, fallback to .env
        env_file = str(_env_local) if _env_local.exists() else str(_env_file)
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields from environment file

    def get_expired_token_markers(self) -> List[str]:
        """Parse and return expired-token markers as a list (empty = use defaults)"""
        return [m.strip() for m in self.EXPIRED_TOKEN_MARKERS.split(",") if m.strip()]

    def to_client_config(self) -> dict:
        """Config mapping accepted by HeyrecruitClient / TokenSession"""
        return {
            "api_base_url": self.HEYRECRUIT_URL,
            "client_id": self.HEYRECRUIT_CLIENT_ID,
            "client_secret": self.HEYRECRUIT_CLIENT_SECRET,
            "auth_format": self.HEYRECRUIT_AUTH_FORMAT,
            "expiry_margin_seconds": self.TOKEN_EXPIRY_MARGIN_SECONDS,
            "max_attempts": self.MAX_AUTH_ATTEMPTS,
            "timeout": self.REQUEST_TIMEOUT_SECONDS,
            "language": self.DEFAULT_LANGUAGE,
            "expired_token_markers": self.get_expired_token_markers(),
        }


settings = Settings()
