"""Configuration management using environment variables."""

import os
import re
from typing import List, Optional

from dotenv import load_dotenv

from promptbridge.core.errors import ConfigurationError

# Load environment variables from .env file
load_dotenv()

_HEX_KEY_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def _optional(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self) -> None:
        # Database configuration
        self.DATABASE_URL: str = os.environ["DATABASE_URL"]
        # Set to "require" (default) for cloud PostgreSQL; use "disable" for local dev without SSL
        self.DATABASE_SSL: str = os.getenv("DATABASE_SSL", "require").lower()

        # Application configuration
        self.DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.PORT: int = int(os.getenv("PORT", "8000"))

        # Bearer token verification
        self.JWT_SECRET: Optional[str] = _optional("JWT_SECRET")
        self.JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")

        # Notion OAuth configuration
        self.NOTION_CLIENT_ID: Optional[str] = _optional("NOTION_CLIENT_ID")
        self.NOTION_CLIENT_SECRET: Optional[str] = _optional("NOTION_CLIENT_SECRET")
        self.NOTION_REDIRECT_URI: Optional[str] = _optional("NOTION_REDIRECT_URI")

        # 32-byte hex key used to encrypt stored OAuth tokens
        self.ENCRYPTION_KEY: Optional[str] = _optional("ENCRYPTION_KEY")
        if self.ENCRYPTION_KEY is not None and not _HEX_KEY_RE.match(self.ENCRYPTION_KEY):
            raise ConfigurationError(
                "ENCRYPTION_KEY must be a 32-byte hex string (64 characters)"
            )

        # Frontend redirect target for the OAuth callback
        self.FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:5173").rstrip("/")
        self.FRONTEND_SETTINGS_PATH: str = os.getenv("FRONTEND_SETTINGS_PATH", "/settings")

    @property
    def frontend_redirect_base(self) -> str:
        return f"{self.FRONTEND_URL}{self.FRONTEND_SETTINGS_PATH}"

    def missing_notion_oauth_config(self) -> List[str]:
        """Return names of the Notion OAuth variables that are not set."""
        return [
            name
            for name in ("NOTION_CLIENT_ID", "NOTION_CLIENT_SECRET", "NOTION_REDIRECT_URI")
            if getattr(self, name) is None
        ]


# Global settings instance
settings = Settings()
