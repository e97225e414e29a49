"""
Runtime configuration for the chat API.

Values come from the environment (optionally a local .env file) and are
validated into a Settings model once at startup.
"""

import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from errors import ConfigError

load_dotenv()

DEFAULT_JWT_SECRET = "dev-secret-change-me"


class Settings(BaseModel):
    database_url: str
    database_name: str
    port: int = 8000
    log_level: str = "INFO"
    log_file: Optional[str] = None


def jwt_secret() -> str:
    return os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)


def cors_origins() -> List[str]:
    origins = os.getenv("CORS_ORIGINS", "*")
    return [o.strip() for o in origins.split(",") if o.strip()]


def load_settings() -> Settings:
    """Read settings from the environment, failing fast on missing database config."""
    database_url = os.getenv("DATABASE_URL")
    database_name = os.getenv("DATABASE_NAME")

    if not database_url:
        raise ConfigError("DATABASE_URL is not defined in environment variables")
    if not database_name:
        raise ConfigError("DATABASE_NAME is not defined in environment variables")

    return Settings(
        database_url=database_url,
        database_name=database_name,
        port=int(os.getenv("PORT", 8000)),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE") or None,
    )
