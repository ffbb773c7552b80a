"""
Application settings.

Values are read from environment variables once, when this module is first
imported. Tests must set the variables before importing ``companies_api.main``.
"""
import os
from dataclasses import dataclass, field
from typing import List


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    """Settings loaded from environment variables with sensible defaults."""

    project_name: str = os.getenv("PROJECT_NAME", "Companies API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    mongo_url: str = os.getenv("MONGO_URL", "mongodb://localhost:27017")
    db_name: str = os.getenv("DB_NAME", "companies_db")
    companies_collection: str = os.getenv("COMPANIES_COLLECTION", "companies")
    mongo_timeout_ms: int = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))

    # "substring" ORs case-insensitive regexes over name/industry/location,
    # "text" delegates to the collection's text index.
    search_mode: str = os.getenv("SEARCH_MODE", "substring").lower()

    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    port: int = int(os.getenv("PORT", "5000"))
    cors_allow_origins: List[str] = field(
        default_factory=lambda: _split_csv(os.getenv("CORS_ALLOW_ORIGINS", "*"))
    )


settings = Settings()
