"""
API configuration and settings management.
"""
import os
from typing import Optional


class Config:
    """Application configuration."""

    # Snapshot sources
    DATA_DIR: str = os.getenv("FACETS_DATA_DIR", "./data")
    CATEGORIES_FILE: str = os.getenv("FACETS_CATEGORIES", "categories.json")
    LOCATIONS_FILE: str = os.getenv("FACETS_LOCATIONS", "locations.json")
    LISTINGS_FILE: str = os.getenv("FACETS_LISTINGS", "listings.json")
    # When set, listings and location rows are read from SQLite instead of JSON
    DB_PATH: Optional[str] = os.getenv("FACETS_DB") or None

    # API settings
    API_TITLE: str = "Marketplace Facets API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Category/location facets, counts and listing search for the dashboard"

    # CORS settings
    CORS_ORIGINS: list = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["*"]
    CORS_ALLOW_HEADERS: list = ["*"]

    # Pagination defaults
    DEFAULT_PAGE_SIZE: int = 40
    MAX_PAGE_SIZE: int = 500
    MAX_EXPORT_ROWS: int = 10000

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE_PATH", "api.log") or None

    @classmethod
    def data_path(cls, name: str) -> str:
        return os.path.join(cls.DATA_DIR, name)

    @classmethod
    def validate(cls) -> None:
        """Validate configuration on startup."""
        if cls.DB_PATH and not os.path.exists(cls.DB_PATH):
            raise FileNotFoundError(f"Database file not found: {cls.DB_PATH}")
        if not os.path.isdir(cls.DATA_DIR):
            raise FileNotFoundError(f"Data directory not found: {cls.DATA_DIR}")


# Global config instance
config = Config()
