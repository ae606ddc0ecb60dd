"""
Configuration management for the catalog service.
Centralizes environment variables, cache lifetimes and listing limits.
"""
import os
from typing import Optional

# Cache lifetimes (seconds)
DEFAULT_CACHE_TTL = 120.0

# Product listing
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
STOCK_FILTERS = {"instock", "outofstock"}
VISIBILITY_FILTERS = {"visible", "hidden"}

# Cache key namespaces
CATEGORY_CACHE_PREFIX = "categories:"
PRODUCT_CACHE_PREFIX = "products:"


def _optional(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


class Config:
    """Application configuration"""

    # Server
    PORT: int = int(os.getenv("PORT", "8080"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    API_KEY: str = os.getenv("CATALOG_API_KEY", "")

    # Category storage
    CATEGORY_SOURCE_URL: Optional[str] = _optional("CATEGORY_SOURCE_URL")
    CATEGORY_SOURCE_API_KEY: str = os.getenv("CATEGORY_SOURCE_API_KEY", "")
    CATEGORY_SOURCE_TIMEOUT: float = float(os.getenv("CATEGORY_SOURCE_TIMEOUT", "20"))
    CATALOG_SEED_PATH: Optional[str] = _optional("CATALOG_SEED_PATH")

    # Request cache
    CATEGORY_CACHE_TTL: float = float(os.getenv("CATEGORY_CACHE_TTL", str(DEFAULT_CACHE_TTL)))
    PRODUCT_CACHE_TTL: float = float(os.getenv("PRODUCT_CACHE_TTL", "30"))


config = Config()

# Backwards compatible alias for settings
settings = config
