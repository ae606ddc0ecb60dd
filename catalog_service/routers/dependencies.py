"""
Shared router dependencies
"""
from typing import Optional

from fastapi import Header, HTTPException, Request

from ..config import settings
from ..services import CatalogService


def get_catalog(request: Request) -> CatalogService:
    """Catalog service created at application start"""
    return request.app.state.catalog


def check_key(x_api_key: Optional[str] = Header(default=None, alias="x-api-key")) -> None:
    """Validate API key if configured"""
    if settings.API_KEY and x_api_key != settings.API_KEY:
        raise HTTPException(status_code=401, detail="Invalid API key")
