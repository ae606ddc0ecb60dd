"""
Product Listing Router
Products for a category, optionally including every subcategory beneath it
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, STOCK_FILTERS, VISIBILITY_FILTERS
from ..models import ProductListResponse, ProductQuery
from ..services import CatalogService
from .categories import to_http_error
from .dependencies import get_catalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/catalog/products", tags=["Products"])


@router.get("", response_model=ProductListResponse)
async def list_products(
    category_id: Optional[str] = Query(default=None, alias="categoryId"),
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    stock: Optional[str] = None,
    visibility: Optional[str] = None,
    include_subcategories: Optional[bool] = Query(default=None, alias="includeSubcategories"),
    catalog: CatalogService = Depends(get_catalog),
):
    """
    Paginated product listing, newest first

    With categoryId set, includeSubcategories=true|false decides whether
    products from nested subcategories are included; when omitted, the
    category's own includeSubcategoryProducts setting decides.
    """
    if stock and stock not in STOCK_FILTERS:
        raise HTTPException(status_code=400, detail=f"Invalid stock filter. Must be one of: {', '.join(sorted(STOCK_FILTERS))}")
    if visibility and visibility not in VISIBILITY_FILTERS:
        raise HTTPException(status_code=400, detail=f"Invalid visibility filter. Must be one of: {', '.join(sorted(VISIBILITY_FILTERS))}")

    query = ProductQuery(
        category_id=category_id,
        search=search,
        page=page,
        limit=limit,
        stock=stock,
        visibility=visibility,
        include_subcategories=include_subcategories,
    )
    logger.info(f"Listing products: {query.cache_key()}")

    try:
        return await catalog.list_products(query)
    except Exception as e:
        raise to_http_error(e) from e
