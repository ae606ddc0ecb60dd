"""
Category Router
Category tree, descendants and category administration
"""
import logging
from typing import List

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Response

from ..models import (
    CategoryCreateRequest,
    CategoryDetail,
    CategoryNode,
    CategoryRecord,
    CategoryUpdateRequest,
    DescendantsResponse,
    ToggleSubcategoriesResponse,
)
from ..services import (
    CatalogService,
    CategoryConflictError,
    CategoryCycleError,
    CategoryNotFoundError,
    InvalidCategoryMoveError,
)
from .dependencies import check_key, get_catalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/catalog/categories", tags=["Categories"])


def to_http_error(e: Exception) -> HTTPException:
    """Map catalog errors onto HTTP status codes"""
    if isinstance(e, CategoryNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, CategoryConflictError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, (InvalidCategoryMoveError, CategoryCycleError)):
        logger.warning(f"Rejected category move: {e}")
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, httpx.HTTPError):
        logger.error(f"Category source error: {e}")
        return HTTPException(status_code=502, detail=f"Category source unavailable: {str(e)}")

    logger.error(f"Catalog error: {e}", exc_info=True)
    return HTTPException(status_code=500, detail=f"Catalog operation failed: {str(e)}")


@router.get("", response_model=List[CategoryRecord])
async def list_categories(
    include_hidden: bool = Query(default=False, alias="includeHidden"),
    catalog: CatalogService = Depends(get_catalog),
):
    """Flat category list ordered by level, order and name"""
    try:
        return await catalog.list_categories(include_hidden)
    except Exception as e:
        raise to_http_error(e) from e


@router.get("/tree", response_model=List[CategoryNode])
async def get_category_tree(
    include_hidden: bool = Query(default=False, alias="includeHidden"),
    catalog: CatalogService = Depends(get_catalog),
):
    """
    Nested category forest

    Hidden categories are left out together with their subcategories unless
    includeHidden=true. Categories whose parent is missing appear as roots.
    """
    try:
        return await catalog.get_category_tree(include_hidden)
    except Exception as e:
        raise to_http_error(e) from e


@router.get("/{category_id}", response_model=CategoryDetail)
async def get_category(category_id: str, catalog: CatalogService = Depends(get_catalog)):
    try:
        return await catalog.get_category(category_id)
    except Exception as e:
        raise to_http_error(e) from e


@router.get("/{category_id}/descendants", response_model=DescendantsResponse)
async def get_descendants(category_id: str, catalog: CatalogService = Depends(get_catalog)):
    """All transitive subcategory ids of a category"""
    try:
        descendant_ids = await catalog.get_descendant_ids(category_id)
        return DescendantsResponse(id=category_id, descendant_ids=sorted(descendant_ids))
    except Exception as e:
        raise to_http_error(e) from e


@router.post("", response_model=CategoryRecord, status_code=201, dependencies=[Depends(check_key)])
async def create_category(request: CategoryCreateRequest, catalog: CatalogService = Depends(get_catalog)):
    logger.info(f"Creating category: {request.name}")
    try:
        return await catalog.create_category(request)
    except Exception as e:
        raise to_http_error(e) from e


@router.patch("/{category_id}", response_model=CategoryRecord, dependencies=[Depends(check_key)])
async def update_category(
    category_id: str,
    request: CategoryUpdateRequest,
    catalog: CatalogService = Depends(get_catalog),
):
    """
    Partial update. Moving a category under itself or one of its own
    subcategories is rejected with 400.
    """
    try:
        return await catalog.update_category(category_id, request)
    except Exception as e:
        raise to_http_error(e) from e


@router.delete("/{category_id}", status_code=204, dependencies=[Depends(check_key)])
async def delete_category(category_id: str, catalog: CatalogService = Depends(get_catalog)):
    try:
        await catalog.delete_category(category_id)
    except Exception as e:
        raise to_http_error(e) from e
    return Response(status_code=204)


@router.post(
    "/{category_id}/toggle-include-subcategories",
    response_model=ToggleSubcategoriesResponse,
    dependencies=[Depends(check_key)],
)
async def toggle_include_subcategories(category_id: str, catalog: CatalogService = Depends(get_catalog)):
    """Flip whether listings for this category also show subcategory products"""
    try:
        category = await catalog.toggle_include_subcategories(category_id)
        return ToggleSubcategoriesResponse(success=True, category=category)
    except Exception as e:
        raise to_http_error(e) from e
