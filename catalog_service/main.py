# catalog_service/main.py - CATALOG ADMIN API
# Handles: category tree, category admin, subcategory-aware product listing

import json
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import settings
from .models import CategoryRecord, HealthResponse, Product
from .routers import categories_router, products_router
from .services import (
    CatalogService,
    CategoryStore,
    HttpCategoryStore,
    InMemoryCategoryStore,
    InMemoryProductStore,
    TTLRequestCache,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def load_seed(path: str) -> tuple:
    """Read {"categories": [...], "products": [...]} seed data"""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    categories = [CategoryRecord.model_validate(item) for item in data.get("categories", [])]
    products = [Product.model_validate(item) for item in data.get("products", [])]
    logger.info(f"Loaded seed data: {len(categories)} categories, {len(products)} products")
    return categories, products


def build_catalog() -> CatalogService:
    """Wire stores and the shared request cache from configuration"""
    categories, products = [], []
    if settings.CATALOG_SEED_PATH:
        categories, products = load_seed(settings.CATALOG_SEED_PATH)

    if settings.CATEGORY_SOURCE_URL:
        logger.info(f"Using remote category source: {settings.CATEGORY_SOURCE_URL}")
        category_store: CategoryStore = HttpCategoryStore(
            settings.CATEGORY_SOURCE_URL,
            api_key=settings.CATEGORY_SOURCE_API_KEY,
            timeout=settings.CATEGORY_SOURCE_TIMEOUT,
        )
    else:
        category_store = InMemoryCategoryStore(categories)

    return CatalogService(
        categories=category_store,
        products=InMemoryProductStore(products),
        cache=TTLRequestCache(default_ttl=settings.CATEGORY_CACHE_TTL),
        tree_ttl=settings.CATEGORY_CACHE_TTL,
        products_ttl=settings.PRODUCT_CACHE_TTL,
    )


def create_app(catalog: Optional[CatalogService] = None) -> FastAPI:
    catalog = catalog or build_catalog()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await catalog.categories.aclose()

    app = FastAPI(
        title="Auto-parts Catalog Service",
        description="Category tree, category administration and product listing",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.catalog = catalog

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(categories_router)
    app.include_router(products_router)

    # ============================================================
    # HEALTH CHECK
    # ============================================================

    @app.get("/healthz", response_model=HealthResponse)
    async def healthz():
        """Health check endpoint"""
        return HealthResponse(
            status="ok",
            version=__version__,
            category_source=type(catalog.categories).__name__,
        )

    # ============================================================
    # ERROR HANDLERS
    # ============================================================

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request, exc: StarletteHTTPException):
        """Handle HTTP exceptions"""
        logger.error(f"HTTP {exc.status_code}: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": exc.detail,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc: Exception):
        """Handle general exceptions"""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal server error",
            }
        )

    logger.info(f"✅ Catalog service ready ({type(catalog.categories).__name__})")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", settings.PORT))
    uvicorn.run(app, host="0.0.0.0", port=port)
