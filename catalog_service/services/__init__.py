"""
Catalog service modules
"""
from .catalog import (
    CatalogService,
    CategoryConflictError,
    CategoryNotFoundError,
    InvalidCategoryMoveError,
)
from .category_store import CategoryStore, HttpCategoryStore, InMemoryCategoryStore
from .category_tree import (
    CategoryCycleError,
    build_tree,
    collect_descendant_ids,
    is_descendant_of,
    sort_categories,
)
from .product_store import InMemoryProductStore
from .request_cache import TTLRequestCache

__all__ = [
    "CatalogService",
    "CategoryConflictError",
    "CategoryCycleError",
    "CategoryNotFoundError",
    "CategoryStore",
    "HttpCategoryStore",
    "InMemoryCategoryStore",
    "InMemoryProductStore",
    "InvalidCategoryMoveError",
    "TTLRequestCache",
    "build_tree",
    "collect_descendant_ids",
    "is_descendant_of",
    "sort_categories",
]
