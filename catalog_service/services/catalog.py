"""
Catalog Service
Category administration and subcategory-aware product listing on top of the
category/product stores and the shared request cache.
"""
import logging
import math
import uuid
from typing import List, Optional, Set

from ..config import CATEGORY_CACHE_PREFIX, DEFAULT_CACHE_TTL, PRODUCT_CACHE_PREFIX
from ..models import (
    CategoryCreateRequest,
    CategoryDetail,
    CategoryNode,
    CategoryRecord,
    CategoryUpdateRequest,
    ProductListResponse,
    ProductQuery,
)
from ..utils.slugs import slugify, unique_slug
from .category_store import CategoryStore
from .category_tree import (
    build_tree,
    children_index,
    collect_descendant_ids,
    count_nodes,
    is_descendant_of,
    prune_hidden,
    sort_categories,
)
from .product_store import InMemoryProductStore
from .request_cache import TTLRequestCache

logger = logging.getLogger(__name__)


class CategoryNotFoundError(LookupError):
    def __init__(self, category_id: str, role: str = "Category"):
        super().__init__(f"{role} not found: {category_id}")
        self.category_id = category_id


class CategoryConflictError(ValueError):
    """Name/slug collisions and deletes blocked by dependants"""


class InvalidCategoryMoveError(ValueError):
    """Re-parenting that would make a category its own ancestor"""


class CatalogService:
    def __init__(
        self,
        categories: CategoryStore,
        products: InMemoryProductStore,
        cache: TTLRequestCache,
        tree_ttl: float = DEFAULT_CACHE_TTL,
        products_ttl: float = DEFAULT_CACHE_TTL,
    ):
        self.categories = categories
        self.products = products
        self.cache = cache
        self.tree_ttl = tree_ttl
        self.products_ttl = products_ttl

    # ============================================================
    # READS
    # ============================================================

    async def list_categories(self, include_hidden: bool = False) -> List[CategoryRecord]:
        records = await self.categories.list_categories()
        if not include_hidden:
            records = [r for r in records if r.is_visible]
        return sort_categories(records)

    async def get_category_tree(self, include_hidden: bool = False) -> List[CategoryNode]:
        key = f"{CATEGORY_CACHE_PREFIX}tree:includeHidden={str(include_hidden).lower()}"

        async def produce() -> List[CategoryNode]:
            records = sort_categories(await self.categories.list_categories())
            tree = build_tree(records)
            if not include_hidden:
                tree = prune_hidden(tree)
            logger.info(f"Built category tree: {len(tree)} roots, {count_nodes(tree)} nodes")
            return tree

        return await self.cache.fetch_with_cache(key, produce, ttl=self.tree_ttl)

    async def get_category(self, category_id: str) -> CategoryDetail:
        record = await self._require(category_id)
        subcategories = sort_categories(await self.categories.find_children(category_id))
        product_count = await self.products.count_by_category(category_id)
        return CategoryDetail(
            **record.model_dump(),
            subcategories=subcategories,
            product_count=product_count,
        )

    async def get_descendant_ids(self, category_id: str) -> Set[str]:
        await self._require(category_id)
        records = await self.categories.list_categories()
        return collect_descendant_ids(records, category_id)

    async def resolve_category_filter(self, category_id: str, include_subcategories: Optional[bool] = None) -> Set[str]:
        """
        Category ids a product listing for category_id should cover
        Args:
            category_id: Target category
            include_subcategories: Explicit request flag; None defers to the
                category's own include_subcategory_products setting
        Returns:
            {category_id} plus all descendants when inclusion is enabled
        """
        if include_subcategories is None:
            category = await self.categories.get_category(category_id)
            include_subcategories = bool(category and category.include_subcategory_products)

        if not include_subcategories:
            return {category_id}

        records = await self.categories.list_categories()
        return {category_id} | collect_descendant_ids(records, category_id)

    async def list_products(self, query: ProductQuery) -> ProductListResponse:
        async def produce() -> ProductListResponse:
            category_ids = None
            if query.category_id:
                category_ids = await self.resolve_category_filter(query.category_id, query.include_subcategories)

            items, total = await self.products.query(
                category_ids=category_ids,
                search=query.search,
                stock=query.stock,
                visibility=query.visibility,
                page=query.page,
                limit=query.limit,
            )
            return ProductListResponse(
                products=items,
                total=total,
                page=query.page,
                limit=query.limit,
                pages=math.ceil(total / query.limit) if total else 0,
            )

        return await self.cache.fetch_with_cache(query.cache_key(), produce, ttl=self.products_ttl)

    # ============================================================
    # WRITES
    # ============================================================

    async def create_category(self, data: CategoryCreateRequest) -> CategoryRecord:
        records = await self.categories.list_categories()

        level = 1
        if data.parent_id is not None:
            parent = next((r for r in records if r.id == data.parent_id), None)
            if parent is None:
                raise CategoryNotFoundError(data.parent_id, role="Parent category")
            level = parent.level + 1

        siblings = [r for r in records if r.parent_id == data.parent_id]
        if any(r.name == data.name for r in siblings):
            raise CategoryConflictError(f"Category '{data.name}' already exists under this parent")

        slug = unique_slug(slugify(data.name) or "category", {r.slug for r in records})
        order = max((r.order for r in siblings), default=-1) + 1

        record = CategoryRecord(
            id=uuid.uuid4().hex,
            slug=slug,
            level=level,
            order=order,
            **data.model_dump(),
        )
        await self.categories.save_category(record)
        self._invalidate()

        logger.info(f"Created category {record.name} ({record.id}) at level {level}")
        return record

    async def update_category(self, category_id: str, data: CategoryUpdateRequest) -> CategoryRecord:
        records = await self.categories.list_categories()
        current = next((r for r in records if r.id == category_id), None)
        if current is None:
            raise CategoryNotFoundError(category_id)

        changes = {field: getattr(data, field) for field in data.model_fields_set}
        moved = "parent_id" in changes and changes["parent_id"] != current.parent_id

        if moved and changes["parent_id"] is not None:
            parent_id = changes["parent_id"]
            if parent_id == category_id:
                raise InvalidCategoryMoveError("A category cannot be its own parent")

            parent = next((r for r in records if r.id == parent_id), None)
            if parent is None:
                raise CategoryNotFoundError(parent_id, role="Parent category")

            if is_descendant_of(records, category_id, parent_id):
                raise InvalidCategoryMoveError("Cannot move a category under its own descendant")

        if "name" in changes:
            slug = slugify(changes["name"]) or "category"
            if any(r.slug == slug and r.id != category_id for r in records):
                raise CategoryConflictError(f"A category named '{changes['name']}' already exists")
            changes["slug"] = slug

        updated = CategoryRecord.model_validate({**current.model_dump(), **changes})

        if moved:
            parent = next((r for r in records if r.id == updated.parent_id), None)
            updated.level = parent.level + 1 if parent else 1
            await self._relevel_subtree(records, updated)

        await self.categories.save_category(updated)
        self._invalidate()

        logger.info(f"Updated category {updated.id}: {sorted(changes)}")
        return updated

    async def _relevel_subtree(self, records: List[CategoryRecord], moved: CategoryRecord) -> None:
        by_id = {r.id: r for r in records}
        index = children_index(records)
        levels = {moved.id: moved.level}
        stack = [moved.id]

        while stack:
            parent_id = stack.pop()
            for child_id in index.get(parent_id, []):
                if child_id in levels:
                    continue
                levels[child_id] = levels[parent_id] + 1
                child = by_id[child_id]
                if child.level != levels[child_id]:
                    await self.categories.save_category(child.model_copy(update={"level": levels[child_id]}))
                stack.append(child_id)

    async def delete_category(self, category_id: str) -> None:
        await self._require(category_id)

        if await self.categories.find_children(category_id):
            raise CategoryConflictError("Cannot delete a category that has subcategories")
        if await self.products.count_by_category(category_id):
            raise CategoryConflictError("Cannot delete a category that has products")

        await self.categories.delete_category(category_id)
        self._invalidate()
        logger.info(f"Deleted category {category_id}")

    async def toggle_include_subcategories(self, category_id: str) -> CategoryRecord:
        record = await self._require(category_id)
        updated = record.model_copy(update={"include_subcategory_products": not record.include_subcategory_products})
        await self.categories.save_category(updated)
        self._invalidate()

        state = "enabled" if updated.include_subcategory_products else "disabled"
        logger.info(f"Subcategory products {state} for category {updated.name}")
        return updated

    # ============================================================
    # HELPERS
    # ============================================================

    async def _require(self, category_id: str) -> CategoryRecord:
        record = await self.categories.get_category(category_id)
        if record is None:
            raise CategoryNotFoundError(category_id)
        return record

    def _invalidate(self) -> None:
        self.cache.clear_prefix(CATEGORY_CACHE_PREFIX)
        self.cache.clear_prefix(PRODUCT_CACHE_PREFIX)
