"""
Product Storage
In-memory product listing with category, search, stock and visibility filters
"""
import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..models import Product

logger = logging.getLogger(__name__)


class InMemoryProductStore:
    def __init__(self, products: Optional[Iterable[Product]] = None):
        self._products: Dict[str, Product] = {}
        for product in products or []:
            self._products[product.id] = product

    async def add_product(self, product: Product) -> Product:
        self._products[product.id] = product
        return product

    async def count_by_category(self, category_id: str) -> int:
        return sum(1 for p in self._products.values() if p.category_id == category_id)

    async def query(
        self,
        category_ids: Optional[Set[str]] = None,
        search: Optional[str] = None,
        stock: Optional[str] = None,
        visibility: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Product], int]:
        """
        Filter, order newest first and paginate
        Args:
            category_ids: Allowed category ids, None for no category filter
            search: Case-insensitive match on name, sku or description
            stock: "instock" (stock > 0) or "outofstock" (stock == 0)
            visibility: "visible" or "hidden"
            page: 1-based page number
            limit: Page size
        Returns:
            (page items, total matching count)
        """
        matches = list(self._products.values())

        if category_ids is not None:
            matches = [p for p in matches if p.category_id in category_ids]

        if search:
            needle = search.lower()
            matches = [
                p for p in matches
                if needle in p.name.lower()
                or needle in p.sku.lower()
                or needle in (p.description or "").lower()
            ]

        if stock == "instock":
            matches = [p for p in matches if p.stock > 0]
        elif stock == "outofstock":
            matches = [p for p in matches if p.stock == 0]

        if visibility == "visible":
            matches = [p for p in matches if p.is_visible]
        elif visibility == "hidden":
            matches = [p for p in matches if not p.is_visible]

        matches.sort(key=lambda p: p.created_at, reverse=True)

        start = (page - 1) * limit
        return matches[start:start + limit], len(matches)
