"""
Category Storage
Async storage collaborators for category records: an in-memory store and a
remote REST source reached over httpx.
"""
import logging
from typing import Dict, Iterable, List, Optional

import httpx

from ..models import CategoryRecord

logger = logging.getLogger(__name__)


class CategoryStore:
    """Interface the catalog service reads and writes categories through"""

    async def list_categories(self) -> List[CategoryRecord]:
        raise NotImplementedError

    async def get_category(self, category_id: str) -> Optional[CategoryRecord]:
        raise NotImplementedError

    async def save_category(self, record: CategoryRecord) -> CategoryRecord:
        raise NotImplementedError

    async def delete_category(self, category_id: str) -> None:
        raise NotImplementedError

    async def find_children(self, category_id: str) -> List[CategoryRecord]:
        categories = await self.list_categories()
        return [c for c in categories if c.parent_id == category_id]

    async def aclose(self) -> None:
        pass


class InMemoryCategoryStore(CategoryStore):
    def __init__(self, categories: Optional[Iterable[CategoryRecord]] = None):
        self._records: Dict[str, CategoryRecord] = {}
        for record in categories or []:
            self._records[record.id] = record

    async def list_categories(self) -> List[CategoryRecord]:
        return [record.model_copy(deep=True) for record in self._records.values()]

    async def get_category(self, category_id: str) -> Optional[CategoryRecord]:
        record = self._records.get(category_id)
        return record.model_copy(deep=True) if record else None

    async def save_category(self, record: CategoryRecord) -> CategoryRecord:
        self._records[record.id] = record.model_copy(deep=True)
        return record

    async def delete_category(self, category_id: str) -> None:
        self._records.pop(category_id, None)


class HttpCategoryStore(CategoryStore):
    """
    Categories held by a remote REST service
    Endpoints: GET/POST {base}/categories, GET/PATCH/DELETE {base}/categories/{id}
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"x-api-key": api_key} if api_key else {}
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def list_categories(self) -> List[CategoryRecord]:
        response = await self._client.get("/categories")
        response.raise_for_status()
        data = response.json()

        if not isinstance(data, list):
            raise ValueError("Category source returned a non-list payload")

        logger.info(f"Fetched {len(data)} categories from {self._client.base_url}")
        return [CategoryRecord.model_validate(item) for item in data]

    async def get_category(self, category_id: str) -> Optional[CategoryRecord]:
        response = await self._client.get(f"/categories/{category_id}")
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return CategoryRecord.model_validate(response.json())

    async def save_category(self, record: CategoryRecord) -> CategoryRecord:
        payload = record.model_dump(mode="json", by_alias=True)
        existing = await self.get_category(record.id)
        if existing is None:
            response = await self._client.post("/categories", json=payload)
        else:
            response = await self._client.patch(f"/categories/{record.id}", json=payload)
        response.raise_for_status()
        return CategoryRecord.model_validate(response.json())

    async def delete_category(self, category_id: str) -> None:
        response = await self._client.delete(f"/categories/{category_id}")
        if response.status_code != 404:
            response.raise_for_status()

    async def aclose(self) -> None:
        await self._client.aclose()
