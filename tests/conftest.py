from datetime import datetime, timedelta, timezone

import pytest

from catalog_service.models import CategoryRecord, Product
from catalog_service.services import (
    CatalogService,
    InMemoryCategoryStore,
    InMemoryProductStore,
    TTLRequestCache,
)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def category(id, parent_id=None, name=None, level=1, order=0, **extra):
    return CategoryRecord(
        id=id,
        name=name or id.title(),
        slug=(name or id).lower().replace(" ", "-"),
        parent_id=parent_id,
        level=level,
        order=order,
        **extra,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def records():
    # engine -> filters -> oil-filters, engine -> spark-plugs, brakes (root)
    return [
        category("engine", name="Engine", level=1, order=0),
        category("brakes", name="Brakes", level=1, order=1),
        category("filters", "engine", name="Filters", level=2, order=0),
        category("spark-plugs", "engine", name="Spark Plugs", level=2, order=1),
        category("oil-filters", "filters", name="Oil Filters", level=3, order=0),
    ]


@pytest.fixture
def products():
    base = datetime(2024, 5, 1, tzinfo=timezone.utc)
    return [
        Product(id="p1", name="Engine Mount", sku="EM-1", category_id="engine", stock=4, created_at=base),
        Product(id="p2", name="Air Filter", sku="AF-2", category_id="filters", stock=0, created_at=base + timedelta(days=1)),
        Product(id="p3", name="Oil Filter Mann W712", sku="OF-3", category_id="oil-filters", stock=12, created_at=base + timedelta(days=2)),
        Product(id="p4", name="Brake Pads", sku="BP-4", category_id="brakes", stock=7, created_at=base + timedelta(days=3)),
        Product(id="p5", name="Hidden Spark Plug", sku="SP-5", category_id="spark-plugs", stock=3, is_visible=False, created_at=base + timedelta(days=4)),
    ]


@pytest.fixture
def catalog(records, products, clock):
    return CatalogService(
        categories=InMemoryCategoryStore(records),
        products=InMemoryProductStore(products),
        cache=TTLRequestCache(clock=clock),
        tree_ttl=60,
        products_ttl=60,
    )
