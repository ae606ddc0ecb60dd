import asyncio

import pytest
from pydantic import ValidationError

from catalog_service.models import (
    CategoryCreateRequest,
    CategoryUpdateRequest,
    ProductQuery,
)
from catalog_service.services import (
    CategoryConflictError,
    CategoryNotFoundError,
    InvalidCategoryMoveError,
)


def run(coro):
    return asyncio.run(coro)


def test_list_categories_hides_invisible(catalog):
    run(catalog.update_category("brakes", CategoryUpdateRequest(is_visible=False)))

    visible = run(catalog.list_categories())
    everything = run(catalog.list_categories(include_hidden=True))

    assert "brakes" not in [c.id for c in visible]
    assert [c.id for c in everything] == ["engine", "brakes", "filters", "spark-plugs", "oil-filters"]


def test_category_tree_is_cached(catalog):
    first = run(catalog.get_category_tree())
    second = run(catalog.get_category_tree())

    assert [r.id for r in first] == ["engine", "brakes"]
    assert second is first


def test_category_tree_invalidated_by_writes(catalog):
    first = run(catalog.get_category_tree())
    run(catalog.toggle_include_subcategories("engine"))
    second = run(catalog.get_category_tree())

    assert second is not first
    assert second[0].include_subcategory_products is True


def test_category_tree_prunes_hidden_subtree(catalog):
    run(catalog.update_category("filters", CategoryUpdateRequest(is_visible=False)))

    tree = run(catalog.get_category_tree())
    full = run(catalog.get_category_tree(include_hidden=True))

    assert [c.id for c in tree[0].children] == ["spark-plugs"]
    assert [c.id for c in full[0].children] == ["filters", "spark-plugs"]


def test_get_category_detail(catalog):
    detail = run(catalog.get_category("engine"))

    assert [c.id for c in detail.subcategories] == ["filters", "spark-plugs"]
    assert detail.product_count == 1


def test_get_category_missing(catalog):
    with pytest.raises(CategoryNotFoundError):
        run(catalog.get_category("missing"))


def test_get_descendant_ids(catalog):
    assert run(catalog.get_descendant_ids("engine")) == {"filters", "spark-plugs", "oil-filters"}
    assert run(catalog.get_descendant_ids("brakes")) == set()


def test_resolve_category_filter_explicit_flag(catalog):
    assert run(catalog.resolve_category_filter("engine", True)) == {"engine", "filters", "spark-plugs", "oil-filters"}
    assert run(catalog.resolve_category_filter("engine", False)) == {"engine"}


def test_resolve_category_filter_uses_category_setting(catalog):
    assert run(catalog.resolve_category_filter("filters")) == {"filters"}

    run(catalog.toggle_include_subcategories("filters"))

    assert run(catalog.resolve_category_filter("filters")) == {"filters", "oil-filters"}


def test_resolve_category_filter_unknown_category(catalog):
    assert run(catalog.resolve_category_filter("missing")) == {"missing"}


def test_list_products_direct_category_only(catalog):
    result = run(catalog.list_products(ProductQuery(category_id="engine")))

    assert [p.id for p in result.products] == ["p1"]
    assert result.total == 1


def test_list_products_includes_nested_subcategories(catalog):
    result = run(catalog.list_products(ProductQuery(category_id="engine", include_subcategories=True)))

    assert [p.id for p in result.products] == ["p5", "p3", "p2", "p1"]
    assert result.pages == 1


def test_list_products_filters_and_paginates(catalog):
    in_stock = run(catalog.list_products(ProductQuery(category_id="engine", include_subcategories=True, stock="instock")))
    hidden = run(catalog.list_products(ProductQuery(visibility="hidden")))
    search = run(catalog.list_products(ProductQuery(search="filter")))
    page_two = run(catalog.list_products(ProductQuery(limit=2, page=2)))

    assert [p.id for p in in_stock.products] == ["p5", "p3", "p1"]
    assert [p.id for p in hidden.products] == ["p5"]
    assert [p.id for p in search.products] == ["p3", "p2"]
    assert [p.id for p in page_two.products] == ["p3", "p2"]
    assert page_two.total == 5
    assert page_two.pages == 3


def test_product_query_cache_key():
    key = ProductQuery(category_id="cat1").cache_key()

    assert key.startswith("products:")
    assert "categoryId=cat1" in key
    assert key == ProductQuery(category_id="cat1").cache_key()
    assert key != ProductQuery(category_id="cat2").cache_key()


def test_create_root_category(catalog):
    record = run(catalog.create_category(CategoryCreateRequest(name="Suspension")))

    assert record.level == 1
    assert record.order == 2
    assert record.slug == "suspension"
    assert record.parent_id is None
    assert run(catalog.categories.get_category(record.id)) is not None


def test_create_child_category_sets_level_and_order(catalog):
    record = run(catalog.create_category(CategoryCreateRequest(name="Fuel Filters", parent_id="filters")))

    assert record.level == 3
    assert record.order == 1


def test_create_category_unique_slug(catalog):
    record = run(catalog.create_category(CategoryCreateRequest(name="Filters")))

    assert record.slug == "filters-1"


def test_create_category_duplicate_name_under_parent(catalog):
    with pytest.raises(CategoryConflictError):
        run(catalog.create_category(CategoryCreateRequest(name="Filters", parent_id="engine")))


def test_create_category_unknown_parent(catalog):
    with pytest.raises(CategoryNotFoundError):
        run(catalog.create_category(CategoryCreateRequest(name="Wipers", parent_id="missing")))


def test_move_category_under_itself_rejected(catalog):
    with pytest.raises(InvalidCategoryMoveError):
        run(catalog.update_category("engine", CategoryUpdateRequest(parent_id="engine")))


def test_move_category_under_descendant_rejected(catalog):
    with pytest.raises(InvalidCategoryMoveError):
        run(catalog.update_category("engine", CategoryUpdateRequest(parent_id="oil-filters")))


def test_move_category_to_unknown_parent(catalog):
    with pytest.raises(CategoryNotFoundError):
        run(catalog.update_category("filters", CategoryUpdateRequest(parent_id="missing")))


def test_move_category_relevels_subtree(catalog):
    moved = run(catalog.update_category("filters", CategoryUpdateRequest(parent_id="brakes")))
    oil = run(catalog.categories.get_category("oil-filters"))

    assert moved.parent_id == "brakes"
    assert moved.level == 2
    assert oil.level == 3
    assert run(catalog.get_descendant_ids("brakes")) == {"filters", "oil-filters"}


def test_move_category_to_root(catalog):
    moved = run(catalog.update_category("filters", CategoryUpdateRequest(parent_id=None)))
    oil = run(catalog.categories.get_category("oil-filters"))

    assert moved.parent_id is None
    assert moved.level == 1
    assert oil.level == 2


def test_update_leaves_unset_fields(catalog):
    updated = run(catalog.update_category("engine", CategoryUpdateRequest(description="Engine parts")))

    assert updated.description == "Engine parts"
    assert updated.name == "Engine"
    assert updated.parent_id is None


def test_update_request_rejects_null_for_required_fields():
    with pytest.raises(ValidationError):
        CategoryUpdateRequest.model_validate({"isVisible": None})
    with pytest.raises(ValidationError):
        CategoryUpdateRequest.model_validate({"content": None})

    cleared = CategoryUpdateRequest.model_validate({"description": None, "parentId": None})
    assert cleared.model_fields_set == {"description", "parent_id"}


def test_update_never_stores_invalid_record(catalog):
    # model_construct skips request validation; the merged record is still checked
    data = CategoryUpdateRequest.model_construct(include_subcategory_products=None)

    with pytest.raises(ValidationError):
        run(catalog.update_category("brakes", data))

    tree = run(catalog.get_category_tree(include_hidden=True))
    assert tree[1].include_subcategory_products is False


def test_rename_updates_slug_and_checks_collisions(catalog):
    renamed = run(catalog.update_category("brakes", CategoryUpdateRequest(name="Brake Systems")))
    assert renamed.slug == "brake-systems"

    with pytest.raises(CategoryConflictError):
        run(catalog.update_category("brakes", CategoryUpdateRequest(name="Engine")))


def test_delete_category_guards(catalog):
    with pytest.raises(CategoryConflictError):
        run(catalog.delete_category("engine"))  # has subcategories
    with pytest.raises(CategoryConflictError):
        run(catalog.delete_category("brakes"))  # has products
    with pytest.raises(CategoryNotFoundError):
        run(catalog.delete_category("missing"))


def test_delete_empty_category(catalog):
    record = run(catalog.create_category(CategoryCreateRequest(name="Wipers")))

    run(catalog.delete_category(record.id))

    assert run(catalog.categories.get_category(record.id)) is None


def test_toggle_include_subcategories_flips(catalog):
    assert run(catalog.toggle_include_subcategories("engine")).include_subcategory_products is True
    assert run(catalog.toggle_include_subcategories("engine")).include_subcategory_products is False


def test_toggle_invalidates_product_listing(catalog):
    before = run(catalog.list_products(ProductQuery(category_id="engine")))
    run(catalog.toggle_include_subcategories("engine"))
    after = run(catalog.list_products(ProductQuery(category_id="engine")))

    assert before.total == 1
    assert after.total == 4
