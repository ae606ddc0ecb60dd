from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CatalogModel(BaseModel):
    """Snake-case fields in Python, camelCase on the wire"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============ Content Blocks ============
class ContentBlockBase(CatalogModel):
    order: int = 0
    is_active: bool = True


class HeroContent(ContentBlockBase):
    type: Literal["hero"] = "hero"
    title: str
    subtitle: Optional[Union[str, List[str]]] = None
    button_text: Optional[str] = None
    button_url: Optional[str] = None
    image_url: Optional[str] = None


class TextContent(ContentBlockBase):
    type: Literal["text"] = "text"
    title: Optional[str] = None
    text: str


class GalleryImage(CatalogModel):
    url: str
    alt: Optional[str] = None


class GalleryContent(ContentBlockBase):
    type: Literal["gallery"] = "gallery"
    title: Optional[str] = None
    description: Optional[str] = None
    images: List[GalleryImage] = Field(default_factory=list)


class ImageContent(ContentBlockBase):
    type: Literal["image"] = "image"
    url: str
    alt: Optional[str] = None


ContentBlock = Annotated[
    Union[HeroContent, TextContent, GalleryContent, ImageContent],
    Field(discriminator="type"),
]


# ============ Category Models ============
class CategoryRecord(CatalogModel):
    id: str
    name: str
    slug: str = ""
    description: Optional[str] = None
    parent_id: Optional[str] = None
    level: int = 1
    order: int = 0
    is_visible: bool = True
    include_subcategory_products: bool = False
    image_url: Optional[str] = None
    content: List[ContentBlock] = Field(default_factory=list)


class CategoryNode(CategoryRecord):
    children: List["CategoryNode"] = Field(default_factory=list)


class CategoryDetail(CategoryRecord):
    subcategories: List[CategoryRecord] = Field(default_factory=list)
    product_count: int = 0


class CategoryCreateRequest(CatalogModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    parent_id: Optional[str] = None
    is_visible: bool = True
    include_subcategory_products: bool = False
    image_url: Optional[str] = None
    content: List[ContentBlock] = Field(default_factory=list)


class CategoryUpdateRequest(CatalogModel):
    """Partial update; only fields present in the payload are applied"""

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    parent_id: Optional[str] = None
    is_visible: Optional[bool] = None
    include_subcategory_products: Optional[bool] = None
    image_url: Optional[str] = None
    content: Optional[List[ContentBlock]] = None

    @field_validator("name", "is_visible", "include_subcategory_products", "content")
    @classmethod
    def reject_null(cls, value):
        # Omit the field to leave it unchanged; null is only valid for nullable record fields
        if value is None:
            raise ValueError("may not be null")
        return value


class DescendantsResponse(CatalogModel):
    id: str
    descendant_ids: List[str]


class ToggleSubcategoriesResponse(CatalogModel):
    success: bool = True
    category: CategoryRecord


# ============ Product Models ============
def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(CatalogModel):
    id: str
    name: str
    sku: str
    description: Optional[str] = None
    wholesale_price: float = 0.0
    retail_price: float = 0.0
    stock: int = 0
    category_id: Optional[str] = None
    is_visible: bool = True
    created_at: datetime = Field(default_factory=_utcnow)


class ProductQuery(CatalogModel):
    category_id: Optional[str] = None
    search: Optional[str] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1)
    stock: Optional[str] = None
    visibility: Optional[str] = None
    include_subcategories: Optional[bool] = None

    def cache_key(self) -> str:
        """Stable serialization of the query, e.g. products:categoryId=cat1&page=1"""
        params = self.model_dump(by_alias=True, exclude_none=True)
        return "products:" + "&".join(f"{k}={params[k]}" for k in sorted(params))


class ProductListResponse(CatalogModel):
    products: List[Product]
    total: int
    page: int
    limit: int
    pages: int


# ============ Universal API Models ============
class HealthResponse(BaseModel):
    status: str
    version: Optional[str] = None
    category_source: Optional[str] = None
