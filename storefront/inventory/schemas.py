from decimal import Decimal
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

# Public sort keys -> Product attribute
SORT_FIELDS = {
    "created_at": "created_at",
    "createdAt": "created_at",
    "price": "price",
    "name": "name",
    "rating": "rating",
    "stock": "stock",
    "sales_count": "sales_count",
    "salesCount": "sales_count",
    "review_count": "review_count",
    "reviewCount": "review_count",
}


class CreateProductRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(0, ge=0, validation_alias=AliasChoices("stock", "stockQuantity"))
    is_active: bool = Field(True, validation_alias=AliasChoices("is_active", "isActive"))
    is_featured: bool = Field(False, validation_alias=AliasChoices("is_featured", "isFeatured"))
    image_url: Optional[str] = Field(None, max_length=512, validation_alias=AliasChoices("image_url", "imageUrl"))
    category_id: Optional[int] = Field(None, gt=0, validation_alias=AliasChoices("category_id", "categoryId"))


class UpdateProductRequest(BaseModel):
    """Partial update. Stock has its own endpoint so stock events stay in one place."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    is_active: Optional[bool] = Field(None, validation_alias=AliasChoices("is_active", "isActive"))
    is_featured: Optional[bool] = Field(None, validation_alias=AliasChoices("is_featured", "isFeatured"))
    image_url: Optional[str] = Field(None, max_length=512, validation_alias=AliasChoices("image_url", "imageUrl"))
    category_id: Optional[int] = Field(None, gt=0, validation_alias=AliasChoices("category_id", "categoryId"))


class UpdateStockRequest(BaseModel):
    stock: int = Field(..., ge=0)


class ProductFilter(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    search: Optional[str] = Field(None, max_length=255)
    category_id: Optional[int] = Field(None, gt=0, validation_alias=AliasChoices("category_id", "categoryId"))
    min_price: Optional[Decimal] = Field(None, ge=0, validation_alias=AliasChoices("min_price", "minPrice"))
    max_price: Optional[Decimal] = Field(None, ge=0, validation_alias=AliasChoices("max_price", "maxPrice"))
    min_rating: Optional[Decimal] = Field(None, ge=1, le=5, validation_alias=AliasChoices("min_rating", "minRating"))
    is_featured: Optional[bool] = Field(None, validation_alias=AliasChoices("is_featured", "isFeatured"))
    sort_by: str = Field("created_at", validation_alias=AliasChoices("sort_by", "sortBy"))
    sort_order: Literal["ASC", "DESC"] = Field("DESC", validation_alias=AliasChoices("sort_order", "sortOrder"))
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)

    @field_validator("sort_by")
    @classmethod
    def known_sort_field(cls, v: str) -> str:
        if v not in SORT_FIELDS:
            raise ValueError(f"cannot sort by {v!r}")
        return SORT_FIELDS[v]

    @field_validator("sort_order", mode="before")
    @classmethod
    def upper_sort_order(cls, v):
        return v.upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def price_range(self) -> "ProductFilter":
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price must not exceed max_price")
        return self
