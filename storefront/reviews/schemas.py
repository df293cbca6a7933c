from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .model import ReviewStatus

SORT_FIELDS = {
    "created_at": "created_at",
    "createdAt": "created_at",
    "rating": "rating",
    "helpful_count": "helpful_count",
    "helpfulCount": "helpful_count",
}


class CreateReviewRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    product_id: int = Field(..., gt=0, validation_alias=AliasChoices("product_id", "productId"))
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = Field(None, max_length=255)
    comment: Optional[str] = Field(None, max_length=5000)
    images: Optional[List[str]] = Field(None, max_length=10)
    selected_size: Optional[str] = Field(None, max_length=50, validation_alias=AliasChoices("selected_size", "selectedSize", "size"))
    selected_color: Optional[str] = Field(None, max_length=50, validation_alias=AliasChoices("selected_color", "selectedColor", "color"))


class UpdateReviewRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    rating: Optional[int] = Field(None, ge=1, le=5)
    title: Optional[str] = Field(None, max_length=255)
    comment: Optional[str] = Field(None, max_length=5000)
    images: Optional[List[str]] = Field(None, max_length=10)
    selected_size: Optional[str] = Field(None, max_length=50, validation_alias=AliasChoices("selected_size", "selectedSize", "size"))
    selected_color: Optional[str] = Field(None, max_length=50, validation_alias=AliasChoices("selected_color", "selectedColor", "color"))


class HelpfulRequest(BaseModel):
    is_helpful: bool = Field(..., validation_alias=AliasChoices("is_helpful", "isHelpful"))


class ReviewFilter(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    status: Optional[ReviewStatus] = None
    is_verified: Optional[bool] = Field(None, validation_alias=AliasChoices("is_verified", "isVerified"))
    sort_by: str = Field("created_at", validation_alias=AliasChoices("sort_by", "sortBy"))
    sort_order: Literal["ASC", "DESC"] = Field("DESC", validation_alias=AliasChoices("sort_order", "sortOrder"))
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)

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
