from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .model import CategoryType


class CreateCategoryRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: CategoryType
    image_url: Optional[str] = Field(None, max_length=512, validation_alias=AliasChoices("image_url", "imageUrl"))
    is_active: bool = Field(True, validation_alias=AliasChoices("is_active", "isActive"))


class UpdateCategoryRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[CategoryType] = None
    image_url: Optional[str] = Field(None, max_length=512, validation_alias=AliasChoices("image_url", "imageUrl"))
    is_active: Optional[bool] = Field(None, validation_alias=AliasChoices("is_active", "isActive"))
