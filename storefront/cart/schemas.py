from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class AddToCartRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    product_id: int = Field(..., gt=0, validation_alias=AliasChoices("product_id", "productId"))
    quantity: int = Field(1, gt=0)
    selected_size: Optional[str] = Field(None, max_length=50, validation_alias=AliasChoices("selected_size", "selectedSize"))
    selected_color: Optional[str] = Field(None, max_length=50, validation_alias=AliasChoices("selected_color", "selectedColor"))


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(..., gt=0)
