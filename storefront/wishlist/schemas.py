from pydantic import AliasChoices, BaseModel, Field


class AddToWishlistRequest(BaseModel):
    product_id: int = Field(..., gt=0, validation_alias=AliasChoices("product_id", "productId"))
