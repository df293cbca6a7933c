from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .model import OrderStatus, PaymentMethod, PaymentStatus

# Public sort keys (snake_case and the camelCase the web client sends) -> Order attribute
SORT_FIELDS = {
    "created_at": "created_at",
    "createdAt": "created_at",
    "updated_at": "updated_at",
    "updatedAt": "updated_at",
    "total_amount": "total_amount",
    "totalAmount": "total_amount",
    "subtotal": "subtotal",
    "status": "status",
    "payment_status": "payment_status",
    "paymentStatus": "payment_status",
    "order_number": "order_number",
    "orderNumber": "order_number",
}


class OrderItemRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    product_id: int = Field(..., gt=0, validation_alias=AliasChoices("product_id", "productId"))
    quantity: int = Field(..., gt=0)
    selected_size: Optional[str] = Field(None, max_length=50, validation_alias=AliasChoices("selected_size", "selectedSize"))
    selected_color: Optional[str] = Field(None, max_length=50, validation_alias=AliasChoices("selected_color", "selectedColor"))


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    items: List[OrderItemRequest] = Field(..., min_length=1, validation_alias=AliasChoices("items", "orderItems"))
    shipping_address: Optional[str] = Field(None, max_length=1000, validation_alias=AliasChoices("shipping_address", "shippingAddress"))
    billing_address: Optional[str] = Field(None, max_length=1000, validation_alias=AliasChoices("billing_address", "billingAddress"))
    payment_method: Optional[PaymentMethod] = Field(None, validation_alias=AliasChoices("payment_method", "paymentMethod"))
    notes: Optional[str] = Field(None, max_length=2000)


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus


class UpdatePaymentStatusRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    payment_status: PaymentStatus = Field(..., validation_alias=AliasChoices("payment_status", "paymentStatus"))
    payment_reference: Optional[str] = Field(
        None, max_length=255, validation_alias=AliasChoices("payment_reference", "paymentReference", "paymentId")
    )


class OrderFilter(BaseModel):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = Field(None, validation_alias=AliasChoices("payment_status", "paymentStatus"))
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
