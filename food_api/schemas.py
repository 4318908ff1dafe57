"""
Pydantic Schemas for Request/Response Validation

The storefront speaks camelCase JSON (itemId, orderId, cartData); models
accept both the camelCase alias and the Python field name.
"""

import re
from datetime import datetime
from typing import Any, Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from food_api.models import OrderStatus

EMAIL_PATTERN = re.compile(r'^[\w\.\+-]+@[\w\.-]+\.\w+$')


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Alice"])
    email: str = Field(..., max_length=255, examples=["alice@example.com"])
    password: str = Field(..., min_length=1, max_length=128, examples=["secret123"])

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Please enter a valid email")
        return v


class LoginRequest(CamelModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class CartItemRequest(CamelModel):
    item_id: str = Field(..., min_length=1, max_length=64, examples=["f1"])


class OrderItemIn(CamelModel):
    item_id: str = Field(..., min_length=1, max_length=64)
    quantity: int = Field(..., ge=1, le=99)


class PlaceOrderRequest(CamelModel):
    """
    Checkout request.

    When `items` is omitted the user's stored cart is ordered.
    """
    items: Optional[List[OrderItemIn]] = None
    address: dict[str, Any] = Field(
        ...,
        examples=[{"firstName": "Alice", "street": "1 Main St", "city": "Springfield"}],
    )


class VerifyPaymentRequest(CamelModel):
    order_id: str = Field(..., min_length=1, max_length=64)
    success: bool


class UpdateStatusRequest(CamelModel):
    order_id: str = Field(..., min_length=1, max_length=64)
    status: str = Field(..., examples=[OrderStatus.OUT_FOR_DELIVERY.value])


class RemoveFoodRequest(CamelModel):
    id: str = Field(..., min_length=1, max_length=64)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class AuthResponse(CamelModel):
    success: bool = True
    token: str


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class FoodItemResponse(CamelModel):
    id: str
    name: str
    description: str
    price: float
    category: str
    image: Optional[str]


class FoodItemEnvelope(MessageResponse):
    data: FoodItemResponse


class FoodListResponse(CamelModel):
    success: bool = True
    data: List[FoodItemResponse]


class CartResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    cart_data: dict[str, int]


class OrderLine(CamelModel):
    item_id: str
    name: str
    price: float
    quantity: int


class OrderResponse(CamelModel):
    id: str
    user_id: str
    items: List[OrderLine]
    amount: float
    address: dict[str, Any]
    status: str
    payment: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def status_value(cls, v: Any) -> str:
        if isinstance(v, OrderStatus):
            return v.value
        return v


class OrderEnvelope(MessageResponse):
    data: OrderResponse


class OrderListResponse(CamelModel):
    success: bool = True
    data: List[OrderResponse]


class PlaceOrderResponse(CamelModel):
    success: bool = True
    order_id: str
    amount: float
    session_url: str = Field(..., serialization_alias="session_url")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: datetime
    uptime: float


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    message: str
