# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, EmailStr
from typing import List
from decimal import Decimal
from datetime import datetime

from storefront.domain.order_status import OrderStatus, PaymentMethod


class ItemIn(BaseModel):
    """Adding a product to the cart."""

    product_id: int = Field(..., gt=0, description="Product id (> 0)")
    quantity: int = Field(1, gt=0, description="Quantity to add (> 0)")


class QuantityIn(BaseModel):
    """Absolute quantity; 0 or less removes the line."""

    quantity: int


class CartLineOut(BaseModel):
    product_id: int
    name: str
    price: Decimal
    original_price: Decimal | None = None
    quantity: int
    line_total: Decimal


class CartOut(BaseModel):
    cart_key: str
    authenticated: bool
    items: List[CartLineOut]
    item_count: int
    subtotal: Decimal


class WishlistOut(BaseModel):
    authenticated: bool
    product_ids: List[int]


class WishlistCheckOut(BaseModel):
    product_id: int
    in_wishlist: bool


class CustomerInfo(BaseModel):
    """Customer and shipping fields collected at checkout."""

    customer_name: str = Field(..., min_length=1)
    customer_email: EmailStr
    customer_phone: str = Field(..., min_length=5)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    notes: str | None = None


class CheckoutIn(CustomerInfo):
    payment_method: PaymentMethod
    idempotency_key: str | None = Field(None, min_length=1, max_length=200)


class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    product_price: Decimal
    quantity: int
    total_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    user_id: int | None
    customer_name: str
    customer_email: str
    customer_phone: str
    address: str
    city: str
    postal_code: str
    notes: str | None = None
    status: str
    payment_method: str
    payment_status: str
    total_amount: Decimal
    created_at: datetime
    items: List[OrderItemOut] = []

    model_config = ConfigDict(from_attributes=True)


class OrderListOut(BaseModel):
    orders: List[OrderOut]


class StatusUpdateIn(BaseModel):
    status: OrderStatus


class MergeOut(BaseModel):
    already_merged: bool
    cart: dict[int, int]
    wishlist: List[int]
    failed: List[int]
    skipped: List[int]
